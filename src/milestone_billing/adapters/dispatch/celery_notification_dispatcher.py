from __future__ import annotations

import structlog
from django.db import transaction

from journey_engine.core.domain.events.exceptions import ExternalDispatchError

log = structlog.get_logger(__name__)


class CeleryNotificationDispatcher:
    """
    Enfileira a entrega de notificações na fila `notifications`.

    O envio só acontece após o commit da transação que concluiu a etapa:
    se o avanço for desfeito, nada é enviado. A entrega em si (provedor,
    retentativas, DLQ) é responsabilidade da task.
    """

    def send(self, recipient: str, title: str, message: str) -> None:
        if not (recipient or "").strip():
            raise ExternalDispatchError("destinatário vazio")
        transaction.on_commit(lambda: self._enqueue(recipient, title, message))

    @staticmethod
    def _enqueue(recipient: str, title: str, message: str) -> None:
        from legalflow_api.tasks import deliver_stage_notification

        try:
            deliver_stage_notification.delay(recipient, title, message)
        except Exception as exc:
            log.error("notification.enqueue_failed", recipient=recipient, error=str(exc), exc_info=True)
            return
        log.info("notification.enqueued", recipient=recipient, title=title)
