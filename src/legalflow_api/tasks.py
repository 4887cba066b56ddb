from __future__ import annotations

import time
from contextlib import contextmanager

import httpx
import structlog
from celery import Task, shared_task
from django.conf import settings
from django.core.cache import cache

log = structlog.get_logger(__name__)

# ──────────────────────────────────────────────────────────────────────────
# Constantes de filas e parâmetros
# ──────────────────────────────────────────────────────────────────────────
QUEUE_NOTIFICATIONS = "notifications"
QUEUE_BILLING       = "billing"
SWEEP_LOCK_KEY      = "locks:billing:reconciliation_sweep"
TASK_RATE_LIMIT     = "60/m"                  # limite p/ o provedor de e-mail

# ──────────────────────────────────────────────────────────────────────────
# Base Task com DLQ
# ──────────────────────────────────────────────────────────────────────────
class BaseTaskWithDLQ(Task):
    """
    Envia p/ Dead Letter Queue quando falhar após todas as retentativas.
    Em 'task_always_eager' apenas loga.
    """
    def on_failure(self, exc, task_id, args, kwargs, einfo):
        is_eager = bool(getattr(self.app.conf, "task_always_eager", False))
        if is_eager:
            log.critical(
                "task.failed_eager_mode",
                task=self.name, task_id=task_id, error=str(exc),
            )
        else:
            log.critical(
                "task.failed_dlq_redirect",
                task=self.name, task_id=task_id, error=str(exc),
                queue="dead_letter",
            )
            self.app.send_task(
                self.name,
                args=args,
                kwargs=kwargs,
                queue="dead_letter",
                routing_key="dead_letter",
            )
        super().on_failure(exc, task_id, args, kwargs, einfo)

# ──────────────────────────────────────────────────────────────────────────
# Lock distribuído da varredura (uma execução por vez no cluster)
# ──────────────────────────────────────────────────────────────────────────
@contextmanager
def sweep_lock(ttl: int | None = None):
    ttl = ttl or settings.SWEEP_LOCK_TTL_SEC
    acquired = cache.add(SWEEP_LOCK_KEY, str(time.time()), ttl)  # True se obteve o lock
    try:
        yield acquired
    finally:
        if acquired:
            cache.delete(SWEEP_LOCK_KEY)

# ──────────────────────────────────────────────────────────────────────────
# Varredura de cobrança (beat: a cada hora)
# ──────────────────────────────────────────────────────────────────────────
@shared_task(
    base=BaseTaskWithDLQ, bind=True, max_retries=2, default_retry_delay=120,
    acks_late=True, queue=QUEUE_BILLING
)
def run_reconciliation_sweep(self, triggered_by: str = "beat") -> dict:
    from milestone_billing.adapters.config.composition_root import container
    from milestone_billing.adapters.observability.metrics import observe_sweep
    from milestone_billing.core.application.commands.reconciliation_commands import RunReconciliationSweepCommand

    with sweep_lock() as ok:
        if not ok:
            log.warning("sweep.lock_busy", triggered_by=triggered_by)
            return {"skipped": True}
        try:
            result = container.command_bus().dispatch(RunReconciliationSweepCommand(triggered_by=triggered_by))
        except Exception as exc:
            log.error("sweep.error", error=str(exc))
            raise self.retry(exc=exc)  # noqa: B904

    observe_sweep(result)
    return result.to_dict()

# ──────────────────────────────────────────────────────────────────────────
# Entrega de notificações de etapa
# ──────────────────────────────────────────────────────────────────────────
@shared_task(
    base=BaseTaskWithDLQ, bind=True, max_retries=3, default_retry_delay=60,
    acks_late=True, queue=QUEUE_NOTIFICATIONS, rate_limit=TASK_RATE_LIMIT
)
def deliver_stage_notification(self, recipient: str, title: str, message: str) -> None:
    from milestone_billing.adapters.notifiers.registry import get_notifier

    notifier = get_notifier(settings.NOTIFICATION_CHANNEL)
    try:
        notifier.send([recipient], title, message)
    except httpx.HTTPError as exc:
        log.error("notification.delivery_error", recipient=recipient, error=str(exc))
        raise self.retry(exc=exc)  # noqa: B904
    log.info("notification.delivered", recipient=recipient, channel=settings.NOTIFICATION_CHANNEL)
