from collections.abc import Callable, Iterable

import structlog
from django.db import transaction

from journey_engine.core.domain.events.events import DomainEvent

logger = structlog.get_logger(__name__)

Subscriber = Callable[[DomainEvent], None]


def _name(handler: Subscriber) -> str:
    return getattr(handler, "__name__", handler.__class__.__name__)


class EventDispatcher:
    """
    Publica eventos de domínio para os assinantes registrados.

    A assinatura vale para a classe do evento e suas subclasses: quem assina
    `DomainEvent` recebe tudo. Falha de um assinante é logada e não impede
    os demais.

    Serviços publicam via `publish_on_commit`: métricas e reações só enxergam
    estados efetivamente gravados, inclusive quando o chamador envolve a
    operação numa transação externa.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type[DomainEvent], list[Subscriber]] = {}

    def subscribe(self, event_type: type[DomainEvent], handler: Subscriber) -> None:
        self._subscribers.setdefault(event_type, []).append(handler)
        logger.debug("event.subscribed", event_type=event_type.__name__, handler_name=_name(handler))

    def subscribers_for(self, event: DomainEvent) -> list[Subscriber]:
        return [h for cls in type(event).__mro__ for h in self._subscribers.get(cls, ())]

    def dispatch(self, event: DomainEvent) -> None:
        handlers = self.subscribers_for(event)
        logger.info("event.dispatch", event_name=type(event).__name__, listeners=len(handlers))
        for handler in handlers:
            try:
                handler(event)
            except Exception as exc:
                logger.error(
                    "event.handler_error",
                    event_name=type(event).__name__,
                    handler_name=_name(handler),
                    error=str(exc),
                    exc_info=True,
                )

    def dispatch_all(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            self.dispatch(event)

    def publish_on_commit(self, events: Iterable[DomainEvent]) -> None:
        """
        Agenda a publicação para o commit da transação corrente.
        Fora de transação publica na hora; em rollback os eventos são descartados.
        """
        pending = list(events)
        if pending:
            transaction.on_commit(lambda: self.dispatch_all(pending))
