from journey_engine.core.domain.events.exceptions import ExternalDispatchError
from journey_engine.core.domain.services.event_dispatcher import EventDispatcher


class RecordingDispatcher(EventDispatcher):
    """EventDispatcher real que também guarda tudo o que foi publicado."""

    def __init__(self) -> None:
        super().__init__()
        self.events = []

    def dispatch(self, event) -> None:
        self.events.append(event)
        super().dispatch(event)

    def of_type(self, event_type):
        return [e for e in self.events if isinstance(e, event_type)]


class RecordingNotifier:
    """Despachante de notificações em memória; `fail=True` simula indisponibilidade."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, str, str]] = []

    def send(self, recipient: str, title: str, message: str) -> None:
        if self.fail:
            raise ExternalDispatchError("fila indisponível")
        self.sent.append((recipient, title, message))
