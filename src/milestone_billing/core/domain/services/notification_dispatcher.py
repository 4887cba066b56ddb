from __future__ import annotations

from typing import Protocol


class NotificationDispatcher(Protocol):
    """
    Porta para o despachante externo de notificações.
    Fire-and-forget: enfileira a entrega e não espera confirmação.
    Falhas de enfileiramento levantam ExternalDispatchError.
    """

    def send(self, recipient: str, title: str, message: str) -> None: ...
