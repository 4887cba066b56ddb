"""
Fábrica de notifiers: devolve o provedor do canal configurado.
"""
from functools import lru_cache
from typing import Literal

from django.conf import settings

from milestone_billing.adapters.notifiers.base import BaseNotifier
from milestone_billing.adapters.notifiers.email.brevo import BrevoEmail


@lru_cache
def get_email_notifier() -> BaseNotifier:
    return BrevoEmail(
        api_key=settings.BREVO_API_KEY,
        from_email=settings.DEFAULT_FROM_EMAIL,
    )


def get_notifier(channel: Literal["email"]) -> BaseNotifier:
    if channel == "email":
        return get_email_notifier()
    raise ValueError(f"Canal de notificação desconhecido: {channel}")
