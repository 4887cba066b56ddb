from __future__ import annotations

from datetime import date, datetime
from typing import Protocol

from django.utils import timezone


class Clock(Protocol):
    """Fonte única de tempo do motor; injetada para permitir testes determinísticos."""

    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    def now(self) -> datetime:
        return timezone.now()

    def today(self) -> date:
        return timezone.localdate(self.now())
