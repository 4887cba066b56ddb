from datetime import UTC, date, datetime, timedelta


class ManualClock:
    """Relógio controlado pelo teste: só anda com `advance()`."""

    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2025, 3, 3, 9, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def advance(self, **delta) -> datetime:
        self._now += timedelta(**delta)
        return self._now
