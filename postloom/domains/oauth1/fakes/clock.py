"""Manually advanced clock for TTL tests."""

from datetime import datetime, timedelta, timezone
from typing import Optional


class FakeClock:
    """Callable returning a fixed UTC time until ``advance`` moves it."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)
