from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from kinster_attendance.database.local_database import LocalDatabase
from kinster_attendance.database.local_storage import InMemoryLocalStorage


class FakeClock:
    """Deterministic clock; each call advances one second."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def storage() -> InMemoryLocalStorage:
    return InMemoryLocalStorage()


@pytest.fixture
def db(storage, clock) -> LocalDatabase:
    return LocalDatabase(storage, clock=clock)
