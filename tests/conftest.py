from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from shared.database.database_manager import DatabaseManager

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime = T0):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def db(tmp_path) -> DatabaseManager:
    return DatabaseManager(str(tmp_path / "kuis.db"))
