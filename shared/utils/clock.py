"""
Clock source dan helper waktu (semua instant dalam UTC)
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Clock(Protocol):
    """Sumber waktu wall-clock, hanya dipakai untuk perbandingan"""

    def now(self) -> datetime:
        ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SystemClock:
    """Clock berbasis jam sistem"""

    def now(self) -> datetime:
        return utc_now()


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalisasi datetime ke aware UTC

    SQLite mengembalikan datetime naive; nilai naive dianggap UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_millis(value: datetime) -> int:
    """Epoch milliseconds dari sebuah instant"""
    return (ensure_utc(value) - _EPOCH) // timedelta(milliseconds=1)
