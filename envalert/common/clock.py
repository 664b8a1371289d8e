"""Time helpers for envalert (all timestamps are timezone-aware UTC)."""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch(dt: datetime) -> float:
    """datetime을 epoch 초로 변환합니다 (naive 값은 UTC로 간주)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def from_epoch(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)
