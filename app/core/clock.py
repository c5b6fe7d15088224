from datetime import datetime, timezone
from typing import Callable

# Returns "now" as a naive UTC datetime, matching the naive DateTime columns.
Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def get_clock() -> Clock:
    """FastAPI dependency; tests override it with a deterministic clock."""
    return system_clock


def isoformat_utc(value: datetime) -> str:
    """UTC, millisecond precision, "Z" suffix: 2024-01-15T09:00:00.000Z"""
    value = to_naive_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
