"""
Timestamp helpers. The API speaks ISO-8601 with milliseconds; the store keeps naive UTC.
"""

from datetime import datetime, timezone

DISTANT_PAST = datetime(1, 1, 1, tzinfo=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: datetime) -> datetime:
    return as_utc(value).replace(tzinfo=None)


def format_timestamp(value: datetime) -> str:
    """2023-04-03T10:00:00.000Z"""
    return as_utc(value).replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
