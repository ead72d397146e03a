from datetime import datetime, timezone


def now() -> datetime:
    """Current UTC time without tzinfo.
    All timestamps in the database are stored this way.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def now_tzinfo() -> datetime:
    return datetime.now(timezone.utc)


async def to_utc_naive(dt: datetime | None) -> datetime | None:
    """Normalize a datetime (aware or naive) to naive UTC.
    - None stays None
    - aware values are converted to UTC then stripped
    - naive values are assumed to already be UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)

    return dt


def clock_minutes(value: str) -> int:
    """Minutes since midnight of an HH:MM clock time."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)
