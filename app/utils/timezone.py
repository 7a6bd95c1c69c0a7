"""
Date and Time utilities

Grid date windows and conversions between unix timestamps and UTC datetimes.
The media server keys grid data by UTC calendar date.
"""
from datetime import datetime, timedelta, timezone


GRID_DATE_FORMAT = "%Y-%m-%d"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_unix(dt: datetime) -> int:
    return int(ensure_utc(dt).timestamp())


def from_unix(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def grid_dates(now: datetime) -> list[str]:
    """
    Calendar dates to query for a scan: yesterday, today and tomorrow.

    Args:
        now: Reference time (converted to UTC)

    Returns:
        Dates formatted as YYYY-MM-DD
    """
    now = ensure_utc(now)
    return [
        (now + timedelta(days=offset)).strftime(GRID_DATE_FORMAT)
        for offset in (-1, 0, 1)
    ]
