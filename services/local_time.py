"""Local wall-clock time for forecast samples.

Providers report instants as UTC epoch seconds plus the UTC offset of the spot
(Surfline: hours, OpenWeatherMap: seconds, WorldTides: inside an ISO8601
string). Charts are drawn in the spot's local time, so conversion happens here
and never goes through the server's own timezone.
"""
from datetime import datetime, timedelta, timezone


def to_local(timestamp: int, utc_offset: float) -> datetime:
    """Return the naive local datetime for an epoch timestamp and an hour offset."""
    utc = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return (utc + timedelta(hours=utc_offset)).replace(tzinfo=None)


def offset_hours_from_iso(stamp: str) -> float:
    """UTC offset in hours carried by an ISO8601 string, 0 if it has none."""
    offset = datetime.fromisoformat(stamp.replace('Z', '+00:00')).utcoffset()
    if offset is None:
        return 0.0
    return offset.total_seconds() / 3600


def fractional_hour(local: datetime) -> float:
    return local.hour + local.minute / 60
