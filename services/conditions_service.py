"""Compact text and numbers for the device's conditions header."""
import datetime

from services.chart_spec import DailySwell, bucket_swell_by_day
from services.local_time import to_local
from services.samples import SwellSample, TideSample

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

_COMPASS_POINTS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]

# Swell reports between these local hours aren't worth reading on the device
SWELL_FIRST_HOUR = 3
SWELL_LAST_HOUR = 21


def two_digits(num: int) -> str:
    """Zero pad to two digits, for clock times."""
    if num > 99 or num < 0:
        raise ValueError(f"two_digits called with a number outside 0-99: {num}")
    return f"{num:02d}"


def degrees_to_direction(deg: float) -> str:
    """8-point compass label for a wind bearing; '' for anything outside 0-360."""
    if deg < 0 or deg > 360:
        print(f"[Conditions] Received degrees not from 0 to 360 (value {deg}), returning empty string")
        return ""
    # Each point owns 45 degrees centred on its bearing
    return _COMPASS_POINTS[int(((deg + 22.5) % 360) // 45)]


def current_tide(samples: list[TideSample], now: float | None = None) -> dict | None:
    """Height of the latest sample at or before `now` and whether the tide is rising.

    Returns None when every sample is in the future.
    """
    now = datetime.datetime.now().timestamp() if now is None else now
    ordered = sorted(samples, key=lambda s: s.timestamp)
    latest = None
    for i, sample in enumerate(ordered):
        if sample.timestamp > now:
            break
        latest = i
    if latest is None:
        return None

    height = ordered[latest].height
    if latest + 1 < len(ordered):
        rising = ordered[latest + 1].height > height
    elif latest > 0:
        rising = height > ordered[latest - 1].height
    else:
        rising = False
    return {'height': round(height, 1), 'rising': rising}


def _clock(local: datetime.datetime) -> str:
    return f"{local.hour}:{two_digits(local.minute)}"


def _date_prefix(local: datetime.datetime) -> str:
    return f"{MONTHS[local.month - 1]} {local.day}: "


def build_tide_string(samples: list[TideSample]) -> str:
    """e.g. 'Jan 5: HIGH at 4:12, LOW at 10:40'. Hourly NORMAL readings are left out."""
    ordered = sorted((s for s in samples if s.type != 'NORMAL'), key=lambda s: s.timestamp)
    if not ordered:
        return ""
    first = to_local(ordered[0].timestamp, ordered[0].utc_offset)
    tides = [f"{s.type} at {_clock(to_local(s.timestamp, s.utc_offset))}" for s in ordered]
    return _date_prefix(first) + ", ".join(tides)


def build_swell_string(samples: list[SwellSample]) -> str:
    """e.g. 'Jan 5: 1.0-2.5 at 6:00, 2.0-3.0 at 12:00' for the first forecast day.

    Late-night and early-morning reports are skipped, as are windows with no
    surf height.
    """
    readable = []
    for sample in sorted(samples, key=lambda s: s.timestamp):
        local = to_local(sample.timestamp, sample.utc_offset)
        if local.hour < SWELL_FIRST_HOUR or local.hour > SWELL_LAST_HOUR:
            continue
        if sample.min is None or sample.max is None:
            continue
        readable.append((local, sample))
    if not readable:
        return ""

    first_day = readable[0][0].date()
    parts = [f"{s.min:.1f}-{s.max:.1f} at {_clock(local)}"
             for local, s in readable if local.date() == first_day]
    return _date_prefix(readable[0][0]) + ", ".join(parts)


def daily_swell_values(samples: list[SwellSample]) -> list[dict]:
    """Per-day max/min for the device's swell summary row."""
    days: list[DailySwell] = bucket_swell_by_day(samples)
    return [{'dayString': d.label, 'max': round(d.max, 1), 'min': round(d.min, 1)} for d in days]
