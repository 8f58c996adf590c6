"""Parsed provider records.

Every upstream response is reduced to one of these before anything else in the
server looks at it. Timestamps are epoch seconds (UTC); utc_offset is the
offset in hours of the place the sample describes, so local wall-clock time is
always derived from the sample itself and never from the server's timezone.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class TideSample:
    timestamp: int
    utc_offset: float
    height: float
    type: str = 'NORMAL'


@dataclass(frozen=True)
class SwellSample:
    timestamp: int
    utc_offset: float
    # Surfline leaves these unset for low-confidence forecast windows
    min: float | None = None
    max: float | None = None


@dataclass(frozen=True)
class WindSample:
    timestamp: int
    utc_offset: float
    speed: float
    deg: float | None = None


@dataclass(frozen=True)
class CurrentWeather:
    temperature: float
    wind_speed: float
    wind_deg: float
