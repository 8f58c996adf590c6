import re

import requests

from services.errors import DataSourceError
from services.forecast_cache import CACHE_DURATION, get_cached_or_fetch
from services.samples import SwellSample, TideSample

SURFLINE_BASE_URL = "https://services.surfline.com/kbyg/spots/forecasts/"
PACIFICA_SPOT_ID = "5842041f4e65fad6a7708976"

SPOT_IDS_BY_NAME = {
    "PACIFICA": PACIFICA_SPOT_ID,
    "OCEAN_BEACH": "5842041f4e65fad6a77087f8",
    "WEDGE": "5842041f4e65fad6a770882b",
}

_SPOT_ID_RE = re.compile(r'^[0-9a-f]{24}$')


def resolve_spot_id(spot: str | None) -> str:
    """Accept a known spot name or a raw Surfline spot id; anything else is Pacifica."""
    if not spot:
        return PACIFICA_SPOT_ID
    by_name = SPOT_IDS_BY_NAME.get(spot.upper())
    if by_name:
        return by_name
    if _SPOT_ID_RE.match(spot.lower()):
        return spot.lower()
    return PACIFICA_SPOT_ID


class SurflineClient:
    def __init__(self, session: requests.Session, timeout: float = 10, cache_duration: int = CACHE_DURATION):
        self.session = session
        self.timeout = timeout
        self.cache_duration = cache_duration

    def get_tides(self, spot_id: str = PACIFICA_SPOT_ID, days: int = 1) -> list[TideSample]:
        payload = get_cached_or_fetch(
            'surfline-tides', f"{spot_id}:{days}",
            lambda: self._get('tides', {'spotId': spot_id, 'days': days}),
            self.cache_duration,
        )
        try:
            return [
                TideSample(timestamp=int(t['timestamp']), utc_offset=float(t['utcOffset']),
                           height=float(t['height']), type=t.get('type', 'NORMAL'))
                for t in payload['data']['tides']
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise DataSourceError(f"Malformed Surfline tides response: {e!r}") from e

    def get_waves(self, spot_id: str = PACIFICA_SPOT_ID, days: int = 3, interval_hours: int = 4) -> list[SwellSample]:
        payload = get_cached_or_fetch(
            'surfline-wave', f"{spot_id}:{days}:{interval_hours}",
            lambda: self._get('wave', {'spotId': spot_id, 'days': days,
                                       'intervalHours': interval_hours, 'maxHeights': 'false'}),
            self.cache_duration,
        )
        try:
            return [
                SwellSample(timestamp=int(w['timestamp']), utc_offset=float(w['utcOffset']),
                            min=_optional_float(w.get('surf', {}).get('min')),
                            max=_optional_float(w.get('surf', {}).get('max')))
                for w in payload['data']['wave']
            ]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DataSourceError(f"Malformed Surfline wave response: {e!r}") from e

    def _get(self, forecast_type: str, params: dict) -> dict:
        try:
            response = self.session.get(SURFLINE_BASE_URL + forecast_type, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            print(f"[Surfline] {forecast_type} request failed: {e}")
            raise DataSourceError(f"Surfline {forecast_type} request failed: {e}") from e
        if response.status_code != 200:
            print(f"[Surfline] {forecast_type} returned {response.status_code}")
            raise DataSourceError(f"Surfline {forecast_type} returned {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise DataSourceError(f"Surfline {forecast_type} response isn't JSON") from e


def _optional_float(value):
    return None if value is None else float(value)
