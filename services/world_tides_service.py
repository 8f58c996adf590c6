import requests

from services.errors import DataSourceError
from services.forecast_cache import CACHE_DURATION, get_cached_or_fetch
from services.local_time import offset_hours_from_iso
from services.samples import TideSample

WORLDTIDES_URL = "https://www.worldtides.info/api/v3"
FEET_PER_METER = 3.28084


class WorldTidesClient:
    """Hourly tide heights for today at a lat/lon.

    WorldTides always answers in meters relative to the requested datum; heights
    are converted to feet here since every chart on the device is imperial.
    """

    def __init__(self, session: requests.Session, api_key: str, timeout: float = 10,
                 cache_duration: int = CACHE_DURATION):
        self.session = session
        self.api_key = api_key
        self.timeout = timeout
        self.cache_duration = cache_duration

    def get_tides(self, latitude: float, longitude: float) -> list[TideSample]:
        payload = get_cached_or_fetch(
            'worldtides-heights', f"{latitude:.4f},{longitude:.4f}",
            lambda: self._fetch(latitude, longitude),
            self.cache_duration,
        )
        try:
            return [
                TideSample(timestamp=int(h['dt']), utc_offset=offset_hours_from_iso(h['date']),
                           height=round(float(h['height']) * FEET_PER_METER, 2))
                for h in payload['heights']
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise DataSourceError(f"Malformed WorldTides response: {e!r}") from e

    def _fetch(self, latitude: float, longitude: float) -> dict:
        if not self.api_key:
            raise DataSourceError("No WorldTides API key configured")
        params = {
            'heights': '',
            'lat': latitude,
            'lon': longitude,
            'date': 'today',
            'days': 1,
            'datum': 'MLLW',
            'step': 3600,
            'key': self.api_key,
        }
        try:
            response = self.session.get(WORLDTIDES_URL, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            print(f"[WorldTides] Request failed: {e}")
            raise DataSourceError(f"WorldTides request failed: {e}") from e
        try:
            payload = response.json()
        except ValueError as e:
            raise DataSourceError(f"WorldTides response isn't JSON ({response.status_code})") from e
        if not isinstance(payload, dict):
            raise DataSourceError(f"Unexpected WorldTides response ({response.status_code})")

        # Errors come back as {'status': 400, 'error': '...'}
        status = payload.get('status', response.status_code)
        if status != 200:
            error = payload.get('error', '')
            print(f"[WorldTides] Returned {status}: {error}")
            raise DataSourceError(f"WorldTides returned {status}: {error}")
        return payload
