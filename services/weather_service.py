import requests

from services.errors import DataSourceError
from services.forecast_cache import CACHE_DURATION, get_cached_or_fetch
from services.samples import CurrentWeather, WindSample

ONECALL_URL = "https://api.openweathermap.org/data/3.0/onecall"


class OpenWeatherMapClient:
    """Current conditions and the hourly wind forecast from the One Call 3.0 API (imperial units)."""

    def __init__(self, session: requests.Session, api_key: str, timeout: float = 10,
                 cache_duration: int = CACHE_DURATION):
        self.session = session
        self.api_key = api_key
        self.timeout = timeout
        self.cache_duration = cache_duration

    def get_current_weather(self, latitude: float, longitude: float) -> CurrentWeather:
        payload = self._onecall(latitude, longitude, 'minutely,daily,hourly,alerts')
        try:
            current = payload['current']
            return CurrentWeather(temperature=float(current['temp']),
                                  wind_speed=float(current['wind_speed']),
                                  wind_deg=float(current['wind_deg']))
        except (KeyError, TypeError, ValueError) as e:
            raise DataSourceError(f"Malformed OpenWeatherMap current response: {e!r}") from e

    def get_hourly_wind(self, latitude: float, longitude: float) -> list[WindSample]:
        payload = self._onecall(latitude, longitude, 'minutely,daily,alerts')
        try:
            offset = float(payload.get('timezone_offset', 0)) / 3600
            return [
                WindSample(timestamp=int(h['dt']), utc_offset=offset, speed=float(h['wind_speed']),
                           deg=float(h['wind_deg']) if h.get('wind_deg') is not None else None)
                for h in payload['hourly']
            ]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DataSourceError(f"Malformed OpenWeatherMap hourly response: {e!r}") from e

    def _onecall(self, latitude: float, longitude: float, exclude: str) -> dict:
        return get_cached_or_fetch(
            'owm-onecall', f"{latitude:.4f},{longitude:.4f}:{exclude}",
            lambda: self._fetch(latitude, longitude, exclude),
            self.cache_duration,
        )

    def _fetch(self, latitude: float, longitude: float, exclude: str) -> dict:
        if not self.api_key:
            raise DataSourceError("No OpenWeatherMap API key configured")
        params = {
            'lat': latitude,
            'lon': longitude,
            'exclude': exclude,
            'units': 'imperial',
            'appid': self.api_key,
        }
        try:
            response = self.session.get(ONECALL_URL, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            print(f"[Weather] OpenWeatherMap request failed: {e}")
            raise DataSourceError(f"OpenWeatherMap request failed: {e}") from e
        if response.status_code >= 400:
            print(f"[Weather] OpenWeatherMap returned {response.status_code}")
            raise DataSourceError(f"OpenWeatherMap returned {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise DataSourceError("OpenWeatherMap response isn't JSON") from e
