from dataclasses import dataclass

import requests

from services.surfline_service import SurflineClient
from services.weather_service import OpenWeatherMapClient
from services.world_tides_service import WorldTidesClient


@dataclass
class Providers:
    surfline: SurflineClient
    world_tides: WorldTidesClient
    weather: OpenWeatherMapClient


def build_providers(config, session: requests.Session | None = None) -> Providers:
    """All upstream clients, sharing one HTTP session."""
    session = session or requests.Session()
    timeout = config['REQUEST_TIMEOUT']
    cache_duration = config['CACHE_DURATION']
    return Providers(
        surfline=SurflineClient(session, timeout, cache_duration),
        world_tides=WorldTidesClient(session, config['WORLDTIDES_API_KEY'], timeout, cache_duration),
        weather=OpenWeatherMapClient(session, config['OPENWEATHERMAP_API_KEY'], timeout, cache_duration),
    )
