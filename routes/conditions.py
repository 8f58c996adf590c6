from flask import Blueprint, current_app, jsonify, request
from config import Config
from cache import cache
from services.conditions_service import (
    build_swell_string, build_tide_string, current_tide, daily_swell_values, degrees_to_direction,
)
from services.errors import DataSourceError
from services.surfline_service import resolve_spot_id

conditions_bp = Blueprint('conditions', __name__)


def _cacheable(rv) -> bool:
    # Only successful lookups are worth keeping around
    if isinstance(rv, tuple):
        return False
    return 'errorMessage' not in (rv.get_json(silent=True) or {})


@conditions_bp.route('/conditions', methods=['GET'])
@cache.cached(timeout=Config.CONDITIONS_CACHE_TIMEOUT, query_string=True, response_filter=_cacheable)
def get_conditions():
    try:
        lat, lon = float(request.args['lat']), float(request.args['lon'])
    except (KeyError, ValueError):
        return jsonify({'errorMessage': "'lat' and 'lon' are required", 'data': {}}), 422

    providers = current_app.extensions['providers']
    try:
        weather = providers.weather.get_current_weather(lat, lon)
        tides = providers.world_tides.get_tides(lat, lon)
    except DataSourceError as e:
        # 200 on purpose: an error status would push the device into offline mode
        print(f"[Conditions] Upstream failure for {lat},{lon}: {e}")
        return jsonify({'errorMessage': str(e), 'data': {}})

    tide = current_tide(tides) or {}
    data = {
        'temperature': round(weather.temperature),
        'wind_speed': round(weather.wind_speed, 1),
        'wind_dir': degrees_to_direction(weather.wind_deg),
        'tide_height': tide.get('height'),
        'rising': tide.get('rising'),
    }

    spot = request.args.get('spot_id')
    if spot:
        spot_id = resolve_spot_id(spot)
        try:
            waves = providers.surfline.get_waves(spot_id)
            data['swell'] = daily_swell_values(waves)
            data['swell_string'] = build_swell_string(waves)
        except DataSourceError as e:
            print(f"[Conditions] Swell unavailable for {spot}: {e}")
            data['swell'] = []
            data['swell_string'] = ''
        try:
            # WorldTides is hourly only, Surfline marks the highs and lows
            data['tide_string'] = build_tide_string(providers.surfline.get_tides(spot_id))
        except DataSourceError as e:
            print(f"[Conditions] Tide times unavailable for {spot}: {e}")
            data['tide_string'] = ''

    return jsonify({'data': data})


@conditions_bp.route('/tides', methods=['GET'])
@cache.cached(timeout=Config.CONDITIONS_CACHE_TIMEOUT, query_string=True, response_filter=_cacheable)
def get_tides():
    spot_id = resolve_spot_id(request.args.get('spot_id') or current_app.config['DEFAULT_SPOT_NAME'])
    try:
        tides = current_app.extensions['providers'].surfline.get_tides(spot_id)
    except DataSourceError as e:
        print(f"[Conditions] Tides unavailable for {spot_id}: {e}")
        return jsonify({'errorMessage': str(e), 'data': {}})

    return jsonify({'data': {
        'tides': [{'timestamp': t.timestamp, 'utcOffset': t.utc_offset, 'height': t.height, 'type': t.type}
                  for t in tides],
        'tide_string': build_tide_string(tides),
    }})
