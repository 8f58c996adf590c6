import io
from flask import Blueprint, current_app, jsonify, request, send_file

from services.chart_spec import ChartKind
from services.errors import FallbackMissing, PackingPrecondition
from services.surfline_service import resolve_spot_id

chart_bp = Blueprint('charts', __name__)


def _coords():
    try:
        return float(request.args['lat']), float(request.args['lon'])
    except (KeyError, ValueError):
        return None


def _send_chart(kind: ChartKind, fetch):
    """Run the pipeline and stream the packed buffer; artifacts go once the response closes."""
    pipeline = current_app.extensions['chart_pipeline']
    result = pipeline.generate(kind, request.args['device_id'], fetch)

    response = send_file(io.BytesIO(result.data), mimetype='application/octet-stream',
                         download_name=f"{kind.value}_chart.raw")
    # The format has no header, dimensions travel out-of-band
    response.headers['X-Chart-Width'] = str(pipeline.width)
    response.headers['X-Chart-Height'] = str(pipeline.height)
    response.headers['X-Chart-State'] = 'fresh' if result.fresh else 'fallback'
    response.call_on_close(lambda: pipeline.cleanup(result))
    return response


@chart_bp.route('/tide_chart', methods=['GET'])
def get_tide_chart():
    coords = _coords()
    if coords is None:
        return jsonify({'error': "'lat' and 'lon' are required"}), 422
    providers = current_app.extensions['providers']
    return _send_chart(ChartKind.TIDE, lambda: providers.world_tides.get_tides(*coords))


@chart_bp.route('/swell_chart', methods=['GET'])
def get_swell_chart():
    spot_id = resolve_spot_id(request.args.get('spot_id') or current_app.config['DEFAULT_SPOT_NAME'])
    providers = current_app.extensions['providers']
    return _send_chart(ChartKind.SWELL, lambda: providers.surfline.get_waves(spot_id))


@chart_bp.route('/wind_chart', methods=['GET'])
def get_wind_chart():
    coords = _coords()
    if coords is None:
        return jsonify({'error': "'lat' and 'lon' are required"}), 422
    providers = current_app.extensions['providers']
    return _send_chart(ChartKind.WIND, lambda: providers.weather.get_hourly_wind(*coords))


@chart_bp.errorhandler(FallbackMissing)
@chart_bp.errorhandler(PackingPrecondition)
def chart_pipeline_broken(e):
    print(f"[Chart] UNRECOVERABLE {type(e).__name__}: {e}")
    return jsonify({'error': 'chart pipeline misconfigured'}), 500
