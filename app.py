from flask import Flask
import config
from models import database, init_db
from routes import init_routes
from cache import cache
from device_auth import authenticate
from services.chart_pipeline import ChartPipeline
from services.chart_renderer import MatplotlibChartRenderer
from services.fallback_store import DirectoryFallbackStore, packing_mismatches, packing_settings
from services.providers import build_providers


def build_pipeline(app_config) -> ChartPipeline:
    fallbacks = DirectoryFallbackStore(app_config['FALLBACK_DIR'])
    missing = fallbacks.missing()
    if missing:
        print(f"[Fallback] WARNING: missing fallback buffers {missing}, run render_fallbacks.py")
    else:
        settings = packing_settings(app_config['CHART_WIDTH'], app_config['CHART_HEIGHT'],
                                    app_config['LUMINANCE_THRESHOLD'], app_config['HIGH_NIBBLE_FIRST'])
        mismatches = packing_mismatches(app_config['FALLBACK_DIR'], settings)
        if mismatches:
            print(f"[Fallback] WARNING: fallback buffers were packed differently {mismatches}, "
                  f"rerun render_fallbacks.py")
    return ChartPipeline(
        renderer=MatplotlibChartRenderer(),
        fallbacks=fallbacks,
        renders_dir=app_config['RENDERS_DIR'],
        width=app_config['CHART_WIDTH'],
        height=app_config['CHART_HEIGHT'],
        threshold=app_config['LUMINANCE_THRESHOLD'],
        high_nibble_first=app_config['HIGH_NIBBLE_FIRST'],
        render_timeout=app_config['RENDER_TIMEOUT'],
    )


def create_app(pipeline=None, providers=None, config_overrides=None):
    app = Flask(__name__)
    app.config.from_object(config.Config)
    if config_overrides:
        app.config.update(config_overrides)

    for key in ('OPENWEATHERMAP_API_KEY', 'WORLDTIDES_API_KEY'):
        if not app.config[key]:
            print(f"No {key} env variable set, upstream requests will fail and serve fallbacks")

    init_db()

    # Open the Peewee connection per request
    def before_request():
        database.connect(reuse_if_open=True)

    def teardown_request(exc):
        if not database.is_closed():
            database.close()

    app.before_request(before_request)
    app.before_request(authenticate)
    app.teardown_request(teardown_request)

    # Configure caching
    cache.init_app(app, config={'CACHE_TYPE': 'SimpleCache'})

    # Collaborators are injected so tests can swap them out
    app.extensions['providers'] = providers or build_providers(app.config)
    app.extensions['chart_pipeline'] = pipeline or build_pipeline(app.config)

    # Register routes
    init_routes(app)

    return app

if __name__ == '__main__':
    app = create_app()
    app.run(debug=config.Config.DEBUG, threaded=True)
