import os

class Config:
    DEBUG = os.environ.get('DEPLOY_STAGE') != 'PROD'
    JSON_AS_ASCII = False

    OPENWEATHERMAP_API_KEY = os.environ.get('OPENWEATHERMAP_API_KEY', '')
    WORLDTIDES_API_KEY = os.environ.get('WORLDTIDES_API_KEY', '')

    DATABASE_PATH = os.environ.get('DATABASE_PATH', 'spot_check.db')
    RENDERS_DIR = os.environ.get('RENDERS_DIR', 'temp_renders')
    FALLBACK_DIR = os.environ.get('FALLBACK_DIR', 'default_renders')

    # Every chart kind shares the panel the device reserves for charts
    CHART_WIDTH = int(os.environ.get('CHART_WIDTH', 700))
    CHART_HEIGHT = int(os.environ.get('CHART_HEIGHT', 200))

    LUMINANCE_THRESHOLD = 0x90
    # Pixel 2i goes in the high nibble; flip to match firmware that decodes low-first
    HIGH_NIBBLE_FIRST = os.environ.get('HIGH_NIBBLE_FIRST', '1') != '0'

    RENDER_TIMEOUT = 30
    REQUEST_TIMEOUT = 10
    CACHE_DURATION = 3600
    CONDITIONS_CACHE_TIMEOUT = 900

    DEFAULT_SPOT_NAME = 'PACIFICA'
