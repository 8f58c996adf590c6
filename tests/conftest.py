import os
import tempfile

import pytest

# Point peewee at a throwaway database before config/models get imported
_TMP_DIR = tempfile.mkdtemp(prefix='spot-check-tests-')
os.environ['DATABASE_PATH'] = os.path.join(_TMP_DIR, 'test.db')
os.environ['OPENWEATHERMAP_API_KEY'] = 'test-owm-key'
os.environ['WORLDTIDES_API_KEY'] = 'test-worldtides-key'

from models import ForecastCache, init_db  # noqa: E402
from services.chart_pipeline import ChartPipeline  # noqa: E402
from services.chart_spec import ChartKind  # noqa: E402
from services.fallback_store import FailureCategory, MemoryFallbackStore  # noqa: E402
from tests.fakes import HEIGHT, WIDTH, StaticRenderer, fallback_buffer  # noqa: E402


@pytest.fixture
def db():
    init_db()
    ForecastCache.delete().execute()
    yield
    ForecastCache.delete().execute()


@pytest.fixture
def fallbacks():
    return MemoryFallbackStore({(k, c): fallback_buffer(k, c) for k in ChartKind for c in FailureCategory})


@pytest.fixture
def renders_dir(tmp_path):
    return str(tmp_path / 'renders')


@pytest.fixture
def make_pipeline(fallbacks, renders_dir):
    def _make(renderer=None, store=None, **kwargs):
        return ChartPipeline(
            renderer=renderer or StaticRenderer(),
            fallbacks=fallbacks if store is None else store,
            renders_dir=renders_dir,
            width=WIDTH,
            height=HEIGHT,
            **kwargs,
        )
    return _make
