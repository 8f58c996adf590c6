import os

import pytest

import render_fallbacks
from app import build_pipeline
from config import Config
from services.chart_renderer import MatplotlibChartRenderer
from services.chart_spec import ChartKind
from services.errors import FallbackMissing
from services.fallback_store import (
    DirectoryFallbackStore, FailureCategory, MemoryFallbackStore, fallback_filename, packing_mismatches,
    packing_settings, write_manifest,
)
from tests.fakes import PACKED_SIZE, fallback_buffer


def test_fallback_filenames():
    assert fallback_filename(ChartKind.TIDE, FailureCategory.DATA_SOURCE) == 'default_tide_data_source_error_chart.raw'
    assert fallback_filename('swell', 'render-error') == 'default_swell_render_error_chart.raw'


def test_directory_store_reads_buffers(tmp_path):
    store = DirectoryFallbackStore(str(tmp_path))
    expected = fallback_buffer(ChartKind.WIND, FailureCategory.RENDER)
    (tmp_path / 'default_wind_render_error_chart.raw').write_bytes(expected)

    assert store.get(ChartKind.WIND, FailureCategory.RENDER, expected_size=PACKED_SIZE) == expected
    assert 'default_wind_render_error_chart.raw' not in store.missing()
    assert len(store.missing()) == len(ChartKind) * len(FailureCategory) - 1


def test_directory_store_missing_file(tmp_path):
    store = DirectoryFallbackStore(str(tmp_path))
    with pytest.raises(FallbackMissing):
        store.get(ChartKind.TIDE, FailureCategory.DATA_SOURCE)


def test_wrong_size_is_missing(tmp_path):
    (tmp_path / 'default_tide_render_error_chart.raw').write_bytes(b'\xff' * 100)
    store = DirectoryFallbackStore(str(tmp_path))

    assert store.get(ChartKind.TIDE, FailureCategory.RENDER) == b'\xff' * 100
    with pytest.raises(FallbackMissing):
        store.get(ChartKind.TIDE, FailureCategory.RENDER, expected_size=PACKED_SIZE)


def test_memory_store_keys_by_kind_and_category():
    store = MemoryFallbackStore({('tide', 'data-source-error'): b'\x01\x02'})
    assert store.get(ChartKind.TIDE, FailureCategory.DATA_SOURCE) == b'\x01\x02'
    with pytest.raises(FallbackMissing):
        store.get(ChartKind.TIDE, FailureCategory.RENDER)


def test_headlines_name_the_failure():
    assert 'fetching swell data' in render_fallbacks.headline_for(ChartKind.SWELL, FailureCategory.DATA_SOURCE)
    assert 'generating wind chart' in render_fallbacks.headline_for(ChartKind.WIND, FailureCategory.RENDER)


def test_render_fallback_packs_to_panel_size():
    png, packed = render_fallbacks.render_fallback(
        MatplotlibChartRenderer(), ChartKind.TIDE, FailureCategory.RENDER, 700, 200, 0x90, True)
    assert png.startswith(b'\x89PNG')
    assert len(packed) == PACKED_SIZE


def test_main_bakes_every_fallback(tmp_path, capsys):
    render_fallbacks.main(['--out', str(tmp_path)])

    store = DirectoryFallbackStore(str(tmp_path))
    assert store.missing() == []
    for kind in ChartKind:
        for category in FailureCategory:
            assert len(store.get(kind, category)) == PACKED_SIZE
            raw_name = fallback_filename(kind, category)
            assert os.path.exists(tmp_path / raw_name.replace('.raw', '.png'))
    assert '[Fallback] Wrote' in capsys.readouterr().out


def test_matching_manifest_has_no_mismatches(tmp_path):
    settings = packing_settings(700, 200, 0x90, True)
    write_manifest(str(tmp_path), settings)
    assert packing_mismatches(str(tmp_path), settings) == []


def test_flipped_nibble_order_is_reported(tmp_path):
    write_manifest(str(tmp_path), packing_settings(700, 200, 0x90, True))
    mismatches = packing_mismatches(str(tmp_path), packing_settings(700, 200, 0x90, False))
    assert mismatches == ['high_nibble_first: baked True, running False']


def test_missing_manifest_is_reported(tmp_path):
    assert len(packing_mismatches(str(tmp_path), packing_settings(700, 200, 0x90, True))) == 1


def test_server_warns_when_fallbacks_were_packed_differently(tmp_path, capsys):
    render_fallbacks.main(['--out', str(tmp_path)])
    capsys.readouterr()
    app_config = {
        'FALLBACK_DIR': str(tmp_path), 'RENDERS_DIR': str(tmp_path / 'renders'),
        'CHART_WIDTH': 700, 'CHART_HEIGHT': 200, 'LUMINANCE_THRESHOLD': 0x90,
        'HIGH_NIBBLE_FIRST': not Config.HIGH_NIBBLE_FIRST, 'RENDER_TIMEOUT': 30,
    }

    build_pipeline(app_config)
    assert 'high_nibble_first' in capsys.readouterr().out

    app_config['HIGH_NIBBLE_FIRST'] = Config.HIGH_NIBBLE_FIRST
    build_pipeline(app_config)
    assert 'WARNING' not in capsys.readouterr().out
