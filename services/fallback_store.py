"""Pre-baked packed buffers served when a chart can't be produced.

Buffers are generated offline by render_fallbacks.py, one per chart kind and
failure category, at the configured chart size. They're read-only at request
time and never resized: a wrong-sized buffer is as fatal as a missing one.
"""
import enum
import json
import os

from services.chart_spec import ChartKind
from services.errors import FallbackMissing


class FailureCategory(str, enum.Enum):
    DATA_SOURCE = 'data-source-error'
    RENDER = 'render-error'


def fallback_filename(kind: ChartKind, category: FailureCategory) -> str:
    """e.g. default_tide_data_source_error_chart.raw"""
    slug = FailureCategory(category).value.replace('-', '_')
    return f"default_{ChartKind(kind).value}_{slug}_chart.raw"


class FallbackStore:
    def _read(self, kind: ChartKind, category: FailureCategory) -> bytes | None:
        raise NotImplementedError

    def get(self, kind: ChartKind, category: FailureCategory, expected_size: int | None = None) -> bytes:
        kind, category = ChartKind(kind), FailureCategory(category)
        data = self._read(kind, category)
        if data is None:
            raise FallbackMissing(f"No fallback for ({kind.value}, {category.value})")
        if expected_size is not None and len(data) != expected_size:
            raise FallbackMissing(
                f"Fallback for ({kind.value}, {category.value}) is {len(data)} bytes, expected {expected_size}"
            )
        return data


class DirectoryFallbackStore(FallbackStore):
    def __init__(self, root: str):
        self.root = root

    def path_for(self, kind: ChartKind, category: FailureCategory) -> str:
        return os.path.join(self.root, fallback_filename(kind, category))

    def _read(self, kind, category):
        try:
            with open(self.path_for(kind, category), 'rb') as f:
                return f.read()
        except FileNotFoundError:
            return None

    def missing(self) -> list[str]:
        """Filenames that aren't on disk yet, for the startup check."""
        return [fallback_filename(k, c) for k in ChartKind for c in FailureCategory
                if not os.path.exists(self.path_for(k, c))]


class MemoryFallbackStore(FallbackStore):
    def __init__(self, buffers: dict):
        self._buffers = {(ChartKind(k), FailureCategory(c)): bytes(v) for (k, c), v in buffers.items()}

    def _read(self, kind, category):
        return self._buffers.get((kind, category))


MANIFEST_NAME = 'fallbacks.json'
PACKING_KEYS = ('width', 'height', 'threshold', 'high_nibble_first')


def packing_settings(width, height, threshold, high_nibble_first) -> dict:
    return {'width': width, 'height': height, 'threshold': threshold,
            'high_nibble_first': bool(high_nibble_first)}


def write_manifest(root: str, settings: dict):
    """Record how the buffers in `root` were packed."""
    with open(os.path.join(root, MANIFEST_NAME), 'w') as f:
        json.dump(settings, f, indent=2)


def packing_mismatches(root: str, settings: dict) -> list[str]:
    """Settings the baked buffers disagree with, e.g. ['high_nibble_first: baked True, running False'].

    A missing or unreadable manifest is reported as a single entry.
    """
    try:
        with open(os.path.join(root, MANIFEST_NAME)) as f:
            baked = json.load(f)
    except (OSError, ValueError) as e:
        return [f"no readable {MANIFEST_NAME} ({e})"]
    return [f"{key}: baked {baked.get(key)!r}, running {settings[key]!r}"
            for key in PACKING_KEYS if baked.get(key) != settings[key]]
