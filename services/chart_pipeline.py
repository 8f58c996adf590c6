"""Per-request chart generation: samples -> spec -> render -> quantize -> pack.

Every request ends with *some* packed buffer of the configured size. Upstream
and renderer failures are answered with the pre-baked fallback for the chart
kind; only PackingPrecondition and FallbackMissing escape, since both mean the
deployment itself is broken.
"""
import enum
import io
import os
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field

from PIL import Image

from services.chart_renderer import ChartRenderer
from services.chart_spec import ChartKind, ChartSpec, build_chart_spec
from services.errors import DataSourceError, FallbackMissing, PackingPrecondition, RenderError
from services.fallback_store import FailureCategory, FallbackStore
from services.image_dither import LUMINANCE_THRESHOLD, convert_image_to_raw_packed


class PipelineState(str, enum.Enum):
    REQUESTED = 'requested'
    DATA_FAILED = 'data-failed'
    RENDER_FAILED = 'render-failed'
    READY = 'ready'
    SERVED_FALLBACK = 'served-fallback'
    SERVED_FRESH = 'served-fresh'


@dataclass
class ChartResult:
    kind: ChartKind
    device_id: str
    state: PipelineState
    data: bytes
    category: FailureCategory | None = None
    artifacts: list[str] = field(default_factory=list)
    history: list[PipelineState] = field(default_factory=list)

    @property
    def fresh(self) -> bool:
        return self.state == PipelineState.SERVED_FRESH


class ChartPipeline:
    def __init__(self, renderer: ChartRenderer, fallbacks: FallbackStore, renders_dir: str,
                 width: int = 700, height: int = 200,
                 threshold: int = LUMINANCE_THRESHOLD, high_nibble_first: bool = True,
                 render_timeout: float = 30, render_workers: int = 4):
        if (width * height) % 2:
            raise PackingPrecondition(f"Chart size {width}x{height} has an odd pixel count")
        self.renderer = renderer
        self.fallbacks = fallbacks
        self.renders_dir = renders_dir
        self.width = width
        self.height = height
        self.threshold = threshold
        self.high_nibble_first = high_nibble_first
        self.render_timeout = render_timeout
        self._executor = ThreadPoolExecutor(max_workers=render_workers, thread_name_prefix='chart-render')

    @property
    def packed_size(self) -> int:
        return self.width * self.height // 2

    def artifact_paths(self, kind: ChartKind, device_id: str) -> tuple[str, str]:
        """(debug image, packed buffer) paths, tagged so devices don't clobber each other."""
        stem = os.path.join(self.renders_dir, f"{ChartKind(kind).value}_chart_{device_id}")
        return f"{stem}.png", f"{stem}.raw"

    def generate(self, kind: ChartKind, device_id: str, fetch) -> ChartResult:
        """Build the packed chart for one request.

        `fetch` is a zero-argument callable returning the parsed samples; it
        signals upstream trouble by raising DataSourceError.
        """
        kind = ChartKind(kind)
        history = [PipelineState.REQUESTED]
        tag = f"[Chart:{device_id}]"

        try:
            spec = build_chart_spec(kind, fetch())
        except DataSourceError as e:
            print(f"{tag} No {kind.value} data: {e}")
            history.append(PipelineState.DATA_FAILED)
            return self._serve_fallback(kind, device_id, FailureCategory.DATA_SOURCE, history)

        try:
            image_bytes = self._render(spec)
            img = self._decode(image_bytes)
        except RenderError as e:
            print(f"{tag} Rendering {kind.value} chart failed: {e}")
            history.append(PipelineState.RENDER_FAILED)
            return self._serve_fallback(kind, device_id, FailureCategory.RENDER, history)

        history.append(PipelineState.READY)
        png_path, raw_path = self.artifact_paths(kind, device_id)
        try:
            self._ensure_renders_dir(tag)
            artifacts = []
            if self._write(png_path, image_bytes, tag):
                artifacts.append(png_path)
            packed = convert_image_to_raw_packed(img, self.width, self.height,
                                                 self.threshold, self.high_nibble_first)
            if self._write(raw_path, packed, tag):
                artifacts.append(raw_path)
        except PackingPrecondition as e:
            print(f"{tag} FATAL: can't pack {kind.value} chart: {e}")
            self._discard([png_path, raw_path])
            raise
        except BaseException:
            # Interrupted mid-request; don't leave half-written files behind
            self._discard([png_path, raw_path])
            raise

        history.append(PipelineState.SERVED_FRESH)
        print(f"{tag} Generated {kind.value} chart ({len(packed)} bytes)")
        return ChartResult(kind=kind, device_id=device_id, state=PipelineState.SERVED_FRESH,
                           data=packed, artifacts=artifacts, history=history)

    def cleanup(self, result: ChartResult):
        """Delete a result's files once they've been sent. Failures are only logged."""
        for path in result.artifacts:
            try:
                os.remove(path)
            except OSError as e:
                print(f"[Chart:{result.device_id}] Couldn't delete {path}: {e}")

    def _serve_fallback(self, kind, device_id, category, history) -> ChartResult:
        try:
            data = self.fallbacks.get(kind, category, expected_size=self.packed_size)
        except FallbackMissing as e:
            print(f"[Fallback] FATAL: {e}")
            raise
        history.append(PipelineState.SERVED_FALLBACK)
        print(f"[Fallback] Serving {category.value} fallback for {kind.value} to {device_id}")
        return ChartResult(kind=kind, device_id=device_id, state=PipelineState.SERVED_FALLBACK,
                           data=data, category=category, history=history)

    def _render(self, spec: ChartSpec) -> bytes:
        future = self._executor.submit(self.renderer.render, spec, self.width, self.height, 'png')
        try:
            data = future.result(timeout=self.render_timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise RenderError(f"Renderer timed out after {self.render_timeout}s") from e
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Renderer crashed: {e}") from e
        if not data:
            raise RenderError("Renderer returned no data")
        return data

    @staticmethod
    def _decode(image_bytes: bytes) -> Image.Image:
        try:
            img = Image.open(io.BytesIO(image_bytes))
            img.load()
        except Exception as e:
            raise RenderError(f"Renderer output isn't a readable image: {e}") from e
        return img

    def _ensure_renders_dir(self, tag: str):
        try:
            os.makedirs(self.renders_dir, exist_ok=True)
        except OSError as e:
            print(f"{tag} Couldn't create {self.renders_dir}: {e}")

    @staticmethod
    def _write(path: str, data: bytes, tag: str) -> bool:
        try:
            with open(path, 'wb') as f:
                f.write(data)
            return True
        except OSError as e:
            print(f"{tag} Couldn't write {path}: {e}")
            return False

    @staticmethod
    def _discard(paths):
        for path in paths:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
            except OSError as e:
                print(f"[Chart] Couldn't delete {path}: {e}")
