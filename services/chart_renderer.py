"""Chart rendering backend.

The pipeline only depends on ChartRenderer.render(spec, width, height, fmt)
returning encoded image bytes at exactly width x height. The matplotlib
implementation draws black on white with heavy strokes and bold ticks since
everything it produces ends up on a black/white e-ink panel.
"""
import io

import matplotlib
matplotlib.use('Agg')  # headless
from matplotlib.figure import Figure

from services.chart_spec import ChartSpec
from services.errors import RenderError

DPI = 100
BLACK = '#000000'
WHITE = '#ffffff'
TICK_FONT_SIZE = 14
TITLE_FONT_SIZE = 16

# Plot area padding in pixels, keeps the tick labels inside the canvas
MARGIN_LEFT = 55
MARGIN_RIGHT = 20
MARGIN_TOP = 15
MARGIN_BOTTOM = 35
MARGIN_TOP_TITLED = 40


class ChartRenderer:
    def render(self, spec: ChartSpec, width: int, height: int, fmt: str = 'png') -> bytes:
        raise NotImplementedError


class MatplotlibChartRenderer(ChartRenderer):
    def render(self, spec: ChartSpec, width: int, height: int, fmt: str = 'png') -> bytes:
        try:
            data = self._render(spec, width, height, fmt)
        except Exception as e:
            raise RenderError(f"matplotlib failed rendering {spec.kind.value} chart: {e}") from e
        if not data:
            raise RenderError(f"matplotlib produced no data for {spec.kind.value} chart")
        return data

    def _render(self, spec: ChartSpec, width: int, height: int, fmt: str) -> bytes:
        # Figure rather than pyplot: no global state, safe across request threads
        fig = Figure(figsize=(width / DPI, height / DPI), dpi=DPI, facecolor=WHITE)
        top = MARGIN_TOP_TITLED if spec.title else MARGIN_TOP
        fig.subplots_adjust(
            left=MARGIN_LEFT / width,
            right=1 - MARGIN_RIGHT / width,
            top=1 - top / height,
            bottom=MARGIN_BOTTOM / height,
        )
        ax = fig.add_subplot()
        ax.set_facecolor(WHITE)

        if spec.categorical_x:
            self._draw_categorical(ax, spec)
        else:
            self._draw_numeric(ax, spec)

        if spec.y_range:
            ax.set_ylim(*spec.y_range)
        if spec.x_title:
            ax.set_xlabel(spec.x_title, fontsize=TICK_FONT_SIZE, fontweight='bold', color=BLACK)
        if spec.y_title:
            ax.set_ylabel(spec.y_title, fontsize=TICK_FONT_SIZE - 4, fontweight='bold', color=BLACK)
        if spec.title:
            ax.set_title(spec.title, fontsize=TITLE_FONT_SIZE, fontweight='bold', color=BLACK)

        for note in spec.annotations:
            ax.text(note.x, note.y, note.text, transform=ax.transAxes,
                    ha='center', va='center', fontsize=note.size, color=BLACK)

        ax.grid(False)
        for side in ('top', 'right'):
            ax.spines[side].set_visible(False)
        for side in ('left', 'bottom'):
            ax.spines[side].set_color(BLACK)
            ax.spines[side].set_linewidth(1.5)
        ax.tick_params(colors=BLACK, labelsize=TICK_FONT_SIZE, direction='out')
        for label in ax.get_xticklabels() + ax.get_yticklabels():
            label.set_fontweight('bold')

        buf = io.BytesIO()
        # No bbox_inches='tight': the output has to be exactly width x height
        fig.savefig(buf, format=fmt, dpi=DPI, facecolor=WHITE)
        return buf.getvalue()

    def _draw_numeric(self, ax, spec: ChartSpec):
        for trace in spec.traces:
            if trace.style == 'line':
                ax.plot(trace.x, trace.y, color=BLACK, linewidth=3)
            elif trace.style == 'bar':
                ax.bar(trace.x, trace.y, color=BLACK)
        if spec.x_range:
            ax.set_xlim(*spec.x_range)
        high = spec.x_range[1] if spec.x_range else max(max(t.x) for t in spec.traces)
        ticks = []
        tick = spec.tick0
        while tick <= high:
            ticks.append(tick)
            tick += spec.dtick
        ax.set_xticks(ticks)
        ax.set_xticklabels([f"{t:g}" for t in ticks])

    def _draw_categorical(self, ax, spec: ChartSpec):
        labels = spec.traces[0].x
        positions = range(len(labels))
        bars = [t for t in spec.traces if t.style == 'bar']
        for trace in spec.traces:
            if trace.style == 'line':
                ax.plot(positions, trace.y, color=BLACK, linewidth=3)

        # First bar trace is drawn as an outline, later ones filled on top of it,
        # so a Max/Min pair reads as a hollow bar with a solid base
        for i, trace in enumerate(bars):
            if i == 0 and len(bars) > 1:
                ax.bar(positions, trace.y, width=0.8, color=WHITE, edgecolor=BLACK, linewidth=2, hatch='//')
            else:
                ax.bar(positions, trace.y, width=0.8, color=BLACK, edgecolor=BLACK)

        step = max(1, int(spec.dtick))
        ax.set_xticks(list(positions)[::step])
        ax.set_xticklabels(labels[::step])
        ax.set_xlim(-0.6, len(labels) - 0.4)
