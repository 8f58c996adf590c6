"""Bake the fallback buffers served when a chart can't be generated.

Renders one annotated placeholder chart per (chart kind, failure category),
packs it exactly like a live chart and writes it into FALLBACK_DIR, with a PNG
next to it for eyeballing. Run it whenever the chart size, threshold or nibble
order changes:

    python render_fallbacks.py [--out default_renders]
"""
import argparse
import io
import os

from PIL import Image

from config import Config
from services.chart_renderer import MatplotlibChartRenderer
from services.chart_spec import ChartKind, build_placeholder_spec
from services.fallback_store import FailureCategory, fallback_filename, packing_settings, write_manifest
from services.image_dither import convert_image_to_raw_packed

RETRY_TEXT = "Device retries every hour, reboot device to force retry"


def headline_for(kind: ChartKind, category: FailureCategory) -> str:
    if category == FailureCategory.DATA_SOURCE:
        return f"Error fetching {ChartKind(kind).value} data from external service"
    return f"Error generating {ChartKind(kind).value} chart"


def render_fallback(renderer, kind: ChartKind, category: FailureCategory,
                    width: int, height: int, threshold: int, high_nibble_first: bool) -> tuple[bytes, bytes]:
    """(png preview, packed buffer) for one placeholder."""
    spec = build_placeholder_spec(kind, headline_for(kind, category), RETRY_TEXT)
    png = renderer.render(spec, width, height, 'png')
    packed = convert_image_to_raw_packed(Image.open(io.BytesIO(png)), width, height,
                                         threshold, high_nibble_first)
    return png, packed


def main(argv=None):
    parser = argparse.ArgumentParser(description="Render fallback chart buffers for the device.")
    parser.add_argument('--out', default=Config.FALLBACK_DIR, help="Output directory")
    parser.add_argument('--width', type=int, default=Config.CHART_WIDTH)
    parser.add_argument('--height', type=int, default=Config.CHART_HEIGHT)
    args = parser.parse_args(argv)

    os.makedirs(args.out, exist_ok=True)
    renderer = MatplotlibChartRenderer()
    for kind in ChartKind:
        for category in FailureCategory:
            png, packed = render_fallback(renderer, kind, category, args.width, args.height,
                                          Config.LUMINANCE_THRESHOLD, Config.HIGH_NIBBLE_FIRST)
            raw_path = os.path.join(args.out, fallback_filename(kind, category))
            with open(raw_path, 'wb') as f:
                f.write(packed)
            with open(raw_path[:-len('.raw')] + '.png', 'wb') as f:
                f.write(png)
            print(f"[Fallback] Wrote {raw_path} ({len(packed)} bytes)")

    # The server checks this against its own settings at startup
    write_manifest(args.out, packing_settings(args.width, args.height,
                                              Config.LUMINANCE_THRESHOLD, Config.HIGH_NIBBLE_FIRST))


if __name__ == '__main__':
    main()
