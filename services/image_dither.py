# Raster image -> packed 4bpp buffer for the e-ink panel
from PIL import Image

from services.errors import PackingPrecondition

# L > 0x90 rails to white, everything else to black
LUMINANCE_THRESHOLD = 0x90
RAIL_HIGH = 0xFF
RAIL_LOW = 0x00


def clamp_channel(value):
    return max(0, min(255, value))


def luminance(r, g, b) -> float:
    """Perceptual luma of one pixel. Channels are clamped before weighting."""
    r, g, b = clamp_channel(r), clamp_channel(g), clamp_channel(b)
    # 0.299R + 0.587G + 0.114B, summed in thousandths so greys land exactly on
    # their own value at the threshold
    return (299 * r + 587 * g + 114 * b) / 1000


def quantize_level(lum: float, threshold: int = LUMINANCE_THRESHOLD) -> int:
    return RAIL_HIGH if lum > threshold else RAIL_LOW


def quantize_pixels(pixels, threshold: int = LUMINANCE_THRESHOLD) -> list[int]:
    """Rail level per pixel for an iterable of (r, g, b[, a]) tuples. Alpha is ignored."""
    # Rendered charts only hold a handful of distinct colours
    seen: dict[tuple, int] = {}
    levels = []
    for pixel in pixels:
        rgb = tuple(pixel[:3])
        level = seen.get(rgb)
        if level is None:
            level = quantize_level(luminance(*rgb), threshold)
            seen[rgb] = level
        levels.append(level)
    return levels


def quantize_image(img: Image.Image, threshold: int = LUMINANCE_THRESHOLD) -> list[int]:
    """Row-major rail levels for a PIL image."""
    return quantize_pixels(img.convert("RGBA").getdata(), threshold)


def pack_levels(levels, high_nibble_first: bool = True) -> bytes:
    """Pack two pixels per byte. Each pixel contributes the top nibble of its level.

    With high_nibble_first pixel 2i lands in bits 7-4 of byte i and pixel 2i+1
    in bits 3-0; otherwise the other way round.
    """
    if len(levels) % 2:
        raise PackingPrecondition(f"Can't pack an odd number of pixels ({len(levels)})")

    packed = bytearray(len(levels) // 2)
    for i in range(0, len(levels), 2):
        first = (levels[i] >> 4) & 0x0F
        second = (levels[i + 1] >> 4) & 0x0F
        if high_nibble_first:
            packed[i // 2] = (first << 4) | second
        else:
            packed[i // 2] = (second << 4) | first
    return bytes(packed)


def convert_image_to_raw_packed(img: Image.Image, width: int, height: int,
                                threshold: int = LUMINANCE_THRESHOLD,
                                high_nibble_first: bool = True) -> bytes:
    """Quantize and pack a rendered chart. The raster has to already be width x height."""
    if img.size != (width, height):
        raise PackingPrecondition(f"Raster is {img.size[0]}x{img.size[1]}, expected {width}x{height}")
    if (width * height) % 2:
        raise PackingPrecondition(f"{width}x{height} has an odd pixel count")
    return pack_levels(quantize_image(img, threshold), high_nibble_first)
