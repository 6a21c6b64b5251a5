from __future__ import annotations

import numpy as np

from image_trimmer.errors import EmptyImage, InvalidRegion
from image_trimmer.logger import get_logger
from image_trimmer.trim.pixel_buffer import BoundingBox, PixelBuffer, Threshold

_logger = get_logger("trimmer")

DEFAULT_THRESHOLD = Threshold()


def foreground_mask(buffer: PixelBuffer, threshold: Threshold = DEFAULT_THRESHOLD) -> np.ndarray:
    """Boolean (height, width) mask, True where a pixel is foreground.

    A pixel is background only when blue, green and red are all strictly above
    their limits. Alpha is ignored.
    """
    arr = buffer.as_array()
    fmt = buffer.pixel_format
    blue = arr[:, :, fmt.index("B")]
    green = arr[:, :, fmt.index("G")]
    red = arr[:, :, fmt.index("R")]
    background = (blue > threshold.b) & (green > threshold.g) & (red > threshold.r)
    return ~background


def compute_bounding_box(buffer: PixelBuffer, threshold: Threshold = DEFAULT_THRESHOLD) -> BoundingBox:
    """Minimal inclusive rectangle around every foreground pixel.

    Returns `BoundingBox.empty()` when the whole image is background; callers
    must check `is_empty` before cropping.
    """
    mask = foreground_mask(buffer, threshold)
    rows = np.flatnonzero(mask.any(axis=1))
    if rows.size == 0:
        return BoundingBox.empty()
    cols = np.flatnonzero(mask.any(axis=0))
    return BoundingBox(int(cols[0]), int(rows[0]), int(cols[-1]), int(rows[-1]))


def crop(buffer: PixelBuffer, box: BoundingBox) -> PixelBuffer:
    """Copy the inclusive `box` region into a new, tightly packed buffer."""
    if box.is_empty:
        raise InvalidRegion(f"Empty or inverted crop box: {box}")
    if not box.fits(buffer.width, buffer.height):
        raise InvalidRegion(f"Crop box {box} outside {buffer.width}x{buffer.height} image")
    arr = buffer.as_array()
    region = arr[box.min_y : box.max_y + 1, box.min_x : box.max_x + 1]
    return PixelBuffer.from_array(region, buffer.pixel_format)


def trim(buffer: PixelBuffer, threshold: Threshold = DEFAULT_THRESHOLD) -> PixelBuffer:
    """Crop away the light border around the image content.

    Raises EmptyImage when no pixel survives the threshold.
    """
    box = compute_bounding_box(buffer, threshold)
    if box.is_empty:
        raise EmptyImage(f"No foreground pixel in {buffer.width}x{buffer.height} image under {threshold}")
    _logger.debug(
        "trim box: left=%d top=%d width=%d height=%d (from %dx%d)",
        box.min_x,
        box.min_y,
        box.width,
        box.height,
        buffer.width,
        buffer.height,
    )
    return crop(buffer, box)


class BorderTrimmer:
    """Trimmer bound to one threshold."""

    def __init__(self, threshold: Threshold | None = None):
        self.threshold = threshold or DEFAULT_THRESHOLD

    def compute_bounding_box(self, buffer: PixelBuffer) -> BoundingBox:
        return compute_bounding_box(buffer, self.threshold)

    def crop(self, buffer: PixelBuffer, box: BoundingBox) -> PixelBuffer:
        return crop(buffer, box)

    def trim(self, buffer: PixelBuffer) -> PixelBuffer:
        return trim(buffer, self.threshold)
