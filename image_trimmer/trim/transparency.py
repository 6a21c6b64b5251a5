from __future__ import annotations

import numpy as np

from image_trimmer.errors import InvalidBuffer, UnsupportedFormat
from image_trimmer.logger import get_logger
from image_trimmer.trim.pixel_buffer import PixelBuffer

_logger = get_logger("transparency")


def apply_transparency(
    buffer: PixelBuffer, from_level: int = 250, to_level: int = 255, in_place: bool = False
) -> PixelBuffer:
    """Make exact gray pixels (g, g, g) with g in [from_level, to_level] fully transparent.

    Returns `buffer` itself when `in_place` is set, otherwise a new buffer.
    """
    if not buffer.pixel_format.has_alpha:
        raise UnsupportedFormat(f"Pixel format {buffer.pixel_format.order} has no alpha channel")
    if not 0 <= from_level <= to_level <= 255:
        raise ValueError(f"Invalid gray range: {from_level}..{to_level}")

    if in_place:
        if memoryview(buffer.data).readonly:
            raise InvalidBuffer("Buffer storage is read-only; cannot apply transparency in place")
        target = buffer
    else:
        target = PixelBuffer.from_array(buffer.as_array(), buffer.pixel_format)

    arr = target.as_array(writeable=True)
    fmt = target.pixel_format
    red = arr[:, :, fmt.index("R")]
    green = arr[:, :, fmt.index("G")]
    blue = arr[:, :, fmt.index("B")]
    gray = (red == green) & (green == blue) & (red >= from_level) & (red <= to_level)
    arr[:, :, fmt.index("A")][gray] = 0
    _logger.debug("transparency: %d pixel(s) in gray %d..%d", int(np.count_nonzero(gray)), from_level, to_level)
    return target


class TransparencyMapper:
    def __init__(self, from_level: int = 250, to_level: int = 255):
        if not 0 <= from_level <= to_level <= 255:
            raise ValueError(f"Invalid gray range: {from_level}..{to_level}")
        self.from_level = from_level
        self.to_level = to_level

    def apply(self, buffer: PixelBuffer, in_place: bool = False) -> PixelBuffer:
        return apply_transparency(buffer, self.from_level, self.to_level, in_place=in_place)
