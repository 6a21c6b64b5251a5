"""Trim package public API.

Expose the pure-backend trimming and transparency helpers as `image_trimmer.trim`.
"""

from image_trimmer.trim.pixel_buffer import (
    BGR,
    BGRA,
    RGB,
    RGBA,
    BoundingBox,
    PixelBuffer,
    PixelFormat,
    Threshold,
    pixel_offset,
)
from image_trimmer.trim.transparency import TransparencyMapper, apply_transparency
from image_trimmer.trim.trimmer import BorderTrimmer, compute_bounding_box, crop, foreground_mask, trim

__all__ = [
    "BGR",
    "BGRA",
    "RGB",
    "RGBA",
    "BorderTrimmer",
    "BoundingBox",
    "PixelBuffer",
    "PixelFormat",
    "Threshold",
    "TransparencyMapper",
    "apply_transparency",
    "compute_bounding_box",
    "crop",
    "foreground_mask",
    "pixel_offset",
    "trim",
]
