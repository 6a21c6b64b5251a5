"""Raw pixel buffer model shared by the trimmer and the transparency mapper.

A `PixelBuffer` is a plain description of decoded pixels: dimensions, a row
stride that may include padding, a channel order and the raw bytes. All pixel
access goes through `pixel_offset`, which keeps row/column addressing in one
place and bounds checked.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field

import numpy as np

from image_trimmer.errors import InvalidBuffer

RGB_CHANNELS = 3
RGBA_CHANNELS = 4

_SUPPORTED_ORDERS = ("BGRA", "BGR", "RGBA", "RGB")


def pixel_offset(x: int, y: int, stride: int, bytes_per_pixel: int) -> int:
    """Byte offset of pixel (x, y) in a buffer with the given row stride."""
    return y * stride + x * bytes_per_pixel


@dataclass(frozen=True)
class PixelFormat:
    """Channel order of a pixel, e.g. "BGRA" (byte0=Blue ... byte3=Alpha)."""

    order: str

    def __post_init__(self) -> None:
        if self.order not in _SUPPORTED_ORDERS:
            raise InvalidBuffer(f"Unsupported channel order: {self.order!r}")

    @property
    def bytes_per_pixel(self) -> int:
        return len(self.order)

    @property
    def has_alpha(self) -> bool:
        return "A" in self.order

    def index(self, channel: str) -> int:
        """Byte index of `channel` ("R", "G", "B" or "A") within one pixel."""
        pos = self.order.find(channel)
        if pos < 0:
            raise KeyError(channel)
        return pos

    @classmethod
    def for_channels(cls, channels: int, order: str = "RGB") -> PixelFormat:
        """Format for a channel count, using `order` for the color channels."""
        if channels == RGB_CHANNELS:
            return cls(order)
        if channels == RGBA_CHANNELS:
            return cls(order + "A")
        raise InvalidBuffer(f"Unsupported channel count: {channels}")


BGRA = PixelFormat("BGRA")
BGR = PixelFormat("BGR")
RGBA = PixelFormat("RGBA")
RGB = PixelFormat("RGB")


@dataclass(frozen=True)
class Threshold:
    """Per-channel background limits. Background means strictly above all three."""

    r: int = 250
    g: int = 250
    b: int = 250

    def __post_init__(self) -> None:
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if not isinstance(value, (int, np.integer)) or not 0 <= int(value) <= 255:
                raise ValueError(f"threshold {name} must be in 0..255, got {value!r}")


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive pixel rectangle of the foreground region."""

    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @classmethod
    def empty(cls) -> BoundingBox:
        # "nothing found yet": any real pixel would shrink min and grow max
        return cls(sys.maxsize, sys.maxsize, -1, -1)

    @property
    def is_empty(self) -> bool:
        return self.min_x > self.max_x or self.min_y > self.max_y

    @property
    def width(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def height(self) -> int:
        return self.max_y - self.min_y + 1

    def fits(self, width: int, height: int) -> bool:
        return 0 <= self.min_x and 0 <= self.min_y and self.max_x < width and self.max_y < height

    def as_crop(self) -> tuple[int, int, int, int]:
        """(left, top, width, height)"""
        return self.min_x, self.min_y, self.width, self.height


@dataclass
class PixelBuffer:
    width: int
    height: int
    stride: int
    pixel_format: PixelFormat
    data: bytes | bytearray | memoryview = field(repr=False)

    @property
    def bytes_per_pixel(self) -> int:
        return self.pixel_format.bytes_per_pixel

    @property
    def row_bytes(self) -> int:
        return self.width * self.bytes_per_pixel

    def validate(self) -> None:
        """Raise InvalidBuffer unless dimensions, stride and storage are consistent."""
        if self.width <= 0 or self.height <= 0:
            raise InvalidBuffer(f"Invalid dimensions: {self.width}x{self.height}")
        if self.bytes_per_pixel not in (RGB_CHANNELS, RGBA_CHANNELS):
            raise InvalidBuffer(f"Unsupported bytes per pixel: {self.bytes_per_pixel}")
        if self.stride < self.row_bytes:
            raise InvalidBuffer(f"Stride {self.stride} is shorter than a row ({self.row_bytes} bytes)")
        # The last row may omit its trailing padding
        needed = (self.height - 1) * self.stride + self.row_bytes
        size = memoryview(self.data).nbytes
        if size < needed:
            raise InvalidBuffer(f"Buffer holds {size} bytes, needs {needed}")

    def offset(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height}")
        return pixel_offset(x, y, self.stride, self.bytes_per_pixel)

    def pixel(self, x: int, y: int) -> tuple[int, ...]:
        """Channel values of pixel (x, y) in storage order."""
        off = self.offset(x, y)
        return tuple(self.data[off : off + self.bytes_per_pixel])

    def as_array(self, writeable: bool = False) -> np.ndarray:
        """Stride-aware (height, width, bpp) uint8 view over `data`."""
        self.validate()
        flat = np.frombuffer(self.data, dtype=np.uint8)
        bpp = self.bytes_per_pixel
        return np.lib.stride_tricks.as_strided(
            flat,
            shape=(self.height, self.width, bpp),
            strides=(self.stride, bpp, 1),
            writeable=writeable,
        )

    @classmethod
    def from_array(cls, arr: np.ndarray, order: str | PixelFormat = "RGB") -> PixelBuffer:
        """Build a tightly packed buffer from a (height, width, channels) uint8 array."""
        pixel_format = order if isinstance(order, PixelFormat) else PixelFormat(order)
        if arr.ndim != 3 or arr.dtype != np.uint8:
            raise InvalidBuffer(f"Expected (h, w, c) uint8 array, got shape={arr.shape} dtype={arr.dtype}")
        h, w, c = arr.shape
        if c != pixel_format.bytes_per_pixel:
            raise InvalidBuffer(
                f"Array has {c} channels, format {pixel_format.order} needs {pixel_format.bytes_per_pixel}"
            )
        buf = cls(w, h, w * c, pixel_format, bytearray(np.ascontiguousarray(arr).tobytes()))
        buf.validate()
        return buf

    def to_order(self, order: str | PixelFormat) -> PixelBuffer:
        """Copy with channels rearranged to `order` (alpha must be kept or absent on both sides)."""
        target = order if isinstance(order, PixelFormat) else PixelFormat(order)
        if target == self.pixel_format:
            return self
        if target.has_alpha != self.pixel_format.has_alpha:
            raise InvalidBuffer(f"Cannot reorder {self.pixel_format.order} to {target.order}")
        src = self.as_array()
        idx = [self.pixel_format.index(ch) for ch in target.order]
        return PixelBuffer.from_array(src[:, :, idx], target)
