"""Synthetic pixel buffers for the trimming tests."""

from __future__ import annotations

from image_trimmer.trim.pixel_buffer import PixelBuffer, PixelFormat

WHITE_BGRA = (255, 255, 255, 255)


def make_buffer(
    width: int,
    height: int,
    fill: tuple[int, ...] = WHITE_BGRA,
    order: str = "BGRA",
    padding: int = 0,
) -> PixelBuffer:
    """Solid buffer of `fill` (given in storage order), rows padded by `padding` zero bytes.

    Zero padding would read as foreground, so a stride bug shows up as a wrong box.
    """
    fmt = PixelFormat(order)
    bpp = fmt.bytes_per_pixel
    stride = width * bpp + padding
    data = bytearray(stride * height)
    for y in range(height):
        for x in range(width):
            off = y * stride + x * bpp
            data[off : off + bpp] = bytes(fill)
    return PixelBuffer(width, height, stride, fmt, data)


def set_pixel(buffer: PixelBuffer, x: int, y: int, value: tuple[int, ...]) -> None:
    off = buffer.offset(x, y)
    buffer.data[off : off + buffer.bytes_per_pixel] = bytes(value)
