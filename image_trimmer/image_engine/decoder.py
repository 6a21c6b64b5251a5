"""Image decoder/encoder using pyvips.

Decoding produces an RGB or RGBA `PixelBuffer`; encoding writes a buffer to
`<directory>/<name>.<extension>` with the saver pyvips picks for the suffix.
"""

import contextlib
import os
import sys
from pathlib import Path
from typing import Any

import numpy as np

from image_trimmer.errors import DecodeError, EncodeError
from image_trimmer.logger import get_logger
from image_trimmer.trim.pixel_buffer import RGB_CHANNELS, RGBA_CHANNELS, PixelBuffer, PixelFormat

_logger = get_logger("decoder")

DEFAULT_EXTENSION = "png"

# Locate bundled libvips (for frozen exe/_MEIPASS and source tree)
_BASE_DIR = Path(getattr(sys, "_MEIPASS", Path(__file__).resolve().parent.parent))
_LIBVIPS_DIR = _BASE_DIR / "libvips"
if os.name == "nt" and _LIBVIPS_DIR.exists():
    with contextlib.suppress(Exception):
        os.add_dll_directory(str(_LIBVIPS_DIR))


_pyvips: Any | None = None


def _get_pyvips_module() -> Any:
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        # Configure pyvips caches to avoid memory growth across a batch
        with contextlib.suppress(Exception):
            pyvips.cache_set_max(0)
            pyvips.cache_set_max_mem(0)
            pyvips.cache_set_max_files(0)
        _pyvips = pyvips
    return _pyvips


def _image_to_buffer(image: Any) -> PixelBuffer:
    """Normalize a pyvips image to 8-bit sRGB, keeping alpha, and copy it out."""
    pyvips = _get_pyvips_module()
    with contextlib.suppress(Exception):
        image = image.colourspace("srgb")
    has_alpha = image.hasalpha()
    color = image.extract_band(0, n=image.bands - 1) if has_alpha else image
    if color.bands > RGB_CHANNELS:
        color = color.extract_band(0, n=RGB_CHANNELS)
    elif color.bands < RGB_CHANNELS:
        color = pyvips.Image.bandjoin([color] * RGB_CHANNELS)
    if has_alpha:
        color = color.bandjoin(image.extract_band(image.bands - 1))
    if color.format != "uchar":
        color = color.cast("uchar")

    mem = color.write_to_memory()
    array = np.frombuffer(mem, dtype=np.uint8).reshape(color.height, color.width, color.bands)
    if array.shape[2] not in (RGB_CHANNELS, RGBA_CHANNELS):
        raise DecodeError(f"Unsupported band count after conversion: {array.shape[2]}")
    return PixelBuffer.from_array(array, PixelFormat.for_channels(array.shape[2], "RGB"))


def decode_file(path: str | Path) -> PixelBuffer:
    """Decode an image file into an RGB/RGBA PixelBuffer."""
    try:
        pyvips = _get_pyvips_module()
        image = pyvips.Image.new_from_file(str(path), access="sequential")
        return _image_to_buffer(image)
    except DecodeError:
        raise
    except Exception as e:
        _logger.debug("decode failed: %s: %s", path, e)
        raise DecodeError(f"Cannot decode image {path}: {e}") from e


def decode_bytes(data: bytes) -> PixelBuffer:
    """Decode in-memory image bytes (PNG, JPEG, BMP, GIF, TIFF...)."""
    try:
        pyvips = _get_pyvips_module()
        image = pyvips.Image.new_from_buffer(data, "", access="sequential")
        return _image_to_buffer(image)
    except DecodeError:
        raise
    except Exception as e:
        _logger.debug("decode from bytes failed (%d bytes): %s", len(data), e)
        raise DecodeError(f"Cannot decode image bytes: {e}") from e


def save_image(
    buffer: PixelBuffer, directory: str | Path, name: str = "image", extension: str = DEFAULT_EXTENSION
) -> str:
    """Write `buffer` to `<directory>/<name>.<extension>` and return the path.

    The directory must already exist.
    """
    out_dir = Path(directory)
    if not out_dir.is_dir():
        raise EncodeError(f"Target directory does not exist: {out_dir}")
    ext = extension.lstrip(".") or DEFAULT_EXTENSION
    out_path = out_dir / f"{name}.{ext}"

    target = "RGBA" if buffer.pixel_format.has_alpha else "RGB"
    rgb = buffer.to_order(target)
    if rgb.stride != rgb.row_bytes or memoryview(rgb.data).nbytes != rgb.row_bytes * rgb.height:
        rgb = PixelBuffer.from_array(rgb.as_array(), rgb.pixel_format)
    try:
        pyvips = _get_pyvips_module()
        image = pyvips.Image.new_from_memory(
            bytes(rgb.data), rgb.width, rgb.height, rgb.bytes_per_pixel, "uchar"
        )
        image = image.copy(interpretation="srgb")
        image.write_to_file(str(out_path))
    except Exception as e:
        _logger.debug("encode failed: %s: %s", out_path, e)
        raise EncodeError(f"Cannot write image {out_path}: {e}") from e
    _logger.debug("saved %dx%d image: %s", rgb.width, rgb.height, out_path)
    return str(out_path)

