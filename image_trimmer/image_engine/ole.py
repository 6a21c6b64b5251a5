"""Strip the OLE object envelope Access wraps around embedded pictures.

An Access OLE field starts with a small header:

    uint16  signature (0x1C15)
    uint16  header size (includes the name and class strings)
    uint32  object type (1 linked, 2 embedded)
    uint16  name length
    uint16  class name length
    uint16  name offset
    uint16  class name offset
    int16   width, int16 height (usually -1)

followed by an OLE 1.0 stream whose payload, for picture objects
("Paint.Picture", "PBrush", "Package" and friends), contains the original image
file somewhere near its start. We locate that file by its magic number.
"""

from __future__ import annotations

import struct

from image_trimmer.errors import MalformedOleData
from image_trimmer.logger import get_logger

_logger = get_logger("ole")

OLE_SIGNATURE = 0x1C15
_HEADER = struct.Struct("<HHIHHHHhh")

# Bytes past the OLE header searched for an image signature. Package objects
# put a file name and two full paths ahead of the payload.
DEFAULT_SEARCH_WINDOW = 4096

_PNG = b"\x89PNG\r\n\x1a\n"
_JPEG = b"\xff\xd8\xff"
_GIF87 = b"GIF87a"
_GIF89 = b"GIF89a"
_TIFF_LE = b"II*\x00"
_TIFF_BE = b"MM\x00*"
_BMP = b"BM"
_BMP_HEADER_SIZE = 14

_SIGNATURES = (_PNG, _JPEG, _GIF87, _GIF89, _TIFF_LE, _TIFF_BE, _BMP)


def _bmp_length(data: bytes, start: int) -> int | None:
    """File size from a BITMAPFILEHEADER at `start`, or None if it does not look like one."""
    if start + _BMP_HEADER_SIZE > len(data):
        return None
    size, reserved1, reserved2, pixel_offset = struct.unpack_from("<IHHI", data, start + 2)
    if reserved1 or reserved2:
        return None
    if size < _BMP_HEADER_SIZE or pixel_offset >= size or start + size > len(data):
        return None
    return size


def _image_end(data: bytes, start: int, signature: bytes) -> int:
    if signature == _BMP:
        size = _bmp_length(data, start)
        return start + size if size else len(data)
    if signature == _PNG:
        iend = data.find(b"IEND", start)
        # chunk type followed by a 4-byte CRC
        if iend >= 0 and iend + 8 <= len(data):
            return iend + 8
    return len(data)


def _find_image(data: bytes, begin: int, end: int) -> tuple[int, bytes] | None:
    best: tuple[int, bytes] | None = None
    for signature in _SIGNATURES:
        pos = data.find(signature, begin, end + len(signature))
        while pos >= 0 and signature == _BMP and _bmp_length(data, pos) is None:
            pos = data.find(signature, pos + 1, end + len(signature))
        if pos >= 0 and (best is None or pos < best[0]):
            best = (pos, signature)
    return best


def starts_with_image(data: bytes) -> bool:
    return any(data.startswith(sig) for sig in _SIGNATURES if sig != _BMP) or (
        data.startswith(_BMP) and _bmp_length(data, 0) is not None
    )


def read_class_name(data: bytes) -> str | None:
    """Class name recorded in the OLE header, e.g. "Paint.Picture"."""
    if len(data) < _HEADER.size:
        return None
    signature, header_size, _type, _name_len, class_len, _name_off, class_off, _w, _h = _HEADER.unpack_from(data)
    if signature != OLE_SIGNATURE or class_off + class_len > min(header_size, len(data)):
        return None
    return data[class_off : class_off + class_len].split(b"\x00", 1)[0].decode("latin-1")


def unwrap_ole_image(data: bytes, search_window: int = DEFAULT_SEARCH_WINDOW) -> bytes:
    """Return the raw image file embedded in an Access OLE field.

    Raises MalformedOleData when no envelope or image can be recognized.
    """
    data = bytes(data)
    if starts_with_image(data):
        return data
    if len(data) < _HEADER.size:
        raise MalformedOleData(f"OLE field too short: {len(data)} bytes")

    signature, header_size = struct.unpack_from("<HH", data)
    if signature != OLE_SIGNATURE:
        raise MalformedOleData(f"Bad OLE header signature: 0x{signature:04X}")
    if header_size < _HEADER.size or header_size > len(data):
        raise MalformedOleData(f"Bad OLE header size: {header_size}")

    found = _find_image(data, header_size, min(len(data), header_size + search_window))
    if found is None:
        raise MalformedOleData(
            f"No image signature within {search_window} bytes of the OLE header (class={read_class_name(data)!r})"
        )
    start, magic = found
    end = _image_end(data, start, magic)
    _logger.debug(
        "ole unwrap: class=%s image at %d..%d (%d bytes)", read_class_name(data), start, end, end - start
    )
    return data[start:end]
