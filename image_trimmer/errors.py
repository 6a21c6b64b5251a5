"""Exceptions raised by the trimmer and its collaborators."""


class TrimmerError(Exception):
    """Base class for all image_trimmer errors."""


class InvalidBuffer(TrimmerError, ValueError):
    """Pixel buffer has bad dimensions, stride, format or storage."""


class EmptyImage(TrimmerError):
    """No foreground pixel was found under the given threshold."""


class InvalidRegion(TrimmerError, ValueError):
    """Crop box is empty, inverted or outside the buffer."""


class UnsupportedFormat(TrimmerError):
    """Pixel format lacks a channel the operation needs."""


class DecodeError(TrimmerError):
    """File or bytes could not be decoded as an image."""


class EncodeError(TrimmerError):
    """Image could not be written to disk."""


class MalformedOleData(TrimmerError):
    """OLE field does not wrap a recognizable image."""


class DatabaseError(TrimmerError):
    """Database could not be opened or queried."""
