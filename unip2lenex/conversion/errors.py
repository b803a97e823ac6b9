"""Fatal errors raised while converting UNI_p registrations to Lenex."""

from __future__ import annotations


class ConversionError(RuntimeError):
    """Raised when an uploaded artifact cannot be processed at all."""


class UniPParseError(ConversionError):
    """Raised when a UNI_p registration file has no usable content."""


class LenexParseError(ConversionError):
    """Raised when a Lenex meet document cannot be read."""


class UnsupportedEncodingError(ConversionError):
    """Raised when a file declares or requests an encoding we do not decode."""


__all__ = [
    "ConversionError",
    "LenexParseError",
    "UniPParseError",
    "UnsupportedEncodingError",
]
