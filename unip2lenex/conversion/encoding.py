"""Decode uploaded bytes in one of the two encodings the converter supports."""

from __future__ import annotations

import re
from typing import Optional

from .errors import UnsupportedEncodingError

UTF8 = "utf-8"
LATIN1 = "iso-8859-1"
SUPPORTED_ENCODINGS = (UTF8, LATIN1)

_ALIASES = {
    "utf-8": UTF8,
    "utf8": UTF8,
    "iso-8859-1": LATIN1,
    "iso8859-1": LATIN1,
    "latin1": LATIN1,
    "latin-1": LATIN1,
}

_XML_ENCODING_RE = re.compile(r"""<\?xml[^>]*encoding=["']([^"']+)["']""", re.IGNORECASE)
_DECLARATION_WINDOW = 512


def normalise_encoding(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    return _ALIASES.get(name.strip().lower().replace("_", "-"))


def detect_xml_encoding(data: bytes) -> str:
    """Read the encoding declared in the XML prolog; UTF-8 when none is given."""

    header = data[:_DECLARATION_WINDOW].decode(LATIN1)
    match = _XML_ENCODING_RE.search(header)
    if not match:
        return UTF8
    declared = match.group(1)
    encoding = normalise_encoding(declared)
    if encoding is None:
        raise UnsupportedEncodingError(
            f'Unsupported XML encoding "{declared}". '
            "Supported encodings are UTF-8 and ISO-8859-1."
        )
    return encoding


def decode_xml(data: bytes) -> str:
    return data.decode(detect_xml_encoding(data), errors="replace")


def decode_unip(data: bytes, encoding: Optional[str] = LATIN1) -> str:
    """Decode a UNI_p upload with the caller-selected encoding."""

    resolved = normalise_encoding(encoding)
    if resolved is None:
        raise UnsupportedEncodingError(
            f'Unsupported UNI_p encoding "{encoding}". '
            "Supported encodings are UTF-8 and ISO-8859-1."
        )
    return data.decode(resolved, errors="replace")


__all__ = [
    "LATIN1",
    "SUPPORTED_ENCODINGS",
    "UTF8",
    "decode_unip",
    "decode_xml",
    "detect_xml_encoding",
    "normalise_encoding",
]
