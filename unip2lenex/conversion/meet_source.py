"""Load Lenex meet definitions from disk or from a published URL."""

from __future__ import annotations

import logging
from pathlib import Path

import requests

from .encoding import decode_xml
from .errors import LenexParseError
from .lenex_reader import LenexMeet, parse_lenex_meet

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; UniPToLenex/1.0)"
DEFAULT_TIMEOUT = 30


def load_meet_bytes(data: bytes) -> LenexMeet:
    """Decode raw Lenex bytes (UTF-8 or ISO-8859-1) and read the catalog."""

    return parse_lenex_meet(decode_xml(data))


def load_meet_file(path: Path) -> LenexMeet:
    return load_meet_bytes(Path(path).read_bytes())


def fetch_meet(url: str, *, timeout: float = DEFAULT_TIMEOUT) -> LenexMeet:
    """Download a meet definition published by the organiser."""

    try:
        response = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Unable to download Lenex meet from %s: %s", url, exc)
        raise LenexParseError(f"Could not download Lenex meet: {exc}") from exc
    logger.info("Downloaded %d byte(s) of Lenex from %s", len(response.content), url)
    return load_meet_bytes(response.content)


__all__ = ["DEFAULT_TIMEOUT", "fetch_meet", "load_meet_bytes", "load_meet_file"]
