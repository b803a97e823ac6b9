"""Static lookup tables and small eligibility rules shared by the converter.

UNI_p encodes strokes, genders and age classes as short codes. Lenex uses the
long names. Keeping every mapping here means the parser, the validator and the
entry builder agree on the same vocabulary.
"""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from typing import Optional

STROKES = {
    "FR": "FREE",
    "BR": "BREAST",
    "RY": "BACK",
    "BU": "FLY",
    "IM": "MEDLEY",
    "LM": "MEDLEY",
}

GENDERS = {
    "M": "M",
    "K": "F",
    "X": "X",
}

MASTERS_LETTERS = "ABCDEFGHIJKLMNO"

AGE_GROUPS = {
    "JR": "Junior",
    "SR": "Senior",
    **{f"M{letter}": f"Masters {letter}" for letter in MASTERS_LETTERS},
}

RELAY_CLASSES = {
    "JUNIOR": "Junior",
    "SENIOR": "Senior",
    **{f"MASTERS{letter}": f"Masters {letter}" for letter in MASTERS_LETTERS},
}

POOL_COURSES = {
    "K": "SCM",
    "L": "LCM",
}

# Rounds that no longer accept new registrations.
FORBIDDEN_ROUNDS = frozenset({"FIN", "SEM", "QUA", "SOP", "SOS", "SOQ"})

PARA_PREFIX_BY_STROKE = {
    "FREE": "S",
    "BACK": "S",
    "FLY": "S",
    "BREAST": "SB",
    "MEDLEY": "SM",
}

HANDICAP_ATTRIBUTE_BY_PREFIX = {
    "S": "free",
    "SB": "breast",
    "SM": "medley",
}


@dataclass(frozen=True)
class AgeBand:
    """Inclusive total-age band of a masters relay."""

    minimum: int
    maximum: int


MASTERS_RELAY_AGE_BANDS = {
    "O": AgeBand(80, 99),
    "A": AgeBand(100, 119),
    "B": AgeBand(120, 159),
    "C": AgeBand(160, 199),
    "D": AgeBand(200, 239),
    "E": AgeBand(240, 279),
    "F": AgeBand(280, 319),
    "G": AgeBand(320, 359),
}

BORN_YY_PREFIX = "Born YY="

_PARA_CLASS_RE = re.compile(r"^(SB|SM|S)(1[0-5]|[1-9])$")
_PARA_PREFIX_RE = re.compile(r"^(SB|SM|S)\d+$")
_BORN_YY_RE = re.compile(r"^Born YY=(\d{2})$")
_FOUR_DIGIT_YEAR_RE = re.compile(r"^\d{4}$")
_MASTERS_CLASS_RE = re.compile(r"^Masters\s+([OA-G])$", re.IGNORECASE)


def parse_para_class(value: str) -> Optional[tuple[str, str]]:
    """Split a para-classification token into ``(prefix, level)``.

    Only levels 1-15 are recognised; ``SB16`` or ``S0`` return ``None``.
    """

    match = _PARA_CLASS_RE.match(value.strip().upper())
    if not match:
        return None
    return match.group(1), match.group(2)


def looks_like_para_class(value: str) -> bool:
    return bool(_PARA_PREFIX_RE.match(value.strip().upper()))


def is_four_digit_year(value: str) -> bool:
    return bool(_FOUR_DIGIT_YEAR_RE.match(value))


def current_year() -> int:
    return datetime.date.today().year


def infer_full_year(age_group_code: str, *, reference_year: Optional[int] = None) -> Optional[str]:
    """Expand a ``Born YY=NN`` marker into a four-digit year.

    Two-digit years up to the reference year's last two digits belong to the
    current century, later ones to the previous century.
    """

    match = _BORN_YY_RE.match(age_group_code)
    if not match:
        return None
    yy = int(match.group(1))
    year = reference_year if reference_year is not None else current_year()
    if yy <= year % 100:
        return str(2000 + yy)
    return str(1900 + yy)


def infer_birth_year(row, *, reference_year: Optional[int] = None) -> Optional[str]:
    if is_four_digit_year(row.birth_year_or_class):
        return row.birth_year_or_class
    return infer_full_year(row.age_group_code, reference_year=reference_year)


def is_junior_relay(row) -> bool:
    return row.is_relay and row.age_group_code.strip().lower() == "junior"


def masters_relay_age_band(row) -> Optional[AgeBand]:
    for value in (row.birth_year_or_class, row.age_group_code):
        match = _MASTERS_CLASS_RE.match(value.strip())
        if match:
            return MASTERS_RELAY_AGE_BANDS.get(match.group(1).upper())
    return None


__all__ = [
    "AGE_GROUPS",
    "AgeBand",
    "BORN_YY_PREFIX",
    "FORBIDDEN_ROUNDS",
    "GENDERS",
    "HANDICAP_ATTRIBUTE_BY_PREFIX",
    "MASTERS_RELAY_AGE_BANDS",
    "PARA_PREFIX_BY_STROKE",
    "POOL_COURSES",
    "RELAY_CLASSES",
    "STROKES",
    "infer_birth_year",
    "infer_full_year",
    "is_four_digit_year",
    "is_junior_relay",
    "looks_like_para_class",
    "masters_relay_age_band",
    "parse_para_class",
]
