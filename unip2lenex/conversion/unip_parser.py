"""Parsing helpers for UNI_p registration files.

UNI_p is the terse entry format clubs use to submit swimmers. The first
non-blank line holds the club name, every following non-blank line is one
registration with 15 comma-separated fields:

* field 1: event number;
* field 2: distance, either ``100`` or ``4*50`` for relays;
* field 3: two-letter stroke code (``FR``, ``BR``, ``RY``, ``BU``, ``IM``, ``LM``);
* fields 4-5: last name (team name for relays) and first name;
* field 7: gender letter followed by a class (``M65``, ``KJR``, ``XMC``);
* field 8: birth year, relay class or para classification (``S5``, ``SB7``);
* fields 9, 11, 12: qualification time, date and place;
* field 13: pool course (``K`` short course, ``L`` long course).

Rows are never rejected. Each problem is recorded as a human readable issue on
the row so the whole file can be reviewed at once.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import UniPParseError
from .rules import (
    AGE_GROUPS,
    BORN_YY_PREFIX,
    GENDERS,
    PARA_PREFIX_BY_STROKE,
    POOL_COURSES,
    RELAY_CLASSES,
    STROKES,
    is_four_digit_year,
    looks_like_para_class,
    parse_para_class,
)

logger = logging.getLogger(__name__)

FIELD_COUNT = 15

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_RELAY_DISTANCE_RE = re.compile(r"^(\d+)\s*\*\s*(\d+)$")
_DIGITS_RE = re.compile(r"^\d+$")
_TWO_DIGITS_RE = re.compile(r"^\d{2}$")
_MASTERS_RELAY_FIELD_RE = re.compile(r"^[MKX]M(.)$")
_ALLOWED_MASTERS_RELAY_RE = re.compile(r"^[OA-G]$")


@dataclass(frozen=True)
class UniPRow:
    """One decoded registration line."""

    line_number: int
    event_number: Optional[int]
    relay_count: int
    distance: Optional[int]
    stroke_code: str
    stroke: str
    last_name: str
    first_name: str
    gender: str
    age_group_code: str
    birth_year_or_class: str
    qualification_time: Optional[str] = None
    qualification_date: Optional[str] = None
    qualification_place: Optional[str] = None
    pool_course: Optional[str] = None
    issues: Tuple[str, ...] = ()

    @property
    def is_relay(self) -> bool:
        return self.relay_count > 1

    def as_dict(self) -> dict[str, object]:
        return {
            "line_number": self.line_number,
            "event_number": self.event_number,
            "relay_count": self.relay_count,
            "distance": self.distance,
            "stroke_code": self.stroke_code,
            "stroke": self.stroke,
            "last_name": self.last_name,
            "first_name": self.first_name,
            "gender": self.gender,
            "age_group_code": self.age_group_code,
            "birth_year_or_class": self.birth_year_or_class,
            "qualification_time": self.qualification_time,
            "qualification_date": self.qualification_date,
            "qualification_place": self.qualification_place,
            "pool_course": self.pool_course,
            "issues": list(self.issues),
        }


@dataclass
class UniPFile:
    """Club name plus every registration row in file order."""

    club_name: str
    rows: List[UniPRow] = field(default_factory=list)


def _normalise(value: Optional[str]) -> str:
    return (value or "").strip()


def _optional(value: str) -> Optional[str]:
    value = _normalise(value)
    return value or None


def _parse_distance(value: str) -> Tuple[int, Optional[int], List[str]]:
    trimmed = _normalise(value)
    relay_match = _RELAY_DISTANCE_RE.match(trimmed)
    if relay_match:
        return int(relay_match.group(1)), int(relay_match.group(2)), []
    if _DIGITS_RE.match(trimmed):
        return 1, int(trimmed), []
    return 1, None, ["Field 2 (distance) is invalid"]


def _parse_gender_and_age_group(value: str) -> Tuple[str, str, List[str]]:
    trimmed = _normalise(value).upper()
    if not trimmed:
        return "", "", ["Field 7 (gender+agegroup) is missing"]

    gender_code = trimmed[0]
    gender = GENDERS.get(gender_code, "")
    raw_age_group = trimmed[1:]
    if _TWO_DIGITS_RE.match(raw_age_group):
        age_group_code = f"{BORN_YY_PREFIX}{raw_age_group}"
    else:
        age_group_code = AGE_GROUPS.get(raw_age_group, raw_age_group)

    issues: List[str] = []
    if not gender:
        issues.append(f'Unknown gender code "{gender_code}" in field 7')
    if not raw_age_group:
        issues.append("Field 7 agegroup part is missing")
    return gender, age_group_code, issues


def _parse_birth_year_or_class(
    value: str, *, is_relay: bool, age_group_code: str
) -> Tuple[str, List[str]]:
    trimmed = _normalise(value).upper()
    if not trimmed:
        if is_relay:
            return age_group_code, []
        return "", ["Field 8 (birth year/class) is missing"]

    if is_four_digit_year(trimmed):
        return trimmed, []
    if trimmed in RELAY_CLASSES:
        return RELAY_CLASSES[trimmed], []
    if parse_para_class(trimmed):
        return trimmed, []
    if looks_like_para_class(trimmed):
        return trimmed, [
            f'Invalid para class "{trimmed}" (accepted: S1-S15, SB1-SB15, SM1-SM15)'
        ]
    return trimmed, []


def _pad_fields(line: str) -> List[str]:
    fields = line.split(",")
    if len(fields) < FIELD_COUNT:
        fields.extend([""] * (FIELD_COUNT - len(fields)))
    return fields


def parse_line(line: str, *, line_number: int) -> UniPRow:
    """Decode a single UNI_p data line into a :class:`UniPRow`."""

    fields = _pad_fields(line)

    relay_count, distance, distance_issues = _parse_distance(fields[1])
    is_relay = relay_count > 1
    stroke_code = _normalise(fields[2]).upper()
    stroke = STROKES.get(stroke_code, "")
    last_name = _normalise(fields[3])
    first_name = _normalise(fields[4])
    gender, age_group_code, gender_issues = _parse_gender_and_age_group(fields[6])
    birth_year_or_class, birth_issues = _parse_birth_year_or_class(
        fields[7], is_relay=is_relay, age_group_code=age_group_code
    )
    raw_gender_field = _normalise(fields[6]).upper()

    issues: List[str] = [*distance_issues, *gender_issues, *birth_issues]

    raw_event_number = _normalise(fields[0])
    event_number = int(raw_event_number) if _DIGITS_RE.match(raw_event_number) else None
    if event_number is None:
        issues.append("Field 1 (event number) is missing or invalid")

    if not stroke:
        issues.append(f'Field 3 (stroke) value "{stroke_code}" is unknown')

    if not last_name:
        issues.append("Field 4 (last name/team) is missing")

    if not is_relay and not first_name:
        issues.append("Field 5 (first name) is missing for an individual event")

    if is_relay:
        masters_match = _MASTERS_RELAY_FIELD_RE.match(raw_gender_field)
        if masters_match and not _ALLOWED_MASTERS_RELAY_RE.match(masters_match.group(1)):
            issues.append(
                f'Invalid masters relay class in field 7 "{raw_gender_field}" (allowed: O, A-G)'
            )
    elif stroke:
        para_class = parse_para_class(birth_year_or_class)
        expected_prefix = PARA_PREFIX_BY_STROKE.get(stroke)
        if para_class and expected_prefix and para_class[0] != expected_prefix:
            issues.append(
                f'Invalid para class "{birth_year_or_class}" for stroke {stroke_code} '
                f"(expected {expected_prefix} class)"
            )

    return UniPRow(
        line_number=line_number,
        event_number=event_number,
        relay_count=relay_count,
        distance=distance,
        stroke_code=stroke_code,
        stroke=stroke,
        last_name=last_name,
        first_name=first_name,
        gender=gender,
        age_group_code=age_group_code,
        birth_year_or_class=birth_year_or_class,
        qualification_time=_optional(fields[8]),
        qualification_date=_optional(fields[10]),
        qualification_place=_optional(fields[11]),
        pool_course=POOL_COURSES.get(_normalise(fields[12]).upper()),
        issues=tuple(issues),
    )


def parse_unip(content: str) -> UniPFile:
    """Parse the full text of a UNI_p file.

    Raises :class:`UniPParseError` only when the file has no non-blank lines;
    every other problem is reported on the affected row.
    """

    lines = [line for line in _LINE_SPLIT_RE.split(content) if line.strip()]
    if not lines:
        raise UniPParseError("UNI_p file is empty.")

    club_name = lines[0].strip()
    rows: List[UniPRow] = []
    for index, line in enumerate(lines[1:], start=2):
        row = parse_line(line, line_number=index)
        if row.issues:
            logger.debug("UNI_p line %d has issues: %s", index, "; ".join(row.issues))
        rows.append(row)

    logger.info(
        "Parsed %d UNI_p row(s) for club %r (%d with issues)",
        len(rows),
        club_name,
        sum(1 for row in rows if row.issues),
    )
    return UniPFile(club_name=club_name, rows=rows)


__all__ = ["FIELD_COUNT", "UniPFile", "UniPRow", "parse_line", "parse_unip"]
