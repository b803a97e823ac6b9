"""Turn exportable UNI_p rows into Lenex athletes, relays and entries.

The builder only decides *what* gets written: which event each row enters,
which athlete it belongs to and which age attributes a relay carries. The
document merger renders the result into XML.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .lenex_reader import LenexEvent
from .rules import (
    FORBIDDEN_ROUNDS,
    HANDICAP_ATTRIBUTE_BY_PREFIX,
    infer_birth_year,
    is_junior_relay,
    masters_relay_age_band,
    parse_para_class,
)
from .unip_parser import UniPRow
from .validator import EventIndex, event_matches

logger = logging.getLogger(__name__)

UNBOUNDED = -1

_COMPACT_DATE_RE = re.compile(r"^\d{8}$")


@dataclass
class Entry:
    event_id: str
    entry_time: Optional[str] = None
    entry_course: Optional[str] = None
    meet_info_date: Optional[str] = None
    meet_info_city: Optional[str] = None

    @property
    def has_meet_info(self) -> bool:
        return bool(self.meet_info_date or self.meet_info_city)


@dataclass
class Athlete:
    athlete_id: int
    last_name: str
    first_name: str
    gender: str
    birth_year: Optional[str]
    entries: List[Entry] = field(default_factory=list)
    # Lenex HANDICAP attributes (free/breast/medley) -> classification level.
    handicap: Dict[str, str] = field(default_factory=dict)

    @property
    def birthdate(self) -> Optional[str]:
        return f"{self.birth_year}-01-01" if self.birth_year else None


@dataclass
class Relay:
    number: int
    name: str
    gender: str
    entry: Entry
    agemin: int = UNBOUNDED
    agemax: int = UNBOUNDED
    agetotalmin: int = UNBOUNDED
    agetotalmax: int = UNBOUNDED


@dataclass
class EntryBuild:
    athletes: List[Athlete] = field(default_factory=list)
    relays: List[Relay] = field(default_factory=list)
    skipped_during_build: int = 0

    @property
    def entry_count(self) -> int:
        return sum(len(athlete.entries) for athlete in self.athletes) + len(self.relays)


def to_lenex_entry_time(value: Optional[str]) -> Optional[str]:
    """``mm:ss.hh`` gains an hours field; ``hh:mm:ss.hh`` passes through."""

    if not value:
        return None
    trimmed = value.strip()
    segments = trimmed.split(":")
    if len(segments) == 2:
        return f"00:{trimmed}"
    if len(segments) == 3:
        return trimmed
    return None


def to_lenex_date(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    compact = value.strip()
    if _COMPACT_DATE_RE.match(compact):
        return f"{compact[:4]}-{compact[4:6]}-{compact[6:]}"
    return compact


def handicap_from_class(value: str) -> Optional[tuple[str, str]]:
    para_class = parse_para_class(value)
    if para_class is None:
        return None
    prefix, level = para_class
    return HANDICAP_ATTRIBUTE_BY_PREFIX[prefix], level


def junior_relay_age_max(row: UniPRow, event: LenexEvent) -> int:
    if not is_junior_relay(row):
        return UNBOUNDED
    for group in event.age_groups:
        if group.name.strip().lower() == "junior":
            return group.agemax
    return UNBOUNDED


def find_matching_event(row: UniPRow, index: EventIndex) -> Optional[LenexEvent]:
    """First event, in catalog order, that is open for entries and fits the row."""

    if row.event_number is None:
        return None
    for event in index.get(str(row.event_number)) or []:
        if event.round not in FORBIDDEN_ROUNDS and event_matches(event, row):
            return event
    return None


def athlete_key(row: UniPRow, birth_year: Optional[str]) -> str:
    # Swimmers without a known birth year but equal names merge into one athlete.
    return "|".join((row.last_name, row.first_name, row.gender, birth_year or ""))


def _build_entry(row: UniPRow, event: LenexEvent) -> Entry:
    return Entry(
        event_id=event.event_id,
        entry_time=to_lenex_entry_time(row.qualification_time),
        entry_course=row.pool_course,
        meet_info_date=to_lenex_date(row.qualification_date),
        meet_info_city=row.qualification_place,
    )


def _build_relay(row: UniPRow, event: LenexEvent, number: int) -> Relay:
    band = masters_relay_age_band(row)
    return Relay(
        number=number,
        name=row.last_name,
        gender=row.gender,
        entry=_build_entry(row, event),
        agemax=junior_relay_age_max(row, event),
        agetotalmin=band.minimum if band else UNBOUNDED,
        agetotalmax=band.maximum if band else UNBOUNDED,
    )


def build_entries(
    rows: Iterable[UniPRow],
    index: EventIndex,
    *,
    reference_year: Optional[int] = None,
) -> EntryBuild:
    """Resolve the winning event for every row and group entries by swimmer.

    Rows without a winning event are counted in ``skipped_during_build``.
    """

    build = EntryBuild()
    athletes: Dict[str, Athlete] = {}

    for row in rows:
        event = find_matching_event(row, index)
        if event is None:
            build.skipped_during_build += 1
            logger.debug("No open event for UNI_p line %d", row.line_number)
            continue

        if row.is_relay:
            build.relays.append(_build_relay(row, event, len(build.relays) + 1))
            continue

        birth_year = infer_birth_year(row, reference_year=reference_year)
        key = athlete_key(row, birth_year)
        athlete = athletes.get(key)
        if athlete is None:
            athlete = Athlete(
                athlete_id=len(athletes) + 1,
                last_name=row.last_name,
                first_name=row.first_name,
                gender=row.gender,
                birth_year=birth_year,
            )
            athletes[key] = athlete
            build.athletes.append(athlete)

        handicap = handicap_from_class(row.birth_year_or_class)
        if handicap:
            attribute, level = handicap
            athlete.handicap[attribute] = level

        athlete.entries.append(_build_entry(row, event))

    logger.info(
        "Built %d athlete(s), %d relay(s), %d entry(ies); %d row(s) skipped",
        len(build.athletes),
        len(build.relays),
        build.entry_count,
        build.skipped_during_build,
    )
    return build


__all__ = [
    "Athlete",
    "Entry",
    "EntryBuild",
    "Relay",
    "UNBOUNDED",
    "athlete_key",
    "build_entries",
    "find_matching_event",
    "handicap_from_class",
    "junior_relay_age_max",
    "to_lenex_date",
    "to_lenex_entry_time",
]
