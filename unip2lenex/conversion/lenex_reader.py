"""Read the event catalog out of a Lenex meet definition.

Only the parts of the document needed to match registrations are decoded:
``LENEX/MEETS/MEET/SESSIONS/SESSION/EVENTS/EVENT`` with its ``SWIMSTYLE`` and
``AGEGROUPS``. The parsed tree is kept on the returned :class:`LenexMeet` so the
merger can write entries back into the same document.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from lxml import etree

from .errors import LenexParseError

logger = logging.getLogger(__name__)

_XML_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>")


@dataclass(frozen=True)
class LenexAgeGroup:
    agemin: int
    agemax: int
    name: str

    def allows(self, age: int) -> bool:
        """Negative bounds mean the side is open."""

        min_ok = self.agemin < 0 or age >= self.agemin
        max_ok = self.agemax < 0 or age <= self.agemax
        return min_ok and max_ok


@dataclass(frozen=True)
class LenexEvent:
    number: str
    event_id: str
    gender: str
    round: str
    name: str
    stroke: str
    relay_count: int
    distance: int
    session_date: str
    age_groups: tuple[LenexAgeGroup, ...] = ()

    def allows_age(self, age: int) -> bool:
        if not self.age_groups:
            return True
        return any(group.allows(age) for group in self.age_groups)

    def has_age_group(self, name: str) -> bool:
        wanted = name.strip().lower()
        return any(group.name.strip().lower() == wanted for group in self.age_groups)

    def as_dict(self) -> dict[str, object]:
        return {
            "number": self.number,
            "event_id": self.event_id,
            "gender": self.gender,
            "round": self.round,
            "name": self.name,
            "stroke": self.stroke,
            "relay_count": self.relay_count,
            "distance": self.distance,
            "session_date": self.session_date,
            "age_groups": [
                {"agemin": group.agemin, "agemax": group.agemax, "name": group.name}
                for group in self.age_groups
            ],
        }


@dataclass
class LenexSession:
    number: str
    name: str
    date: str
    events: List[LenexEvent] = field(default_factory=list)


@dataclass
class LenexMeet:
    """Meet summary plus the document it was read from."""

    name: str
    city: str
    nation: str
    course: str
    sessions: List[LenexSession]
    document: etree._Element = field(repr=False, compare=False)

    @property
    def total_events(self) -> int:
        return sum(len(session.events) for session in self.sessions)

    @property
    def summary_text(self) -> str:
        return f"{len(self.sessions)} sessions · {self.total_events} events"

    def iter_events(self):
        for session in self.sessions:
            yield from session.events

    def as_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "city": self.city,
            "nation": self.nation,
            "course": self.course,
            "total_events": self.total_events,
            "summary": self.summary_text,
            "sessions": [
                {
                    "number": session.number,
                    "name": session.name,
                    "date": session.date,
                    "events": [event.as_dict() for event in session.events],
                }
                for session in self.sessions
            ],
        }


def _attribute(element: Optional[etree._Element], name: str) -> str:
    if element is None:
        return ""
    return element.get(name) or ""


def _int_attribute(element: Optional[etree._Element], name: str) -> int:
    value = _attribute(element, name).strip()
    try:
        return int(value)
    except ValueError:
        return 0


def _build_parser() -> etree.XMLParser:
    return etree.XMLParser(
        remove_blank_text=True,
        resolve_entities=False,
        no_network=True,
        huge_tree=False,
    )


def load_document(xml: Union[str, bytes]) -> etree._Element:
    """Parse Lenex XML into an element tree, raising :class:`LenexParseError`."""

    if isinstance(xml, str):
        # lxml refuses unicode input that still carries an encoding declaration.
        xml = _XML_DECLARATION_RE.sub("", xml, count=1).encode("utf-8")
    try:
        return etree.fromstring(xml, parser=_build_parser())
    except (etree.XMLSyntaxError, ValueError) as exc:
        logger.info("Rejected Lenex upload: %s", exc)
        raise LenexParseError("The uploaded file is not valid XML.") from exc


def find_meet_element(root: etree._Element) -> Optional[etree._Element]:
    if root.tag != "LENEX":
        return None
    return root.find("MEETS/MEET")


def strip_event_heats(root: etree._Element) -> int:
    """Remove ``EVENT/HEATS`` schedules in place and return how many were dropped."""

    heats = list(root.iterfind(".//EVENT/HEATS"))
    for element in heats:
        element.getparent().remove(element)
    return len(heats)


def _parse_event(element: etree._Element, session_date: str) -> LenexEvent:
    swim_style = element.find(".//SWIMSTYLE")
    age_groups = tuple(
        LenexAgeGroup(
            agemin=_int_attribute(group, "agemin"),
            agemax=_int_attribute(group, "agemax"),
            name=_attribute(group, "name"),
        )
        for group in element.iterfind("AGEGROUPS/AGEGROUP")
    )
    return LenexEvent(
        number=_attribute(element, "number"),
        event_id=_attribute(element, "eventid"),
        gender=_attribute(element, "gender"),
        round=_attribute(element, "round"),
        name=_attribute(swim_style, "name"),
        stroke=_attribute(swim_style, "stroke"),
        relay_count=_int_attribute(swim_style, "relaycount"),
        distance=_int_attribute(swim_style, "distance"),
        session_date=session_date,
        age_groups=age_groups,
    )


def _parse_session(element: etree._Element) -> LenexSession:
    date = _attribute(element, "date")
    return LenexSession(
        number=_attribute(element, "number"),
        name=_attribute(element, "name"),
        date=date,
        events=[_parse_event(event, date) for event in element.iterfind("EVENTS/EVENT")],
    )


def parse_lenex_meet(xml: Union[str, bytes, etree._Element]) -> LenexMeet:
    """Decode a Lenex meet definition into sessions and events.

    Heat schedules are dropped from the retained document; they are stale
    for entry submission.
    """

    root = xml if isinstance(xml, etree._Element) else load_document(xml)
    meet_element = find_meet_element(root)
    if meet_element is None:
        raise LenexParseError("Could not find a MEET element in this Lenex file.")

    removed = strip_event_heats(root)
    if removed:
        logger.debug("Dropped %d HEATS element(s) from Lenex document", removed)

    sessions = [_parse_session(session) for session in meet_element.iterfind("SESSIONS/SESSION")]
    meet = LenexMeet(
        name=_attribute(meet_element, "name"),
        city=_attribute(meet_element, "city"),
        nation=_attribute(meet_element, "nation"),
        course=_attribute(meet_element, "course"),
        sessions=sessions,
        document=root,
    )
    logger.info("Loaded Lenex meet %r: %s", meet.name, meet.summary_text)
    return meet


def events_by_number(meet: Optional[LenexMeet]) -> Dict[str, List[LenexEvent]]:
    """Index events by number; several rounds can share one number."""

    index: Dict[str, List[LenexEvent]] = {}
    if meet is None:
        return index
    for event in meet.iter_events():
        index.setdefault(event.number, []).append(event)
    return index


__all__ = [
    "LenexAgeGroup",
    "LenexEvent",
    "LenexMeet",
    "LenexSession",
    "events_by_number",
    "find_meet_element",
    "load_document",
    "parse_lenex_meet",
    "strip_event_heats",
]
