"""Write generated entries back into the uploaded Lenex meet document."""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from lxml import etree

from .entry_builder import Athlete, Entry, EntryBuild, Relay, build_entries
from .errors import ConversionError
from .lenex_reader import LenexMeet, events_by_number, find_meet_element, strip_event_heats
from .unip_parser import UniPFile
from .validator import validate_rows

logger = logging.getLogger(__name__)

LENEX_VERSION = "3.0"
CONSTRUCTOR_NAME = "UNI_p-to-Lenex"
CONSTRUCTOR_VERSION = "1"
CONTACT_NAME = "Håkon Strandenes"
CONTACT_EMAIL = "haakon@hakostra.net"
UNKNOWN_CLUB = "Unknown Club"
XML_DECLARATION = b'<?xml version="1.0" encoding="UTF-8"?>\n'
INDENT = "  "

_FILENAME_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9_-]+")


def _set_attributes(element: etree._Element, attributes: Mapping[str, object]) -> None:
    """Set non-empty attributes; ``None`` and ``""`` are left out."""

    for name, value in attributes.items():
        if value is None or value == "":
            continue
        element.set(name, str(value))


def _replace_children(element: etree._Element) -> None:
    for child in list(element):
        element.remove(child)
    element.text = None


def _stamp_constructor(root: etree._Element) -> None:
    constructor = root.find("CONSTRUCTOR")
    if constructor is None:
        constructor = etree.Element("CONSTRUCTOR")
        root.insert(0, constructor)
    _set_attributes(constructor, {"name": CONSTRUCTOR_NAME, "version": CONSTRUCTOR_VERSION})
    _replace_children(constructor)
    contact = etree.SubElement(constructor, "CONTACT")
    _set_attributes(contact, {"name": CONTACT_NAME, "email": CONTACT_EMAIL})


def _entry_element(entry: Entry) -> etree._Element:
    element = etree.Element("ENTRY")
    _set_attributes(
        element,
        {
            "eventid": entry.event_id,
            "entrytime": entry.entry_time,
            "entrycourse": entry.entry_course,
        },
    )
    if entry.has_meet_info:
        meet_info = etree.SubElement(element, "MEETINFO")
        _set_attributes(
            meet_info,
            {
                "course": entry.entry_course,
                "date": entry.meet_info_date,
                "city": entry.meet_info_city,
            },
        )
    return element


def _athlete_element(athlete: Athlete) -> etree._Element:
    element = etree.Element("ATHLETE")
    _set_attributes(
        element,
        {
            "athleteid": athlete.athlete_id,
            "birthdate": athlete.birthdate,
            "firstname": athlete.first_name,
            "lastname": athlete.last_name,
            "gender": athlete.gender,
        },
    )
    entries = etree.SubElement(element, "ENTRIES")
    for entry in athlete.entries:
        entries.append(_entry_element(entry))
    if athlete.handicap:
        _set_attributes(etree.SubElement(element, "HANDICAP"), athlete.handicap)
    return element


def _relay_element(relay: Relay) -> etree._Element:
    element = etree.Element("RELAY")
    _set_attributes(
        element,
        {
            "number": relay.number,
            "name": relay.name,
            "agemin": relay.agemin,
            "agemax": relay.agemax,
            "agetotalmin": relay.agetotalmin,
            "agetotalmax": relay.agetotalmax,
            "gender": relay.gender,
        },
    )
    entries = etree.SubElement(element, "ENTRIES")
    entries.append(_entry_element(relay.entry))
    return element


def _club_element(club_name: str, build: EntryBuild) -> etree._Element:
    club = etree.Element("CLUB")
    _set_attributes(club, {"name": club_name or UNKNOWN_CLUB})
    athletes = etree.SubElement(club, "ATHLETES")
    for athlete in build.athletes:
        athletes.append(_athlete_element(athlete))
    relays = etree.SubElement(club, "RELAYS")
    for relay in build.relays:
        relays.append(_relay_element(relay))
    return club


def serialize_document(root: etree._Element) -> bytes:
    """UTF-8 bytes with a standard declaration and two-space indentation."""

    etree.indent(root, space=INDENT)
    body = etree.tostring(root, encoding="UTF-8", xml_declaration=False)
    return XML_DECLARATION + body + b"\n"


def merge_entries(meet: LenexMeet, club_name: str, build: EntryBuild) -> bytes:
    """Return a copy of the meet document whose club roster holds ``build``.

    Only ``MEET/CLUBS`` is replaced and the constructor block restamped; all
    sessions, events and age groups are carried over from the original tree.
    """

    root = copy.deepcopy(meet.document)
    meet_element = find_meet_element(root)
    if meet_element is None:
        raise ConversionError("Could not find MEET element for export.")

    strip_event_heats(root)
    root.set("version", LENEX_VERSION)
    _stamp_constructor(root)

    clubs = meet_element.find("CLUBS")
    if clubs is None:
        clubs = etree.SubElement(meet_element, "CLUBS")
    _replace_children(clubs)
    clubs.append(_club_element(club_name, build))

    return serialize_document(root)


def export_filename(meet_name: str, club_name: str) -> str:
    meet_segment = _FILENAME_UNSAFE_RE.sub("-", (meet_name or "meet").lower())
    club_segment = _FILENAME_UNSAFE_RE.sub("-", (club_name or "club").lower())
    return f"{meet_segment}-{club_segment}.lef"


@dataclass
class ConversionResult:
    """Entries document plus the skip counters reported to the user."""

    xml: bytes
    filename: str
    rows_total: int
    exported_rows: int
    skipped_with_issues: int
    skipped_during_build: int

    @property
    def total_skipped(self) -> int:
        return self.skipped_with_issues + self.skipped_during_build

    @property
    def warning(self) -> Optional[str]:
        if self.total_skipped > 0:
            return f"Skipped {self.total_skipped} entries with issues."
        return None

    def as_dict(self) -> dict[str, object]:
        return {
            "filename": self.filename,
            "rows_total": self.rows_total,
            "exported_rows": self.exported_rows,
            "skipped_with_issues": self.skipped_with_issues,
            "skipped_during_build": self.skipped_during_build,
            "warning": self.warning,
        }


def convert(
    unip: UniPFile,
    meet: Optional[LenexMeet],
    *,
    reference_year: Optional[int] = None,
) -> ConversionResult:
    """Validate, build and merge in one step, as done when exporting entries."""

    if meet is None:
        raise ConversionError("Upload a Lenex meet definition before exporting entries.")

    report = validate_rows(unip, meet, reference_year=reference_year)
    exportable = report.exportable_rows
    if not exportable:
        raise ConversionError("No valid UNI_p entries to export.")

    build = build_entries(exportable, events_by_number(meet), reference_year=reference_year)
    xml = merge_entries(meet, unip.club_name, build)
    result = ConversionResult(
        xml=xml,
        filename=export_filename(meet.name, unip.club_name),
        rows_total=report.rows_total,
        exported_rows=len(exportable) - build.skipped_during_build,
        skipped_with_issues=report.rows_with_issues,
        skipped_during_build=build.skipped_during_build,
    )
    if result.warning:
        logger.warning(
            "%s (%d with issues, %d without an open event)",
            result.warning,
            result.skipped_with_issues,
            result.skipped_during_build,
        )
    return result


__all__ = [
    "CONSTRUCTOR_NAME",
    "ConversionResult",
    "LENEX_VERSION",
    "convert",
    "export_filename",
    "merge_entries",
    "serialize_document",
]
