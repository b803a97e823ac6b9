from pathlib import Path

import pytest
from lxml import etree

from unip2lenex.conversion import (
    ConversionError,
    EntryBuild,
    convert,
    export_filename,
    merge_entries,
    parse_lenex_meet,
    parse_unip,
)

FIXTURES = Path(__file__).resolve().parent / "fixtures"
REFERENCE_YEAR = 2024


def _load_meet():
    return parse_lenex_meet((FIXTURES / "meet.lef").read_bytes())


def _load_unip():
    return parse_unip((FIXTURES / "club.txt").read_text(encoding="utf-8"))


def _convert():
    return convert(_load_unip(), _load_meet(), reference_year=REFERENCE_YEAR)


def test_output_declaration_and_indentation():
    xml = _convert().xml

    assert xml.startswith(b'<?xml version="1.0" encoding="UTF-8"?>\n<LENEX')
    lines = xml.decode("utf-8").splitlines()
    assert lines[2].startswith("  <")
    assert lines[2].lstrip().startswith("<CONSTRUCTOR")
    assert all(not line.startswith("\t") for line in lines)


def test_club_roster_is_replaced():
    root = etree.fromstring(_convert().xml)

    assert root.get("version") == "3.0"
    clubs = root.findall("MEETS/MEET/CLUBS/CLUB")
    assert [club.get("name") for club in clubs] == ["Bergen Svømmeklubb"]
    assert root.find(".//ATHLETE[@athleteid='77']") is None

    athletes = clubs[0].findall("ATHLETES/ATHLETE")
    assert [athlete.get("lastname") for athlete in athletes] == ["Hansen", "Berg"]
    hansen = athletes[0]
    assert hansen.get("athleteid") == "1"
    assert hansen.get("birthdate") == "1965-01-01"
    assert hansen.get("gender") == "M"
    assert [entry.get("eventid") for entry in hansen.findall("ENTRIES/ENTRY")] == ["101", "104"]
    assert dict(hansen.find("HANDICAP").attrib) == {"free": "5", "medley": "6"}

    first_entry = hansen.find("ENTRIES/ENTRY")
    assert first_entry.get("entrytime") == "00:1:05.32"
    assert first_entry.get("entrycourse") == "SCM"
    assert dict(first_entry.find("MEETINFO").attrib) == {
        "course": "SCM",
        "date": "2024-03-01",
        "city": "Oslo",
    }


def test_relays_are_written_with_age_attributes():
    root = etree.fromstring(_convert().xml)
    relays = root.findall(".//CLUB/RELAYS/RELAY")

    assert [relay.get("number") for relay in relays] == ["1", "2"]
    junior = relays[0]
    assert junior.get("name") == "Bergen SK Junior"
    assert junior.get("agemin") == "-1"
    assert junior.get("agemax") == "18"
    assert junior.get("agetotalmin") == "-1"
    assert junior.get("gender") == "X"
    assert len(junior.findall("ENTRIES/ENTRY")) == 1
    assert relays[1].get("agetotalmin") == "120"
    assert relays[1].get("agetotalmax") == "159"
    assert relays[1].find("ENTRIES/ENTRY").get("entrytime") is None


def test_constructor_is_restamped():
    root = etree.fromstring(_convert().xml)
    constructor = root.find("CONSTRUCTOR")

    assert root.index(constructor) == 0
    assert constructor.get("name") == "UNI_p-to-Lenex"
    assert constructor.get("version") == "1"
    contacts = constructor.findall("CONTACT")
    assert len(contacts) == 1
    assert contacts[0].get("email") != "meet@example.org"


def test_constructor_is_created_when_missing():
    meet = parse_lenex_meet(b"<LENEX><MEETS><MEET name='Tiny' /></MEETS></LENEX>")

    root = etree.fromstring(merge_entries(meet, "", EntryBuild()))

    assert root[0].tag == "CONSTRUCTOR"
    club = root.find("MEETS/MEET/CLUBS/CLUB")
    assert club.get("name") == "Unknown Club"
    assert [child.tag for child in club] == ["ATHLETES", "RELAYS"]


def test_round_trip_preserves_sessions_and_events():
    original = _load_meet()

    reread = parse_lenex_meet(_convert().xml)

    assert reread.name == original.name
    assert [session.date for session in reread.sessions] == [
        session.date for session in original.sessions
    ]
    assert list(reread.iter_events()) == list(original.iter_events())
    assert reread.document.find("MEETS/MEET/POOL") is not None


def test_merge_leaves_catalog_document_untouched():
    meet = _load_meet()
    before = etree.tostring(meet.document)

    convert(_load_unip(), meet, reference_year=REFERENCE_YEAR)

    assert etree.tostring(meet.document) == before
    assert meet.document.find(".//ATHLETE[@athleteid='77']") is not None


def test_merge_is_idempotent():
    first = _convert()
    again = convert(_load_unip(), parse_lenex_meet(first.xml), reference_year=REFERENCE_YEAR)

    assert again.xml == first.xml


def test_conversion_counters_and_warning():
    result = _convert()

    assert result.rows_total == 8
    assert result.exported_rows == 5
    assert result.skipped_with_issues == 3
    assert result.skipped_during_build == 0
    assert result.warning == "Skipped 3 entries with issues."
    assert result.filename == "spring-open-2024-bergen-sv-mmeklubb.lef"


def test_conversion_without_exportable_rows():
    unip = parse_unip("Club\n9,abc,XX,Nilsen,,,Q,,\n")

    with pytest.raises(ConversionError, match="No valid UNI_p entries to export."):
        convert(unip, _load_meet())


def test_conversion_requires_meet():
    with pytest.raises(ConversionError, match="Upload a Lenex meet definition"):
        convert(_load_unip(), None)


def test_export_filename_fallbacks():
    assert export_filename("", "") == "meet-club.lef"
    assert export_filename("Meet #1", "A/B") == "meet-1-a-b.lef"
