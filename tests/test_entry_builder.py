from pathlib import Path

from unip2lenex.conversion import (
    build_entries,
    events_by_number,
    find_matching_event,
    parse_lenex_meet,
    parse_unip,
    validate_rows,
)
from unip2lenex.conversion.entry_builder import (
    UNBOUNDED,
    handicap_from_class,
    to_lenex_date,
    to_lenex_entry_time,
)
from unip2lenex.conversion.unip_parser import parse_line

FIXTURES = Path(__file__).resolve().parent / "fixtures"
REFERENCE_YEAR = 2024


def _load_meet():
    return parse_lenex_meet((FIXTURES / "meet.lef").read_bytes())


def _build_fixture():
    meet = _load_meet()
    unip = parse_unip((FIXTURES / "club.txt").read_text(encoding="utf-8"))
    report = validate_rows(unip, meet, reference_year=REFERENCE_YEAR)
    return build_entries(
        report.exportable_rows, events_by_number(meet), reference_year=REFERENCE_YEAR
    )


def test_entry_time_formatting():
    assert to_lenex_entry_time("1:05.32") == "00:1:05.32"
    assert to_lenex_entry_time(" 01:02:03.45 ") == "01:02:03.45"
    assert to_lenex_entry_time("65.32") is None
    assert to_lenex_entry_time(None) is None


def test_entry_date_formatting():
    assert to_lenex_date("20240301") == "2024-03-01"
    assert to_lenex_date("2024-03-01") == "2024-03-01"
    assert to_lenex_date("1.3.2024") == "1.3.2024"
    assert to_lenex_date(None) is None


def test_handicap_from_class():
    assert handicap_from_class("S5") == ("free", "5")
    assert handicap_from_class("sb12") == ("breast", "12")
    assert handicap_from_class("SM15") == ("medley", "15")
    assert handicap_from_class("SM16") is None
    assert handicap_from_class("1990") is None


def test_winning_event_skips_closed_rounds():
    index = events_by_number(_load_meet())
    row = parse_line("4,200,IM,Hansen,Ola,,M65,1965", line_number=2)

    event = find_matching_event(row, index)

    assert event is not None
    assert event.event_id == "104"


def test_no_winning_event_for_final_only_event():
    index = events_by_number(_load_meet())
    row = parse_line("5,100,RY,Lie,Nora,,K12,2012", line_number=2)

    assert find_matching_event(row, index) is None

    build = build_entries([row], index, reference_year=REFERENCE_YEAR)
    assert build.skipped_during_build == 1
    assert build.athletes == []


def test_same_swimmer_is_one_athlete_with_two_entries():
    build = _build_fixture()

    assert [athlete.athlete_id for athlete in build.athletes] == [1, 2]
    hansen = build.athletes[0]
    assert (hansen.last_name, hansen.first_name, hansen.gender) == ("Hansen", "Ola", "M")
    assert hansen.birthdate == "1965-01-01"
    assert [entry.event_id for entry in hansen.entries] == ["101", "104"]
    assert hansen.handicap == {"free": "5", "medley": "6"}
    assert build.skipped_during_build == 0
    assert build.entry_count == 5


def test_entry_attributes():
    hansen = _build_fixture().athletes[0]
    first, second = hansen.entries

    assert first.entry_time == "00:1:05.32"
    assert first.entry_course == "SCM"
    assert first.meet_info_date == "2024-03-01"
    assert first.meet_info_city == "Oslo"
    assert first.has_meet_info
    assert second.entry_time == "00:2:31.00"
    assert second.entry_course == "LCM"
    assert not second.has_meet_info


def test_relay_age_attributes():
    relays = _build_fixture().relays

    junior, masters = relays
    assert (junior.number, masters.number) == (1, 2)
    assert junior.name == "Bergen SK Junior"
    assert junior.gender == "X"
    assert junior.entry.event_id == "103"
    assert (junior.agemin, junior.agemax) == (UNBOUNDED, 18)
    assert (junior.agetotalmin, junior.agetotalmax) == (UNBOUNDED, UNBOUNDED)
    assert (masters.agemin, masters.agemax) == (UNBOUNDED, UNBOUNDED)
    assert (masters.agetotalmin, masters.agetotalmax) == (120, 159)


def test_masters_band_for_class_o_from_field_eight():
    index = {
        "6": events_by_number(_load_meet())["6"],
    }
    row = parse_line("6,4*100,IM,Veterans,,,M,MASTERSO", line_number=2)

    relay = build_entries([row], index).relays[0]

    assert (relay.agetotalmin, relay.agetotalmax) == (80, 99)


def test_swimmers_without_birth_year_share_an_athlete():
    index = events_by_number(_load_meet())
    rows = [
        parse_line("1,100,FR,Dahl,Even,,MSR,OPEN", line_number=2),
        parse_line("4,200,IM,Dahl,Even,,MSR,OPEN", line_number=3),
    ]

    build = build_entries(rows, index)

    assert len(build.athletes) == 1
    assert build.athletes[0].birthdate is None
    assert len(build.athletes[0].entries) == 2


def test_build_is_deterministic():
    first, second = _build_fixture(), _build_fixture()

    assert first == second
