"""Cross-validate UNI_p registrations against a Lenex event catalog."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .lenex_reader import LenexEvent, LenexMeet, events_by_number
from .rules import FORBIDDEN_ROUNDS, infer_birth_year, is_four_digit_year, is_junior_relay
from .unip_parser import UniPFile, UniPRow

logger = logging.getLogger(__name__)

EventIndex = Mapping[str, Sequence[LenexEvent]]

_EVENT_YEAR_RE = re.compile(r"^(\d{4})")


def merge_issues(base: Iterable[str], extra: Iterable[str]) -> List[str]:
    """Union of two issue lists, keeping first-seen order."""

    return list(dict.fromkeys([*base, *extra]))


def event_matches(event: LenexEvent, row: UniPRow) -> bool:
    """Relay count and distance must match; stroke and gender only when given."""

    return (
        event.relay_count == row.relay_count
        and event.distance == row.distance
        and (not row.stroke or event.stroke == row.stroke)
        and (not row.gender or event.gender == row.gender)
    )


def _prefer_open_rounds(events: Sequence[LenexEvent]) -> Sequence[LenexEvent]:
    open_events = [event for event in events if event.round not in FORBIDDEN_ROUNDS]
    return open_events or events


def age_at_event(
    row: UniPRow, event: LenexEvent, *, reference_year: Optional[int] = None
) -> Optional[int]:
    if row.is_relay:
        return None
    birth_year = infer_birth_year(row, reference_year=reference_year)
    if not birth_year or not is_four_digit_year(birth_year):
        return None
    match = _EVENT_YEAR_RE.match(event.session_date)
    if not match:
        return None
    return int(match.group(1)) - int(birth_year)


def validate_row(
    row: UniPRow, index: EventIndex, *, reference_year: Optional[int] = None
) -> List[str]:
    """Return the catalog issues for ``row``; parse-time issues are not included."""

    if row.event_number is None:
        return []

    candidates = index.get(str(row.event_number)) or []
    if not candidates:
        return ["Invalid event"]

    issues: List[str] = []
    if not any(event.relay_count == row.relay_count for event in candidates):
        issues.append("Invalid length")
    if not any(event.distance == row.distance for event in candidates):
        issues.append("Invalid distance")
    if row.stroke and not any(event.stroke == row.stroke for event in candidates):
        issues.append("Invalid style")
    if row.gender and not any(event.gender == row.gender for event in candidates):
        issues.append("Invalid gender")

    compatible = [event for event in candidates if event_matches(event, row)]
    if not compatible:
        return issues

    if all(event.round in FORBIDDEN_ROUNDS for event in compatible):
        rounds = dict.fromkeys(event.round for event in compatible)
        issues.extend(f"Registration for {round_code}" for round_code in rounds)

    check_candidates = _prefer_open_rounds(compatible)

    if is_junior_relay(row) and not any(
        event.has_age_group("junior") for event in check_candidates
    ):
        issues.append("Missing JUNIOR age group in Lenex event for junior relay")

    age = age_at_event(row, check_candidates[0], reference_year=reference_year)
    if age is not None and not any(event.allows_age(age) for event in check_candidates):
        issues.append(f"Invalid age group (age {age} not allowed for event {row.event_number})")

    return issues


@dataclass
class RowValidation:
    """A row together with its effective issue list."""

    row: UniPRow
    issues: List[str]

    @property
    def is_exportable(self) -> bool:
        return not self.issues

    def as_dict(self) -> dict[str, object]:
        payload = self.row.as_dict()
        payload["issues"] = list(self.issues)
        payload["is_exportable"] = self.is_exportable
        return payload


@dataclass
class GenderSummary:
    gender: str
    individual_entries: int = 0
    relay_entries: int = 0

    @property
    def total(self) -> int:
        return self.individual_entries + self.relay_entries

    def as_dict(self) -> dict[str, object]:
        return {
            "gender": self.gender,
            "total": self.total,
            "individual_entries": self.individual_entries,
            "relay_entries": self.relay_entries,
        }


@dataclass
class ValidationReport:
    """Summary of a UNI_p file checked against a meet."""

    club_name: str
    results: List[RowValidation] = field(default_factory=list)

    @property
    def rows_total(self) -> int:
        return len(self.results)

    @property
    def exportable_rows(self) -> List[UniPRow]:
        return [result.row for result in self.results if result.is_exportable]

    @property
    def rows_valid(self) -> int:
        return len(self.exportable_rows)

    @property
    def rows_with_issues(self) -> int:
        return self.rows_total - self.rows_valid

    @property
    def has_issues(self) -> bool:
        return self.rows_with_issues > 0

    @property
    def summary_text(self) -> str:
        if not self.results:
            return "No registrations parsed."
        return (
            f"{self.rows_total} rows parsed · {self.rows_valid} valid · "
            f"{self.rows_with_issues} with issues"
        )

    def gender_summary(self) -> List[GenderSummary]:
        by_gender: Dict[str, GenderSummary] = {
            gender: GenderSummary(gender) for gender in ("F", "M", "X")
        }
        overall = GenderSummary("All")
        for result in self.results:
            summary = by_gender.get(result.row.gender)
            if summary is None:
                continue
            for bucket in (summary, overall):
                if result.row.is_relay:
                    bucket.relay_entries += 1
                else:
                    bucket.individual_entries += 1
        return [*by_gender.values(), overall]

    def as_dict(self) -> dict[str, object]:
        return {
            "club_name": self.club_name,
            "rows_total": self.rows_total,
            "rows_valid": self.rows_valid,
            "rows_with_issues": self.rows_with_issues,
            "summary": self.summary_text,
            "genders": [summary.as_dict() for summary in self.gender_summary()],
            "rows": [result.as_dict() for result in self.results],
        }


def validate_rows(
    unip: UniPFile,
    meet: Optional[LenexMeet],
    *,
    reference_year: Optional[int] = None,
) -> ValidationReport:
    """Combine parse issues with catalog issues for every row.

    Without a meet only the parse-time issues apply.
    """

    index = events_by_number(meet)
    report = ValidationReport(club_name=unip.club_name)
    for row in unip.rows:
        catalog_issues: List[str] = []
        if meet is not None:
            catalog_issues = validate_row(row, index, reference_year=reference_year)
        report.results.append(RowValidation(row=row, issues=merge_issues(row.issues, catalog_issues)))

    logger.info("Validated %s", report.summary_text)
    return report


__all__ = [
    "GenderSummary",
    "RowValidation",
    "ValidationReport",
    "age_at_event",
    "event_matches",
    "merge_issues",
    "validate_row",
    "validate_rows",
]
