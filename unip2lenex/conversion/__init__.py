"""UNI_p registration parsing, Lenex cross-validation and entry export."""

from .document_merger import ConversionResult, convert, export_filename, merge_entries
from .encoding import SUPPORTED_ENCODINGS, decode_unip, decode_xml, detect_xml_encoding
from .entry_builder import Athlete, Entry, EntryBuild, Relay, build_entries, find_matching_event
from .errors import ConversionError, LenexParseError, UniPParseError, UnsupportedEncodingError
from .lenex_reader import LenexEvent, LenexMeet, LenexSession, events_by_number, parse_lenex_meet
from .meet_source import fetch_meet, load_meet_bytes, load_meet_file
from .unip_parser import UniPFile, UniPRow, parse_unip
from .validator import RowValidation, ValidationReport, merge_issues, validate_row, validate_rows

__all__ = [
    "Athlete",
    "ConversionError",
    "ConversionResult",
    "Entry",
    "EntryBuild",
    "LenexEvent",
    "LenexMeet",
    "LenexParseError",
    "LenexSession",
    "Relay",
    "RowValidation",
    "SUPPORTED_ENCODINGS",
    "UniPFile",
    "UniPParseError",
    "UniPRow",
    "UnsupportedEncodingError",
    "ValidationReport",
    "build_entries",
    "convert",
    "decode_unip",
    "decode_xml",
    "detect_xml_encoding",
    "events_by_number",
    "export_filename",
    "fetch_meet",
    "find_matching_event",
    "load_meet_bytes",
    "load_meet_file",
    "merge_entries",
    "merge_issues",
    "parse_lenex_meet",
    "parse_unip",
    "validate_row",
    "validate_rows",
]
