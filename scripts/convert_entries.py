"""Convert a UNI_p registration file into a Lenex entries document."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from unip2lenex.conversion import (
    SUPPORTED_ENCODINGS,
    ConversionError,
    convert,
    decode_unip,
    fetch_meet,
    load_meet_file,
    parse_unip,
    validate_rows,
)
from unip2lenex.conversion.meet_source import DEFAULT_TIMEOUT


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--meet", type=Path, help="Path to the Lenex meet definition (.lef/.xml).")
    source.add_argument("--meet-url", help="URL of a published Lenex meet definition.")
    parser.add_argument("--unip", type=Path, required=True, help="Path to the UNI_p registration file.")
    parser.add_argument(
        "--encoding",
        choices=SUPPORTED_ENCODINGS,
        default="iso-8859-1",
        help="Encoding of the UNI_p file (defaults to iso-8859-1).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Where to write the entries document. Defaults to <meet>-<club>.lef.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Download timeout in seconds for --meet-url (defaults to {DEFAULT_TIMEOUT}).",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Print the validation report as indented JSON instead of exporting.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        if args.meet_url:
            meet = fetch_meet(args.meet_url, timeout=args.timeout)
        else:
            meet = load_meet_file(args.meet)
        unip = parse_unip(decode_unip(args.unip.read_bytes(), args.encoding))

        if args.report:
            report = validate_rows(unip, meet)
            print(json.dumps(report.as_dict(), ensure_ascii=False, indent=2))
            return 1 if report.has_issues else 0

        result = convert(unip, meet)
    except ConversionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    output = args.output or Path(result.filename)
    output.write_bytes(result.xml)
    print(json.dumps(result.as_dict(), ensure_ascii=False))
    if result.warning:
        print(f"warning: {result.warning}", file=sys.stderr)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
