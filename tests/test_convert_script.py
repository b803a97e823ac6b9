import json
import runpy
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
FIXTURES = ROOT / "tests" / "fixtures"


@pytest.fixture()
def cli_main():
    namespace = runpy.run_path(str(ROOT / "scripts" / "convert_entries.py"))
    return namespace["main"]


def test_cli_writes_entries_document(cli_main, tmp_path, capsys):
    output = tmp_path / "entries.lef"

    exit_code = cli_main(
        [
            "--meet",
            str(FIXTURES / "meet.lef"),
            "--unip",
            str(FIXTURES / "club.txt"),
            "--encoding",
            "utf-8",
            "--output",
            str(output),
        ]
    )

    assert exit_code == 0
    assert output.read_bytes().startswith(b'<?xml version="1.0" encoding="UTF-8"?>')
    captured = capsys.readouterr()
    summary = json.loads(captured.out)
    assert summary["skipped_with_issues"] == 3
    assert "Skipped 3 entries with issues." in captured.err


def test_cli_report_mode(cli_main, capsys):
    exit_code = cli_main(
        [
            "--meet",
            str(FIXTURES / "meet.lef"),
            "--unip",
            str(FIXTURES / "club.txt"),
            "--encoding",
            "utf-8",
            "--report",
        ]
    )

    assert exit_code == 1
    report = json.loads(capsys.readouterr().out)
    assert report["rows_valid"] == 5


def test_cli_reports_fatal_errors(cli_main, tmp_path, capsys):
    broken = tmp_path / "broken.lef"
    broken.write_text("<LENEX>", encoding="utf-8")

    exit_code = cli_main(["--meet", str(broken), "--unip", str(FIXTURES / "club.txt")])

    assert exit_code == 1
    assert "not valid XML" in capsys.readouterr().err
