"""Tests for TBL structural analysis."""

import json
import struct
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import yaml

from tbl_parser import analyse
from tbl_parser.analysis import AnalysisStatus, IssueKind, analyse_file


WELL_FORMED = struct.pack("<3H", 2, 6, 9) + b"Hi\x00There\x00"


def test_too_small():
    report = analyse(b"\x01")
    assert report.status is AnalysisStatus.TOO_SMALL
    assert report.count is None
    assert report.render() == "File too small to contain valid data."


def test_truncated_offset_table():
    report = analyse(struct.pack("<H", 3) + b"\x00")

    assert report.status is AnalysisStatus.TRUNCATED_OFFSETS
    assert report.count == 3
    assert report.render().splitlines() == [
        "Number of entries: 3",
        "File does not contain enough data for all offsets.",
    ]


def test_well_formed_table():
    report = analyse(WELL_FORMED)

    assert report.status is AnalysisStatus.COMPLETE
    assert report.offsets == [6, 9]
    assert report.header_end == 6
    assert report.issues == []
    assert report.all_terminated
    assert report.render().splitlines() == [
        "Number of entries: 2",
        "Offset table:",
        "  Entry   0: offset 0x0006",
        "  Entry   1: offset 0x0009",
        "No unexpected data detected between header and first string.",
        "All strings appear to be correctly null terminated.",
    ]


def test_empty_table():
    report = analyse(b"\x00\x00")
    assert report.count == 0
    assert report.gap == b""
    assert report.all_terminated


def test_gap_after_header():
    data = struct.pack("<2H", 1, 6) + b"\xaa\xbb" + b"x\x00"
    report = analyse(data)

    assert report.gap == b"\xaa\xbb"
    text = report.render()
    assert "Warning: Detected 2 bytes of unknown data between header and first string:" in text
    assert "AA BB" in text.splitlines()


def test_gap_reaching_past_end_of_file():
    """The gap length comes from the offsets even when the file is shorter."""
    data = struct.pack("<2H", 1, 0x100) + b"ab"
    report = analyse(data)

    assert report.gap_length == 252
    assert report.gap == b"ab"
    lines = report.render().splitlines()
    assert "Warning: Detected 252 bytes of unknown data between header and first string:" in lines
    assert "61 62" in lines
    assert "Only 2 of these bytes lie inside the file." in lines
    assert analyse(data).to_dict()["gap"] == {"length": 252, "available": 2, "bytes": "61 62"}


def test_unterminated_entry():
    data = struct.pack("<3H", 2, 6, 8) + b"ab" + b"cd\x00"
    report = analyse(data)

    assert len(report.issues) == 1
    issue = report.issues[0]
    assert issue.kind is IssueKind.NOT_TERMINATED
    assert issue.index == 0
    assert issue.offset == 6
    assert "  Warning: Offset 6 is not null terminated." in report.render().splitlines()
    assert "All strings appear" not in report.render()


def test_offset_beyond_file():
    data = struct.pack("<3H", 2, 6, 20) + b"x\x00"
    report = analyse(data)

    assert report.bad_offsets == [1]
    assert [i.kind for i in report.issues] == [IssueKind.OUT_OF_BOUNDS]
    assert report.issues[0].position == 19
    text = report.render()
    assert "Warning: Offset 19 is outside the file bounds." in text
    assert "Entry 1 offset 20 lies beyond the end of the file" in text
    assert "All strings appear" not in text


def test_zero_offset_after_entry_is_out_of_bounds():
    data = struct.pack("<3H", 2, 6, 0) + b"x\x00"
    report = analyse(data)

    assert report.issues[0].kind is IssueKind.OUT_OF_BOUNDS
    assert report.issues[0].position == -1
    assert report.gap == b""


def test_json_export():
    data = struct.pack("<2H", 1, 6) + b"\xaa\xbb" + b"x"
    result = json.loads(analyse(data).to_json())

    assert result["status"] == "complete"
    assert result["count"] == 1
    assert result["gap"] == {"length": 2, "available": 2, "bytes": "AA BB"}
    assert result["issues"][0]["kind"] == "not-null-terminated"
    assert result["all_terminated"] is False


def test_yaml_export_of_early_stop():
    result = yaml.safe_load(analyse(b"").to_yaml())
    assert result == {"size": 0, "status": "too-small"}


def test_analyse_file(tmp_path):
    path = tmp_path / "sample.tbl"
    path.write_bytes(WELL_FORMED)

    report = analyse_file(path)

    assert report.path == path
    assert report.size == len(WELL_FORMED)
    assert yaml.safe_load(report.to_yaml())["file"] == str(path)
