"""Structural analysis of .tbl buffers.

The analyser never raises for malformed data. It walks the header, the
offset table, the gap between the header and the first string, and the
last byte of every entry, recording what it finds in an
:class:`AnalysisReport`. A buffer too small for the count field, or too
small for its own offset table, stops the walk early; the report is still
the product and the command still succeeds.
"""

import json
import logging
import struct
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .reader import COUNT_SIZE, OFFSET_SIZE

logger = logging.getLogger(__name__)


class AnalysisStatus(Enum):
    COMPLETE = "complete"
    TOO_SMALL = "too-small"
    TRUNCATED_OFFSETS = "truncated-offsets"


class IssueKind(Enum):
    OUT_OF_BOUNDS = "out-of-bounds"
    NOT_TERMINATED = "not-null-terminated"


@dataclass
class TerminationIssue:
    """A problem with the presumed last byte of one entry."""
    index: int
    offset: int     # Start of the entry
    position: int   # Presumed last byte
    kind: IssueKind

    def describe(self) -> str:
        if self.kind is IssueKind.OUT_OF_BOUNDS:
            return f"Warning: Offset {self.position} is outside the file bounds."
        return f"Warning: Offset {self.offset} is not null terminated."


@dataclass
class AnalysisReport:
    """Findings of one structural analysis pass."""
    size: int
    status: AnalysisStatus = AnalysisStatus.COMPLETE
    path: Path | None = None
    count: int | None = None
    offsets: list[int] = field(default_factory=list)
    bad_offsets: list[int] = field(default_factory=list)  # indices of offsets >= size
    header_end: int | None = None
    gap_length: int = 0
    gap: bytes = b""  # bytes of the gap that lie inside the file
    issues: list[TerminationIssue] = field(default_factory=list)

    @property
    def all_terminated(self) -> bool:
        return self.status is AnalysisStatus.COMPLETE and not self.issues

    def render(self) -> str:
        """Return the plain-text report."""
        if self.status is AnalysisStatus.TOO_SMALL:
            return "File too small to contain valid data."

        lines = [f"Number of entries: {self.count}"]
        if self.status is AnalysisStatus.TRUNCATED_OFFSETS:
            lines.append("File does not contain enough data for all offsets.")
            return "\n".join(lines)

        lines.append("Offset table:")
        for i, offset in enumerate(self.offsets):
            lines.append(f"  Entry {i:>3}: offset 0x{offset:04X}")
        for i in self.bad_offsets:
            lines.append(f"  Warning: Entry {i} offset {self.offsets[i]} lies beyond the end of the file ({self.size} bytes).")

        if self.gap_length:
            lines.append(f"Warning: Detected {self.gap_length} bytes of unknown data between header and first string:")
            lines.append(" ".join(f"{b:02X}" for b in self.gap))
            if len(self.gap) < self.gap_length:
                lines.append(f"Only {len(self.gap)} of these bytes lie inside the file.")
        else:
            lines.append("No unexpected data detected between header and first string.")

        for issue in self.issues:
            lines.append(f"  {issue.describe()}")

        if not self.issues:
            lines.append("All strings appear to be correctly null terminated.")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for YAML/JSON serialization."""
        result = {
            "size": self.size,
            "status": self.status.value,
        }
        if self.path is not None:
            result["file"] = str(self.path)
        if self.count is not None:
            result["count"] = self.count
        if self.status is not AnalysisStatus.COMPLETE:
            return result

        result["header_end"] = self.header_end
        result["offsets"] = [
            {"index": i, "offset": offset, "in_bounds": i not in self.bad_offsets}
            for i, offset in enumerate(self.offsets)
        ]
        result["gap"] = {
            "length": self.gap_length,
            "available": len(self.gap),
            "bytes": self.gap.hex(" ").upper(),
        }
        result["issues"] = [
            {
                "index": issue.index,
                "offset": issue.offset,
                "position": issue.position,
                "kind": issue.kind.value,
            }
            for issue in self.issues
        ]
        result["all_terminated"] = self.all_terminated
        return result

    def to_yaml(self) -> str:
        """Convert to YAML string."""
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


def analyse(data: bytes, path: Path | None = None) -> AnalysisReport:
    """Inspect a table buffer without decoding its strings."""
    report = AnalysisReport(size=len(data), path=path)

    if len(data) < COUNT_SIZE:
        report.status = AnalysisStatus.TOO_SMALL
        return report

    count = struct.unpack("<H", data[0:COUNT_SIZE])[0]
    report.count = count

    header_end = COUNT_SIZE + count * OFFSET_SIZE
    if len(data) < header_end:
        report.status = AnalysisStatus.TRUNCATED_OFFSETS
        return report

    offsets = list(struct.unpack(f"<{count}H", data[COUNT_SIZE:header_end]))
    report.offsets = offsets
    report.header_end = header_end
    report.bad_offsets = [i for i, offset in enumerate(offsets) if offset >= len(data)]

    first_offset = min(offsets, default=header_end)
    if first_offset > header_end:
        report.gap_length = first_offset - header_end
        report.gap = data[header_end:first_offset]

    for i, offset in enumerate(offsets):
        if i + 1 < len(offsets):
            end = offsets[i + 1] - 1
        else:
            end = len(data) - 1
        if end < 0 or end >= len(data):
            report.issues.append(TerminationIssue(i, offset, end, IssueKind.OUT_OF_BOUNDS))
            continue
        if data[end] != 0:
            report.issues.append(TerminationIssue(i, offset, end, IssueKind.NOT_TERMINATED))

    logger.debug("Analysed %d entries: %d issues, %d byte gap", count, len(report.issues), report.gap_length)
    return report


def analyse_file(path: str | Path) -> AnalysisReport:
    """Read a .tbl file and analyse it."""
    path = Path(path)
    return analyse(path.read_bytes(), path=path)
