"""Binary writer for TBL string tables."""

from dataclasses import dataclass, field
from pathlib import Path
import logging
import struct

from .escape import CharMode, TEXT_ENCODING, decode_special_strings
from .reader import COUNT_SIZE, OFFSET_SIZE, FormatError

logger = logging.getLogger(__name__)

TERMINATOR_MARK = "<0>"
MAX_U16 = 0xFFFF


@dataclass
class EncodedTable:
    """Result of encoding text lines into a table."""
    data: bytes
    offsets: list[int] = field(default_factory=list)
    unterminated: list[int] = field(default_factory=list)  # 1-based line numbers

    @property
    def count(self) -> int:
        return len(self.offsets)


def read_text_lines(path: str | Path) -> list[str]:
    """Read newline-delimited lines, dropping the line endings.

    Only ``\\n`` separates lines; a trailing ``\\r`` is stripped. Other
    characters that str.splitlines() treats as breaks are kept.
    """
    with open(path, 'r', encoding=TEXT_ENCODING, newline='') as f:
        text = f.read()

    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class TBLWriter:
    """Encoder from escaped text lines to a .tbl buffer."""

    def __init__(self, mode: CharMode = CharMode.DECIMAL):
        self.mode = mode

    def encode(self, lines: list[str]) -> EncodedTable:
        """Encode lines into the binary layout.

        No terminator is appended: each entry is exactly the decoded bytes
        of its line. Lines not ending in the literal text ``<0>`` are recorded
        in ``unterminated``. In hexadecimal mode a terminator is written
        ``<00>``, so those lines are always reported.

        Raises:
            FormatError: the table does not fit 16-bit counts and offsets.
        """
        count = len(lines)
        if count > MAX_U16:
            raise FormatError(f"Too many lines for a TBL table: {count} (max {MAX_U16})")

        offsets = []
        chunks = []
        unterminated = []
        current = COUNT_SIZE + count * OFFSET_SIZE

        for i, line in enumerate(lines):
            if not line.endswith(TERMINATOR_MARK):
                unterminated.append(i + 1)
            if current > MAX_U16:
                raise FormatError(f"Line {i + 1} starts at offset {current}, beyond the 16-bit offset range")
            offsets.append(current)
            entry = decode_special_strings(line, self.mode)
            chunks.append(entry)
            current += len(entry)

        header = struct.pack(f"<H{count}H", count, *offsets)
        data = header + b"".join(chunks)
        logger.debug("Encoded %d lines into %d bytes", count, len(data))
        return EncodedTable(data=data, offsets=offsets, unterminated=unterminated)


def write_text_to_binary(input_path: str | Path, output_path: str | Path,
                         mode: CharMode = CharMode.DECIMAL) -> EncodedTable:
    """Convert an escaped text file into a .tbl file."""
    lines = read_text_lines(input_path)
    table = TBLWriter(mode).encode(lines)

    Path(output_path).write_bytes(table.data)

    if table.unterminated:
        logger.warning(
            "The following lines were not properly null-terminated (missing %s):\n  %s",
            TERMINATOR_MARK, table.unterminated,
        )
    return table
