"""Binary reader for TBL string tables."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
import logging
import struct

from .escape import CharMode, TEXT_ENCODING, encode_special_bytes
from .sink import open_sink

logger = logging.getLogger(__name__)

COUNT_SIZE = 2
OFFSET_SIZE = 2


class FormatError(ValueError):
    """The buffer does not hold a well-formed TBL table."""


class DecodeStrategy(Enum):
    """How an entry's extent is found.

    OFFSET slices up to the next entry's offset (or end of buffer).
    NULL_SCAN slices up to the first 0x00 byte, the way early TBL tools did.
    """
    OFFSET = "offset"
    NULL_SCAN = "null-scan"


@dataclass
class TBLEntry:
    """One string record in the table."""
    index: int
    offset: int
    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)

    @property
    def is_terminated(self) -> bool:
        """True if the entry ends with the conventional 0x00 byte."""
        return self.data.endswith(b"\x00")

    def to_text(self, mode: CharMode = CharMode.DECIMAL) -> str:
        return encode_special_bytes(self.data, mode)


@dataclass
class TBLFile:
    """Parsed TBL table."""
    path: Path | None
    size: int
    count: int
    offsets: list[int] = field(default_factory=list)
    entries: list[TBLEntry] = field(default_factory=list)

    @property
    def header_size(self) -> int:
        return COUNT_SIZE + self.count * OFFSET_SIZE

    def to_lines(self, mode: CharMode = CharMode.DECIMAL) -> list[str]:
        """Escaped text line for each entry, in index order."""
        return [entry.to_text(mode) for entry in self.entries]

    def dump(self, mode: CharMode = CharMode.DECIMAL) -> str:
        """Return a human-readable dump of the table contents."""
        name = self.path.name if self.path else "<memory>"
        lines = [
            f"TBL File: {name}",
            f"Size:     {self.size} bytes",
            f"Header:   {self.header_size} bytes",
            f"Entries:  {self.count}",
            "",
        ]
        for entry in self.entries:
            lines.append(f"  {entry.index:>5} 0x{entry.offset:04X} [{entry.length:4d}] {entry.to_text(mode)}")
        return "\n".join(lines)


class TBLReader:
    """Reader for .tbl string tables."""

    def __init__(self, path: str | Path | None = None, data: bytes | None = None):
        if data is None:
            if path is None:
                raise ValueError("TBLReader needs a path or data")
            self.path = Path(path)
            self.data = self.path.read_bytes()
        else:
            self.path = Path(path) if path is not None else None
            self.data = bytes(data)

    @classmethod
    def from_bytes(cls, data: bytes) -> "TBLReader":
        return cls(data=data)

    def read_count(self) -> int:
        """Number of entries declared in the header."""
        if len(self.data) < COUNT_SIZE:
            raise FormatError("File too small to contain valid data.")
        return struct.unpack("<H", self.data[0:COUNT_SIZE])[0]

    def read_offsets(self) -> list[int]:
        """Read the offset table and check every offset lies inside the buffer."""
        count = self.read_count()
        header_end = COUNT_SIZE + count * OFFSET_SIZE
        if len(self.data) < header_end:
            raise FormatError("Invalid file format: Not enough data for string offsets.")

        offsets = list(struct.unpack(f"<{count}H", self.data[COUNT_SIZE:header_end]))
        for i, offset in enumerate(offsets):
            if offset >= len(self.data):
                raise FormatError(f"Invalid string offset detected: {offset} (entry {i})")

        logger.debug("Read %d offsets from %d byte table", count, len(self.data))
        return offsets

    def _entry_end(self, offsets: list[int], i: int, strategy: DecodeStrategy) -> int:
        start = offsets[i]
        if strategy is DecodeStrategy.NULL_SCAN:
            end = self.data.find(b"\x00", start)
            return end if end >= 0 else len(self.data)

        end = offsets[i + 1] if i + 1 < len(offsets) else len(self.data)
        if end < start:
            logger.warning("Entry %d at offset %d overlaps the next entry at %d; reading it as empty.", i, start, end)
            return start
        return end

    def _slice_entries(self, offsets: list[int], line_number: int | None,
                       strategy: DecodeStrategy) -> list[TBLEntry]:
        entries = []
        for i, start in enumerate(offsets):
            if line_number is not None and line_number != i:
                continue
            end = self._entry_end(offsets, i, strategy)
            entries.append(TBLEntry(index=i, offset=start, data=self.data[start:end]))
        return entries

    def read_entries(self, line_number: int | None = None,
                     strategy: DecodeStrategy = DecodeStrategy.OFFSET) -> list[TBLEntry]:
        """Slice the string data region into entries.

        Args:
            line_number: Only return the entry with this index. An index
                outside the table gives an empty list.
            strategy: How entry extents are found.
        """
        return self._slice_entries(self.read_offsets(), line_number, strategy)

    def parse(self, line_number: int | None = None,
              strategy: DecodeStrategy = DecodeStrategy.OFFSET) -> TBLFile:
        """Parse the entire table."""
        offsets = self.read_offsets()
        return TBLFile(
            path=self.path,
            size=len(self.data),
            count=len(offsets),
            offsets=offsets,
            entries=self._slice_entries(offsets, line_number, strategy),
        )


def read_binary_to_text(input_path: str | Path, output_path: str | Path | None = None,
                        mode: CharMode = CharMode.DECIMAL, line_number: int | None = None,
                        strategy: DecodeStrategy = DecodeStrategy.OFFSET) -> TBLFile:
    """Convert a .tbl file to escaped text, one line per entry.

    The table is fully decoded before the output is opened, so a malformed
    file leaves nothing behind. Returns the parsed table.
    """
    tbl = TBLReader(input_path).parse(line_number, strategy)
    lines = tbl.to_lines(mode)

    with open_sink(output_path) as out:
        for line in lines:
            out.write(line.encode(TEXT_ENCODING) + b"\n")

    logger.debug("Wrote %d of %d lines", len(lines), tbl.count)
    return tbl
