"""Bracketed escapes for control bytes in TBL strings.

Bytes below 0x20 and the bracket characters themselves are written as
``<N>`` where N is the byte value in decimal or two-digit hexadecimal.
Every other byte maps to the character with the same code point, so
bytes >= 0x80 survive as raw values when the text is stored as latin-1.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)

ESCAPE_OPEN = "<"
ESCAPE_CLOSE = ">"

# Text files hold one character per byte
TEXT_ENCODING = "latin-1"


class EscapeParseError(ValueError):
    """A bracketed escape that does not parse as a single byte."""


class CharMode(Enum):
    """Numeral radix used inside ``<N>`` escapes."""
    DECIMAL = "decimal"
    HEXADECIMAL = "hexadecimal"

    @property
    def radix(self) -> int:
        return 16 if self is CharMode.HEXADECIMAL else 10


_DIGITS = {
    CharMode.DECIMAL: set("0123456789"),
    CharMode.HEXADECIMAL: set("0123456789abcdefABCDEF"),
}


def _needs_escape(b: int) -> bool:
    return b < 0x20 or b == 0x3C or b == 0x3E


def encode_special_bytes(data: bytes, mode: CharMode = CharMode.DECIMAL) -> str:
    """Render raw entry bytes as an escaped text line."""
    parts = []
    for b in data:
        if _needs_escape(b):
            if mode is CharMode.HEXADECIMAL:
                parts.append(f"<{b:02X}>")
            else:
                parts.append(f"<{b}>")
        else:
            parts.append(chr(b))
    return "".join(parts)


def parse_escape(digits: str, mode: CharMode) -> int:
    """Parse the digits between the brackets of one escape.

    Raises:
        EscapeParseError: digits are empty, not valid in the radix, or the
            value does not fit in a byte.
    """
    # int() would otherwise accept signs, whitespace and underscores
    if not digits or not set(digits) <= _DIGITS[mode]:
        raise EscapeParseError(f"invalid {mode.value} escape '{digits}'")
    value = int(digits, mode.radix)
    if value > 0xFF:
        raise EscapeParseError(f"escape '{digits}' does not fit in a byte")
    return value


def decode_special_strings(text: str, mode: CharMode = CharMode.DECIMAL) -> bytes:
    """Convert an escaped text line back into raw entry bytes.

    Malformed escapes are dropped with a warning; they never abort decoding.
    """
    output = bytearray()
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        i += 1
        if c == ESCAPE_OPEN:
            end = text.find(ESCAPE_CLOSE, i)
            if end < 0:
                end = n
            digits = text[i:end]
            i = end + 1
            try:
                output.append(parse_escape(digits, mode))
            except EscapeParseError:
                logger.warning("Could not decode control character '%s'. Will drop.", digits)
            continue

        code = ord(c)
        if code > 0xFF:
            logger.warning("Character %r does not fit in a byte. Will drop.", c)
            continue
        output.append(code)
    return bytes(output)
