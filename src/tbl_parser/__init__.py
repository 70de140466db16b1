"""TBL string table parser for Blizzard game data files."""

__version__ = "0.1.0"

from .escape import CharMode, EscapeParseError, decode_special_strings, encode_special_bytes
from .reader import DecodeStrategy, FormatError, TBLEntry, TBLFile, TBLReader
from .writer import EncodedTable, TBLWriter
from .analysis import AnalysisReport, analyse

__all__ = [
    "CharMode", "EscapeParseError", "decode_special_strings", "encode_special_bytes",
    "DecodeStrategy", "FormatError", "TBLEntry", "TBLFile", "TBLReader",
    "EncodedTable", "TBLWriter",
    "AnalysisReport", "analyse",
]
