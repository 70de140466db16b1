#!/usr/bin/env python3
"""TBL Parser - Convert Blizzard .tbl string tables to text and back."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from tbl_parser.cli import main


if __name__ == "__main__":
    sys.exit(main())
