#!/usr/bin/env python3
"""CLI for TBL string table conversion."""

import argparse
import logging
import sys
from pathlib import Path

import shtab

from . import __version__
from .analysis import analyse_file
from .escape import CharMode
from .reader import DecodeStrategy, FormatError, read_binary_to_text
from .writer import write_text_to_binary

MODES = ('tbl-to-text', 'text-to-tbl', 'analyse')


def cmd_tbl_to_text(args):
    """Convert a .tbl file to escaped text."""
    path = Path(args.input)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1

    try:
        tbl = read_binary_to_text(
            path,
            args.output,
            CharMode(args.control_character_mode),
            args.line_number,
            DecodeStrategy(args.strategy),
        )
    except FormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        print(tbl.dump(CharMode(args.control_character_mode)), file=sys.stderr)
    return 0


def cmd_text_to_tbl(args):
    """Convert escaped text to a .tbl file."""
    path = Path(args.input)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1

    try:
        table = write_text_to_binary(path, args.output, CharMode(args.control_character_mode))
    except FormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        print(f"Wrote {table.count} entries ({len(table.data)} bytes) to {args.output}")
    return 0


def cmd_analyse(args):
    """Report the structure of a .tbl file."""
    path = Path(args.input)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1

    report = analyse_file(path)

    if args.format == 'json':
        print(report.to_json(indent=2))
    elif args.format == 'yaml':
        print(report.to_yaml(), end='')
    else:
        print(report.render())
    return 0


COMMANDS = {
    'tbl-to-text': cmd_tbl_to_text,
    'text-to-tbl': cmd_text_to_tbl,
    'analyse': cmd_analyse,
}


def validate_args(args):
    """Return an error message for an invalid option combination, or None."""
    if args.mode is None:
        return "Mode of operation must be specified!"
    if args.input is None:
        return "Input file must be specified!"

    if args.mode == 'text-to-tbl':
        if args.output is None:
            return "Output file must be specified in text-to-tbl mode."
        if args.line_number is not None:
            return "Line number option is not applicable in text-to-tbl mode."
    elif args.mode == 'analyse':
        if args.output is not None:
            return "Output file must not be specified in analyse mode."
        if args.line_number is not None:
            return "Line number option is not applicable in analyse mode."

    if args.strategy is not None and args.mode != 'tbl-to-text':
        return f"Strategy option is not applicable in {args.mode} mode."
    if args.format is not None and args.mode != 'analyse':
        return f"Format option is not applicable in {args.mode} mode."
    return None


def build_parser():
    parser = argparse.ArgumentParser(
        prog='tbl',
        description='Converts *.tbl files from Blizzard games to text and vice versa.',
    )
    parser.add_argument('--version', action='version', version=f'tbl-parser {__version__}')
    parser.add_argument('-i', '--input', metavar='INPUT_FILE', help='Specifies the input file path')
    parser.add_argument('-o', '--output', metavar='OUTPUT_FILE',
                        help='Specifies the output file path. If omitted in tbl-to-text mode, output goes to stdout.')
    parser.add_argument('-m', '--mode', choices=MODES, help='Mode of operation')
    parser.add_argument('-c', '--control-character-mode', choices=[m.value for m in CharMode],
                        default=CharMode.DECIMAL.value,
                        help='Specifies whether to use decimal or hexadecimal for control characters')
    parser.add_argument('-l', '--line-number', type=_u16, metavar='LINE_NUMBER',
                        help='If given, only the specified line will be printed.')
    parser.add_argument('--strategy', choices=[s.value for s in DecodeStrategy],
                        help='How string extents are found in tbl-to-text mode (default: offset)')
    parser.add_argument('--format', choices=('text', 'json', 'yaml'),
                        help='Report format in analyse mode (default: text)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug logging and a table dump')
    parser.add_argument('--generate-shell-completions', dest='shell', choices=shtab.SUPPORTED_SHELLS,
                        help='Print a shell completion script and exit')
    return parser


def _u16(value):
    number = int(value)
    if not 0 <= number <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"{value} is not in range 0..65535")
    return number


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.shell:
        print(f"Generating completion file for {args.shell}...", file=sys.stderr)
        print(shtab.complete(parser, shell=args.shell))
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s: %(message)s',
        stream=sys.stderr,
    )

    error = validate_args(args)
    if error:
        print(error, file=sys.stderr)
        return 1

    if args.strategy is None:
        args.strategy = DecodeStrategy.OFFSET.value
    if args.format is None:
        args.format = 'text'

    return COMMANDS[args.mode](args)


if __name__ == '__main__':
    sys.exit(main())
