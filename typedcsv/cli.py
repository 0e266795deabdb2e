"""
typedcsv — print or validate a delimited text file against a column schema.

Environment variables read (a .env file in the working directory is loaded
first):
    TYPEDCSV_SKIP_COUNT        Optional: leading records to skip
    TYPEDCSV_WORD_SEPARATOR    Optional: field separator (escapes such as \\t allowed)
    TYPEDCSV_RECORD_SEPARATOR  Optional: record separator
    TYPEDCSV_ENCODING          Optional: text encoding
    TYPEDCSV_CHUNK_SIZE        Optional: read size in bytes

Commands:
    read      Print every row as (f0,f1,...).
    validate  Parse every row, print the row count only.

Usage examples:
    typedcsv read     --source data/test.csv --schema int,int,str --word-sep ";"
    typedcsv validate --source data/trades.csv --schema int,decimal,date --skip 1

Exit codes:
    0  Success
    1  Parse error — the file does not match the schema or cannot be read
    2  Configuration / argument error
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from typedcsv.configs.config import ParserConfig, unescape_separator
from typedcsv.configs.exceptions import ParseError
from typedcsv.models.models import Schema
from typedcsv.parser import TypedCSVParser
from typedcsv.utils.render import render

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        level=level,
        stream=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Config: CLI flags over environment over defaults
# ---------------------------------------------------------------------------

def _build_config(args: argparse.Namespace) -> ParserConfig:
    """
    Priority order for each setting:
      1. CLI flag (--skip, --word-sep, etc.)
      2. Environment variable
      3. ParserConfig default
    """
    kwargs: dict = {}

    if args.skip is not None:
        kwargs["skip_count"] = args.skip
    if args.word_sep is not None:
        kwargs["word_separator"] = unescape_separator(args.word_sep)
    if args.record_sep is not None:
        kwargs["record_separator"] = unescape_separator(args.record_sep)
    if args.encoding is not None:
        kwargs["encoding"] = args.encoding
    if args.chunk_size is not None:
        kwargs["chunk_size"] = args.chunk_size

    return ParserConfig(**kwargs)


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------

def _open_parser(args: argparse.Namespace, stream) -> TypedCSVParser:
    return TypedCSVParser.from_config(stream, Schema.parse(args.schema), _build_config(args))


def _cmd_read(args: argparse.Namespace) -> int:
    with open(args.source, "rb") as stream:
        parser = _open_parser(args, stream)
        for row in parser:
            print(render(row))
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    with open(args.source, "rb") as stream:
        parser = _open_parser(args, stream)
        iterator = iter(parser)
        for _ in iterator:
            pass
    print(f"✓ {args.source} — {iterator.rows_decoded} row(s) valid")
    return 0


def _run(handler, args: argparse.Namespace) -> int:
    try:
        return handler(args)
    except ParseError as e:
        logger.error("Parse failed for %s: %s", args.source, e)
        print(f"✗ {args.source} — {e}", file=sys.stderr)
        return 1
    except (ValueError, TypeError, LookupError, OSError) as e:
        logger.error("Configuration error: %s", e)
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


# ---------------------------------------------------------------------------
# Argument parser (importable for tests)
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typedcsv",
        description="Statically typed delimited-text reader",
        epilog=(
            "Separators and encoding may also be set through TYPEDCSV_* environment\n"
            "variables or a .env file."
        ),
    )
    parser.add_argument("--verbose", "-v", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)

    def _source_args(p):
        p.add_argument("--source", required=True, type=Path)
        p.add_argument("--schema", required=True, help="Column types, e.g. int,int,str")

    def _config_args(p):
        p.add_argument("--skip",       type=int, default=None)
        p.add_argument("--word-sep",   default=None, dest="word_sep")
        p.add_argument("--record-sep", default=None, dest="record_sep")
        p.add_argument("--encoding",   default=None)
        p.add_argument("--chunk-size", type=int, default=None, dest="chunk_size")

    p_read = sub.add_parser("read", help="Print every row")
    _source_args(p_read); _config_args(p_read)

    p_val = sub.add_parser("validate", help="Parse every row, print the count")
    _source_args(p_val); _config_args(p_val)

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    load_dotenv(os.path.join(os.getcwd(), ".env"))
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    handlers = {"read": _cmd_read, "validate": _cmd_validate}
    sys.exit(_run(handlers[args.command], args))


if __name__ == "__main__":
    main()
