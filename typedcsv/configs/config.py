"""
Parser configuration.

All tuneable settings live here.  Separators and the skip count are fixed for
the lifetime of a parser; pass a ``ParserConfig`` to
``TypedCSVParser.from_config`` or use the keyword arguments directly.

Usage:
    from typedcsv.configs.config import ParserConfig
    cfg = ParserConfig()                       # defaults / environment
    cfg = ParserConfig(word_separator=";", skip_count=1)

Environment overrides (optional) can be loaded via .env / os.environ before
constructing the config object; this module does not load .env itself.
"""

from __future__ import annotations

import codecs
import os
from dataclasses import dataclass, field

from typedcsv.utils.validation import (
    encode_separator,
    validate_separator,
    validate_skip_count,
)


DEFAULT_WORD_SEPARATOR: str = ","
DEFAULT_RECORD_SEPARATOR: str = "\n"

DEFAULT_ENCODING: str = "utf-8-sig"
"""Strips a leading BOM from the first record; otherwise plain UTF-8."""

DEFAULT_CHUNK_SIZE: int = 65536
"""Bytes requested from the stream per read while looking for a record separator."""


def unescape_separator(raw: str) -> str:
    """Expand backslash escapes so ``"\\t"`` typed on a command line becomes a tab."""
    if "\\" in raw:
        return codecs.decode(raw, "unicode_escape")
    return raw


def _separator_from_env(env_key: str, default: str) -> str:
    raw = os.environ.get(env_key)
    if not raw:
        return default
    return unescape_separator(raw)


@dataclass(slots=True)
class ParserConfig:
    """
    Runtime configuration for a typed CSV parser.

    Attributes:
        skip_count:       Leading records discarded before the first row (e.g. headers).
        word_separator:   Single character separating fields within a record.
        record_separator: Single character separating records in the stream.
                          Must encode to one byte in ``encoding``.
        encoding:         Text encoding of the stream's records.
        chunk_size:       Read size used while scanning for record separators.
    """

    skip_count: int = field(
        default_factory=lambda: int(os.environ.get("TYPEDCSV_SKIP_COUNT", "0"))
    )
    word_separator: str = field(
        default_factory=lambda: _separator_from_env("TYPEDCSV_WORD_SEPARATOR", DEFAULT_WORD_SEPARATOR)
    )
    record_separator: str = field(
        default_factory=lambda: _separator_from_env("TYPEDCSV_RECORD_SEPARATOR", DEFAULT_RECORD_SEPARATOR)
    )
    encoding: str = field(
        default_factory=lambda: os.environ.get("TYPEDCSV_ENCODING", DEFAULT_ENCODING)
    )
    chunk_size: int = field(
        default_factory=lambda: int(os.environ.get("TYPEDCSV_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE)))
    )

    def __post_init__(self) -> None:
        """
        Raises:
            ValueError: On an invalid skip count, separator or chunk size.
            LookupError: On an unknown encoding.
        """
        validate_skip_count(self.skip_count)
        validate_separator(self.word_separator, "word_separator")
        validate_separator(self.record_separator, "record_separator")
        if self.word_separator == self.record_separator:
            raise ValueError(
                f"word_separator and record_separator must differ, both are {self.word_separator!r}."
            )
        encode_separator(self.record_separator, self.encoding)
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}.")

    @property
    def record_separator_bytes(self) -> bytes:
        """The record separator as it appears in the raw stream."""
        return encode_separator(self.record_separator, self.encoding)
