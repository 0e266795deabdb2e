"""
Validation helpers for parser configuration and record structure.

Configuration checks run when a parser or config is constructed so that a bad
separator or stream is reported before any record is read.  The field-count
check runs once per record inside the row decoder.

All functions raise the appropriate exception on failure rather than returning
a boolean. Callers are expected to let exceptions propagate.
"""

from __future__ import annotations

import codecs
import io

from typedcsv.configs.exceptions import FieldCountMismatch


def validate_field_count(fields: list[str], expected_field_count: int) -> None:
    """
    Assert that a record split into exactly the expected number of fields.

    Args:
        fields:               The record's fields, as split.
        expected_field_count: Schema arity.

    Raises:
        FieldCountMismatch: If ``len(fields) != expected_field_count``.
    """
    actual = len(fields)
    if actual != expected_field_count:
        raise FieldCountMismatch(
            f"Record has {actual} fields, expected {expected_field_count}.",
            expected=expected_field_count,
            got=actual,
        )


def validate_separator(separator: str, name: str) -> None:
    """
    Assert that ``separator`` is exactly one character.

    Raises:
        ValueError: If the separator is empty, longer than one character, or not a string.
    """
    if not isinstance(separator, str) or len(separator) != 1:
        raise ValueError(f"{name} must be a single character, got {separator!r}.")


def base_codec(encoding: str) -> tuple[str, bytes]:
    """
    Split ``encoding`` into its BOM-free codec name and the BOM it strips.

    ``utf-8-sig`` becomes ``("utf-8", BOM_UTF8)``; every other codec is
    returned unchanged with an empty BOM.

    Raises:
        LookupError: If ``encoding`` is unknown.
    """
    codec_name = codecs.lookup(encoding).name
    if codec_name == "utf-8-sig":
        return "utf-8", codecs.BOM_UTF8
    return codec_name, b""


def encode_separator(separator: str, encoding: str) -> bytes:
    """
    Encode the record separator into the single byte it occupies in the stream.

    BOM-writing codecs (``utf-8-sig``) are encoded with their BOM-free base so
    that ``","`` stays ``b","``.

    Raises:
        ValueError: If the separator does not encode to exactly one byte.
        LookupError: If ``encoding`` is unknown.
    """
    codec_name, _ = base_codec(encoding)
    encoded = separator.encode(codec_name)
    if len(encoded) != 1:
        raise ValueError(
            f"Record separator {separator!r} occupies {len(encoded)} bytes in "
            f"{encoding}; only single-byte separators are supported."
        )
    return encoded


def validate_skip_count(skip_count: int) -> None:
    """
    Assert that ``skip_count`` is a non-negative integer.

    Raises:
        ValueError: If ``skip_count`` is negative or not an int.
    """
    if isinstance(skip_count, bool) or not isinstance(skip_count, int) or skip_count < 0:
        raise ValueError(f"skip_count must be a non-negative integer, got {skip_count!r}.")


def validate_stream(stream) -> None:
    """
    Assert that ``stream`` is a seekable binary stream.

    Byte offsets drive both reading and the end-of-iteration sentinel, so text
    streams (whose ``tell()`` is an opaque cookie) are rejected.

    Raises:
        TypeError:  If ``stream`` is a text stream.
        ValueError: If ``stream`` cannot seek.
    """
    if isinstance(stream, io.TextIOBase):
        raise TypeError("stream must be opened in binary mode ('rb'), not text mode.")
    seekable = getattr(stream, "seekable", None)
    if seekable is None or not seekable():
        raise ValueError("stream must be seekable.")
