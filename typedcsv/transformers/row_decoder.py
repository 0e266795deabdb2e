"""
Row decoding: one record's text in, one typed Row out.

``decode`` is a pure function of its inputs:

  1. ``split`` the record on the word separator; the last field runs to the
     end of the text, so no trailing separator is required;
  2. check the field count against the schema arity; extra fields are an
     error, never silently dropped;
  3. convert field *i* with converter *i* of the schema.

Usage::

    schema = Schema.of(int, int, str)
    decode("1,2,hello", ",", schema)     # → (1, 2, "hello")
    decode("1,2", ",", schema)           # FieldCountMismatch
    decode("x,2,hello", ",", schema)     # FieldConversionError (field 0)
"""

from __future__ import annotations

from typedcsv.configs.exceptions import FieldConversionError
from typedcsv.models.models import Row, Schema
from typedcsv.transformers.converters import type_name
from typedcsv.utils.validation import validate_field_count


def split(text: str, separator: str) -> list[str]:
    """Split ``text`` on ``separator``.  An empty text is a single empty field."""
    return text.split(separator)


def decode(record_text: str, word_separator: str, schema: Schema) -> Row:
    """
    Decode one record into a Row of ``schema``'s shape.

    Args:
        record_text:    The record without its record separator.
        word_separator: Single character separating fields.
        schema:         Column types; its arity is the required field count.

    Returns:
        A tuple, or an instance of ``schema.row_type``, whose element *i* is
        field *i* converted to column type *i*.

    Raises:
        FieldCountMismatch:   If the record does not have exactly ``schema.arity`` fields.
        FieldConversionError: If a field does not parse as its column type.
    """
    fields = split(record_text, word_separator)
    validate_field_count(fields, schema.arity)

    values = []
    for index, raw in enumerate(fields):
        try:
            values.append(schema.converters[index](raw))
        except (ValueError, TypeError, ArithmeticError) as e:
            declared = type_name(schema.types[index])
            raise FieldConversionError(
                f"Field {index} ({raw!r}) is not a valid {declared}: {e}",
                field_index=index,
                raw=raw,
                type_name=declared,
            ) from e
    return schema.build(values)
