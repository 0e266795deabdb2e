"""
Field-level converters for the typed CSV parser.

Each converter is a **pure function**: it takes the raw text of one field and
returns the Python value for its column, or raises ``ValueError``.

Built-in column types and their textual rules:
  - ``int``      → optional ``+``/``-`` then ASCII digits, whole field
  - ``str``      → the field verbatim (no trimming, no unescaping)
  - ``float``    → optional sign, digits, optional fraction and exponent
  - ``Decimal``  → same grammar as ``float``, exact value
  - ``bool``     → ``true``/``false``/``1``/``0`` (case-insensitive)
  - ``date``     → ISO-8601 ``YYYY-MM-DD``
  - ``datetime`` → ISO-8601 date and time

Unlike ``int()`` / ``float()``, no surrounding whitespace, underscores or
non-ASCII digits are accepted: the field must be exactly the number.

Any other callable may be used as a column type; it is called with the raw
field text and its ``ValueError`` / ``TypeError`` / ``ArithmeticError`` is
reported as a conversion failure by the row decoder.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

Converter = Callable[[str], Any]

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------
_INT_RE = re.compile(r"[+-]?[0-9]+")
_REAL_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")

_TRUE_WORDS = frozenset({"true", "1"})
_FALSE_WORDS = frozenset({"false", "0"})


# ---------------------------------------------------------------------------
# Converters
# ---------------------------------------------------------------------------

def to_int(raw: str) -> int:
    """Parse an optionally signed decimal integer."""
    if not _INT_RE.fullmatch(raw):
        raise ValueError(f"not an integer: {raw!r}")
    return int(raw)


def to_str(raw: str) -> str:
    return raw


def to_float(raw: str) -> float:
    """Parse a decimal real number (no ``inf``/``nan``)."""
    if not _REAL_RE.fullmatch(raw):
        raise ValueError(f"not a number: {raw!r}")
    return float(raw)


def to_decimal(raw: str) -> Decimal:
    """Parse a decimal real number exactly."""
    if not _REAL_RE.fullmatch(raw):
        raise ValueError(f"not a number: {raw!r}")
    return Decimal(raw)


def to_bool(raw: str) -> bool:
    word = raw.lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def to_date(raw: str) -> date:
    return date.fromisoformat(raw)


def to_datetime(raw: str) -> datetime:
    return datetime.fromisoformat(raw)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

CONVERTERS: dict[type, Converter] = {
    int: to_int,
    str: to_str,
    float: to_float,
    Decimal: to_decimal,
    bool: to_bool,
    date: to_date,
    datetime: to_datetime,
}

TYPE_NAMES: dict[str, type] = {
    "int": int,
    "str": str,
    "float": float,
    "decimal": Decimal,
    "bool": bool,
    "date": date,
    "datetime": datetime,
}
"""Names accepted in textual schemas such as ``"int,int,str"``."""


def converter_for(column_type: Any) -> Converter:
    """
    Return the converter for a column type.

    Args:
        column_type: One of the built-in types in ``CONVERTERS`` or any callable
                     taking the raw field text.

    Raises:
        TypeError: If ``column_type`` is neither a known type nor callable.
    """
    if isinstance(column_type, type) and column_type in CONVERTERS:
        return CONVERTERS[column_type]
    if callable(column_type):
        return column_type
    raise TypeError(f"Column type {column_type!r} is not a known type or a callable converter.")


def type_name(column_type: Any) -> str:
    """Return a readable name for a column type, for error messages."""
    return getattr(column_type, "__name__", None) or repr(column_type)
