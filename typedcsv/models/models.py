"""
Core data models for the typed CSV parser.

Schema       — the fixed, ordered list of column types a parser is built for.
Row          — the decoded tuple produced from one record.
CursorState  — the states a row iterator moves through.

Schema construction
-------------------
A schema can be declared three ways:

    Schema.of(int, int, str)                  # plain tuples as rows
    Schema.from_namedtuple(Trade)             # Trade instances as rows
    Schema.parse("int,int,str")               # by type name (CLI)

The converters are resolved once, at construction, so decoding a field is a
positional lookup into ``converters``.  Arity and types never change after
construction.
"""

from __future__ import annotations

import enum
import typing
from dataclasses import dataclass
from typing import Any, Iterable

from typedcsv.transformers.converters import TYPE_NAMES, Converter, converter_for

Row = tuple[Any, ...]


class CursorState(enum.Enum):
    """Lifecycle of a ``RowIterator``."""

    INITIALIZING = "initializing"
    POSITIONED = "positioned"
    EXHAUSTED = "exhausted"
    ERROR = "error"


def _is_namedtuple_class(value: Any) -> bool:
    return isinstance(value, type) and issubclass(value, tuple) and hasattr(value, "_fields")


@dataclass(frozen=True, slots=True)
class Schema:
    """
    Column types for one parser instance.

    Attributes:
        types:      Declared column types (or converter callables), in column order.
        converters: One ``str -> value`` callable per column, resolved from ``types``.
        names:      Column names when declared through a NamedTuple, else empty.
        row_type:   NamedTuple class rows are built as, or ``None`` for plain tuples.
    """

    types: tuple[Any, ...]
    converters: tuple[Converter, ...]
    names: tuple[str, ...] = ()
    row_type: type | None = None

    def __post_init__(self) -> None:
        if not self.types:
            raise ValueError("A schema needs at least one column.")
        if len(self.converters) != len(self.types):
            raise ValueError(
                f"Schema has {len(self.types)} types but {len(self.converters)} converters."
            )

    @classmethod
    def of(cls, *types: Any) -> "Schema":
        """Build a schema whose rows are plain tuples."""
        return cls(
            types=tuple(types),
            converters=tuple(converter_for(t) for t in types),
        )

    @classmethod
    def from_namedtuple(cls, row_type: type) -> "Schema":
        """
        Build a schema from a ``typing.NamedTuple`` class.

        Field annotations are resolved with ``typing.get_type_hints`` so that
        string annotations (``from __future__ import annotations``) work.

        Raises:
            TypeError: If ``row_type`` is not a NamedTuple class, or a field has
                       no annotation.
        """
        if not _is_namedtuple_class(row_type):
            raise TypeError(f"{row_type!r} is not a NamedTuple class.")
        hints = typing.get_type_hints(row_type)
        missing = [name for name in row_type._fields if name not in hints]
        if missing:
            raise TypeError(f"{row_type.__name__} fields without a type annotation: {missing}")
        types = tuple(hints[name] for name in row_type._fields)
        return cls(
            types=types,
            converters=tuple(converter_for(t) for t in types),
            names=tuple(row_type._fields),
            row_type=row_type,
        )

    @classmethod
    def parse(cls, type_names: str) -> "Schema":
        """
        Build a schema from comma-separated type names, e.g. ``"int,int,str"``.

        Raises:
            ValueError: On an empty or unknown type name.
        """
        names = [part.strip().lower() for part in type_names.split(",")]
        unknown = [name for name in names if name not in TYPE_NAMES]
        if unknown:
            raise ValueError(
                f"Unknown column type(s) {unknown}. Valid types: {list(TYPE_NAMES)}"
            )
        return cls.of(*(TYPE_NAMES[name] for name in names))

    @classmethod
    def coerce(cls, value: Any) -> "Schema":
        """Accept a ``Schema``, a NamedTuple class, or a sequence of column types."""
        if isinstance(value, Schema):
            return value
        if _is_namedtuple_class(value):
            return cls.from_namedtuple(value)
        if isinstance(value, (tuple, list)):
            return cls.of(*value)
        raise TypeError(
            f"Cannot build a schema from {value!r}; pass a Schema, a NamedTuple class "
            f"or a sequence of column types."
        )

    @property
    def arity(self) -> int:
        return len(self.types)

    def build(self, values: Iterable[Any]) -> Row:
        """Turn converted values into a Row of the declared shape."""
        if self.row_type is not None:
            return self.row_type._make(values)
        return tuple(values)
