"""
Custom exceptions for the typed CSV parser.

Hierarchy:
    ParseError
    ├── SourceError            The stream could not deliver a record.
    │   ├── EmptySourceError   No record where the first row was expected.
    │   ├── FormatError        Stream neither yields a record nor reports a clean EOF.
    │   └── StreamIOError      The underlying stream raised an I/O fault.
    └── RowDecodeError         A record was read but cannot become a Row.
        ├── FieldCountMismatch   Field count differs from the schema arity.
        └── FieldConversionError A field does not parse as its column type.

Every error is fatal to the iteration that raised it.
"""


class ParseError(Exception):
    """Base class for all parser errors."""


class SourceError(ParseError):
    """
    Raised when the stream cannot deliver the next record.

    Args:
        message: Human-readable description of the failure.
        offset:  Byte offset in the stream at failure time.
        row:     1-based record number being read when the failure occurred.
        column:  1-based byte column inside that record.
    """

    def __init__(
        self,
        message: str,
        offset: int | None = None,
        row: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(message)
        self.offset = offset
        self.row = row
        self.column = column

    def __str__(self) -> str:
        base = super().__str__()
        parts = []
        if self.offset is not None:
            parts.append(f"offset={self.offset}")
        if self.row is not None:
            parts.append(f"row={self.row}")
        if self.column is not None:
            parts.append(f"col={self.column}")
        if parts:
            return f"{base} | {' '.join(parts)}"
        return base


class EmptySourceError(SourceError):
    """Raised when the stream ends before the first row (empty, or skip count too large)."""


class FormatError(SourceError):
    """Raised when the stream is readable but not cleanly parseable at the current position."""


class StreamIOError(SourceError):
    """Raised when the underlying stream reports an I/O fault."""


class RowDecodeError(ParseError):
    """
    Raised when a record cannot be decoded into a Row.

    ``row_number`` is left ``None`` by the pure decoder and filled in by the
    iterator, which knows the record's position in the stream.
    """

    def __init__(self, message: str, row_number: int | None = None) -> None:
        super().__init__(message)
        self.row_number = row_number

    def _context(self) -> list[str]:
        if self.row_number is not None:
            return [f"row={self.row_number}"]
        return []

    def __str__(self) -> str:
        base = super().__str__()
        parts = self._context()
        if parts:
            return f"{base} | {' '.join(parts)}"
        return base


class FieldCountMismatch(RowDecodeError):
    """
    Raised when a record splits into a different number of fields than the schema arity.

    Args:
        message:    Human-readable description.
        expected:   Schema arity.
        got:        Number of fields actually found in the record.
        row_number: 1-based record number, when known.
    """

    def __init__(
        self,
        message: str,
        expected: int | None = None,
        got: int | None = None,
        row_number: int | None = None,
    ) -> None:
        super().__init__(message, row_number)
        self.expected = expected
        self.got = got

    def _context(self) -> list[str]:
        parts = super()._context()
        if self.expected is not None:
            parts.append(f"expected={self.expected}")
        if self.got is not None:
            parts.append(f"got={self.got}")
        return parts


class FieldConversionError(RowDecodeError):
    """
    Raised when a field's raw text does not parse into its declared column type.

    Args:
        message:     Human-readable description.
        field_index: 0-based position of the offending field.
        raw:         The field text exactly as read.
        type_name:   Name of the declared column type.
        row_number:  1-based record number, when known.
    """

    def __init__(
        self,
        message: str,
        field_index: int | None = None,
        raw: str | None = None,
        type_name: str | None = None,
        row_number: int | None = None,
    ) -> None:
        super().__init__(message, row_number)
        self.field_index = field_index
        self.raw = raw
        self.type_name = type_name

    def _context(self) -> list[str]:
        parts = super()._context()
        if self.field_index is not None:
            parts.append(f"field={self.field_index}")
        if self.type_name:
            parts.append(f"type={self.type_name}")
        if self.raw is not None:
            parts.append(f"raw={self.raw!r}")
        return parts
