"""
Typed CSV parser: a stream cursor that yields one typed Row per record.

Lifecycle of a ``RowIterator``::

    INITIALIZING ──begin()──▶ POSITIONED ──advance()──▶ POSITIONED ... ──▶ EXHAUSTED
          │                        │
          └──────── error ─────────┴──────────▶ ERROR   (absorbing, no resumption)

Key properties:
  - **Lazy** — one record is read and decoded per step; only the current Row
    is held, and advancing replaces it.
  - **Sentinel termination** — the parser measures the stream once and stores
    ``end_sentinel = length + 1``.  The iterator's position takes that value
    exactly when a read hits a clean end of stream, and ``at_end()`` is the
    equality test against it.
  - **Fail fast** — every read or decode failure is raised at the step that
    hit it and moves the iterator to ``ERROR``; nothing is retried or skipped.
  - **Borrowed stream** — the caller opens and closes the stream and must not
    touch it while iterating.  Each new iteration rewinds it to offset 0.

Usage::

    with open("trades.csv", "rb") as f:
        parser = TypedCSVParser(f, (int, int, str), skip_count=1)
        for row in parser:
            print(render(row))

    # Explicit external-iterator form:
    it = parser.begin()
    while not it.at_end():
        use(it.current())
        it.advance()
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO

from typedcsv.configs.config import DEFAULT_CHUNK_SIZE, DEFAULT_ENCODING, ParserConfig
from typedcsv.configs.exceptions import (
    EmptySourceError,
    FormatError,
    RowDecodeError,
    SourceError,
    StreamIOError,
)
from typedcsv.discovery.base import AbstractRecordSource
from typedcsv.discovery.record_reader import RecordReader
from typedcsv.models.models import CursorState, Row, Schema
from typedcsv.transformers.row_decoder import decode
from typedcsv.utils.validation import base_codec

logger = logging.getLogger(__name__)


class TypedCSVParser:
    """
    Parser for one stream and one fixed schema.

    Args:
        stream:           Open, seekable binary stream.  Not closed by the parser.
        schema:           A ``Schema``, a NamedTuple class, or a sequence of
                          column types such as ``(int, int, str)``.
        skip_count:       Leading records to discard (e.g. header lines).
        word_separator:   Field separator within a record.
        record_separator: Record separator within the stream.
        encoding:         Text encoding of records.
        chunk_size:       Bytes per read while scanning for record separators.

    Raises:
        TypeError:     If the stream is in text mode or the schema is malformed.
        ValueError:    On invalid separators, skip count or unseekable stream.
        StreamIOError: If measuring the stream length fails.
    """

    def __init__(
        self,
        stream: BinaryIO,
        schema: Any,
        skip_count: int = 0,
        word_separator: str = ",",
        record_separator: str = "\n",
        *,
        encoding: str = DEFAULT_ENCODING,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.config = ParserConfig(
            skip_count=skip_count,
            word_separator=word_separator,
            record_separator=record_separator,
            encoding=encoding,
            chunk_size=chunk_size,
        )
        self.schema = Schema.coerce(schema)
        self._source: AbstractRecordSource = RecordReader(
            stream,
            self.config.record_separator_bytes,
            self.config.chunk_size,
        )
        try:
            length = self._source.measure()
        except OSError as e:
            raise StreamIOError(
                f"I/O error while measuring the stream: {e}", offset=0, row=1, column=1
            ) from e
        self.end_sentinel = length + 1
        logger.debug(
            "Parser ready: %d bytes, arity=%d, skip=%d",
            length, self.schema.arity, self.config.skip_count,
        )

    @classmethod
    def from_config(
        cls,
        stream: BinaryIO,
        schema: Any,
        config: ParserConfig | None = None,
    ) -> "TypedCSVParser":
        """Build a parser from a ``ParserConfig`` (environment defaults when omitted)."""
        config = config if config is not None else ParserConfig()
        return cls(
            stream,
            schema,
            skip_count=config.skip_count,
            word_separator=config.word_separator,
            record_separator=config.record_separator,
            encoding=config.encoding,
            chunk_size=config.chunk_size,
        )

    @property
    def skip_count(self) -> int:
        return self.config.skip_count

    @property
    def word_separator(self) -> str:
        return self.config.word_separator

    @property
    def record_separator(self) -> str:
        return self.config.record_separator

    def begin(self) -> "RowIterator":
        """Return an iterator already positioned on the first row."""
        iterator = RowIterator(self)
        iterator.begin()
        return iterator

    def __iter__(self) -> "RowIterator":
        return RowIterator(self)


class RowIterator:
    """
    Cursor over a parser's stream.  Owns the current Row.

    Obtain one with ``iter(parser)`` (positions lazily on the first ``next``)
    or ``parser.begin()`` (positions immediately).
    """

    def __init__(self, parser: TypedCSVParser) -> None:
        self._parser = parser
        self._source = parser._source
        self._state = CursorState.INITIALIZING
        self._position = 0
        self._record_start = 0
        self._row: Row | None = None
        self._pending = False
        self.rows_decoded = 0

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def position(self) -> int:
        """Byte offset just past the current record, or ``end_sentinel`` once exhausted."""
        return self._position

    @property
    def end_sentinel(self) -> int:
        return self._parser.end_sentinel

    # ── external-iterator contract ───────────────────────────────────────

    def begin(self) -> Row:
        """
        Rewind, skip ``skip_count`` records and position on the first row.

        Running out of records (or hitting a read failure) while skipping ends
        the skip early without an error; the failure then surfaces on the read
        of the first row.

        Returns:
            The first Row.

        Raises:
            EmptySourceError:     No record is left after skipping.
            StreamIOError:        The stream raised an I/O fault.
            FormatError:          The stream is unreadable or a record is not valid text.
            FieldCountMismatch:   The first record has the wrong field count.
            FieldConversionError: A field of the first record does not convert.
            RuntimeError:         If this iterator was already positioned.
        """
        if self._state is not CursorState.INITIALIZING:
            raise RuntimeError("begin() may only be called once per iterator.")

        try:
            self._source.rewind()
        except OSError as e:
            raise self._fail(StreamIOError, f"I/O error while rewinding: {e}") from e
        except ValueError as e:
            raise self._fail(FormatError, f"Stream cannot be rewound: {e}") from e

        self._skip(self._parser.skip_count)

        record = self._read("reading the first row")
        if record is None:
            raise self._fail(EmptySourceError, "End of file reached before the first row")
        self._store(record)
        self._state = CursorState.POSITIONED
        self._pending = True
        logger.debug("Positioned on first row at offset %d", self._position)
        return self._row

    def advance(self) -> int:
        """
        Move to the next record.

        Returns:
            The new position; ``end_sentinel`` once the stream is exhausted.
            Advancing an exhausted iterator leaves it at the sentinel.

        Raises:
            StreamIOError:        The stream raised an I/O fault.
            FormatError:          The stream is unreadable or the record is not valid text.
            FieldCountMismatch:   The record has the wrong field count.
            FieldConversionError: A field does not convert.
            RuntimeError:         Before ``begin()`` or after an earlier error.
        """
        if self._state is CursorState.INITIALIZING:
            raise RuntimeError("begin() must be called before advance().")
        if self._state is CursorState.ERROR:
            raise RuntimeError("Iteration was terminated by an earlier error.")
        if self._state is CursorState.EXHAUSTED:
            return self._position

        self._pending = False
        record = self._read("reading the next row")
        if record is None:
            self._position = self._parser.end_sentinel
            self._row = None
            self._state = CursorState.EXHAUSTED
            logger.debug("End of stream after %d rows", self.rows_decoded)
            return self._position
        self._store(record)
        return self._position

    def at_end(self) -> bool:
        return self._position == self._parser.end_sentinel

    def current(self) -> Row:
        """
        Return the current Row.

        Raises:
            RuntimeError: Before positioning, after exhaustion or after an error.
        """
        if self._state is not CursorState.POSITIONED:
            raise RuntimeError(f"No current row in state {self._state.value}.")
        return self._row

    # ── Python iterator protocol ─────────────────────────────────────────

    def __iter__(self) -> "RowIterator":
        return self

    def __next__(self) -> Row:
        if self._state is CursorState.INITIALIZING:
            self.begin()
        if self._pending:
            self._pending = False
            return self._row
        self.advance()
        if self.at_end():
            raise StopIteration
        return self._row

    # ── internals ────────────────────────────────────────────────────────

    def _skip(self, count: int) -> None:
        skipped = 0
        while skipped < count:
            try:
                record = self._source.read_record()
            except (OSError, ValueError) as e:
                logger.debug("Skip stopped after %d of %d records: %s", skipped, count, e)
                return
            if record is None:
                logger.debug("Skip reached end of stream after %d of %d records", skipped, count)
                return
            skipped += 1

    def _read(self, action: str) -> bytes | None:
        self._record_start = self._source.tell()
        try:
            return self._source.read_record()
        except OSError as e:
            raise self._fail(StreamIOError, f"I/O error while {action}: {e}") from e
        except ValueError as e:
            raise self._fail(FormatError, f"Wrong file format while {action}: {e}") from e

    def _store(self, record: bytes) -> None:
        encoding = self._parser.config.encoding
        codec_name, bom = base_codec(encoding)
        # Only the record at offset 0 can carry a BOM; later U+FEFF is field content.
        skipped = len(bom) if self._record_start == 0 and bom and record.startswith(bom) else 0
        try:
            text = record[skipped:].decode(codec_name)
        except UnicodeDecodeError as e:
            bad = skipped + e.start
            raise self._fail(
                FormatError,
                f"Record is not valid {encoding}: {e.reason}",
                offset=self._record_start + bad,
                row=self._source.records_read,
                column=bad + 1,
            ) from e

        try:
            row = decode(text, self._parser.word_separator, self._parser.schema)
        except RowDecodeError as e:
            e.row_number = self._source.records_read
            self._enter_error()
            raise

        self._row = row
        self._position = self._source.tell()
        self.rows_decoded += 1

    def _fail(
        self,
        error_cls: type[SourceError],
        message: str,
        offset: int | None = None,
        row: int | None = None,
        column: int | None = None,
    ) -> SourceError:
        """
        Enter ``ERROR`` and build a positional error.

        By default the position is that of the record being assembled when the
        failure happened: its 1-based number and the 1-based byte column
        reached inside it.
        """
        partial = self._source.partial_length
        error = error_cls(
            message,
            offset=offset if offset is not None else self._source.tell() + partial,
            row=row if row is not None else self._source.records_read + 1,
            column=column if column is not None else partial + 1,
        )
        self._enter_error()
        return error

    def _enter_error(self) -> None:
        self._state = CursorState.ERROR
        self._row = None
        self._pending = False
