"""
Stream cursor / iterator: test_parser.py

Construction:
  - end_sentinel == stream length + 1; stream rewound to offset 0
  - Accepts a Schema, a NamedTuple class or a sequence of types
  - Text-mode streams, bad separators and negative skip counts are rejected
  - from_config carries every ParserConfig setting

Iteration:
  - "1,2,hello" / "3,4,world" with (int, int, str) yields both rows then stops
  - R records with skip k < R yield exactly R - k rows in order
  - skip >= R and empty streams raise EmptySourceError on first positioning
  - Trailing separator or not, the row count is the same
  - Custom word / record separators and BOM-prefixed input
  - Re-iterating the parser rewinds and yields the same rows
  - The parser never closes the stream

External-iterator contract:
  - begin() positions on the first row; current() returns it
  - advance() returns monotonically increasing positions, then end_sentinel
  - at_end() is true exactly at end_sentinel; advance() there is a no-op
  - current() before positioning / after exhaustion raises RuntimeError
  - for-loop over parser.begin() still yields the first row

Errors:
  - Wrong field count → FieldCountMismatch with record number; no further rows
  - Non-numeric int field → FieldConversionError with record number
  - I/O fault → StreamIOError with offset / row / column
  - Stream returning no data without EOF, closed stream, undecodable bytes → FormatError
  - Any error moves the iterator to ERROR; further advancing raises RuntimeError
  - Read failures while skipping end the skip silently
"""

from __future__ import annotations

import io
from decimal import Decimal
from typing import NamedTuple

import pytest

from typedcsv.configs.config import ParserConfig
from typedcsv.configs.exceptions import (
    EmptySourceError,
    FieldConversionError,
    FieldCountMismatch,
    FormatError,
    SourceError,
    StreamIOError,
)
from typedcsv.models.models import CursorState, Schema
from typedcsv.parser import RowIterator, TypedCSVParser


# ============================================================================
# Helpers
# ============================================================================

SCHEMA = (int, int, str)


class FaultyStream(io.BytesIO):
    """BytesIO that raises OSError once a read would start at or after ``fail_at``."""

    def __init__(self, data: bytes, fail_at: int) -> None:
        super().__init__(data)
        self.fail_at = fail_at

    def read(self, size=-1):
        remaining = self.fail_at - self.tell()
        if remaining <= 0:
            raise OSError("simulated disk failure")
        if size is None or size < 0 or size > remaining:
            size = remaining
        return super().read(size)


class StallingStream(io.BytesIO):
    """BytesIO that reports 'no data yet' (``None``) from ``stall_at`` on, like a non-blocking pipe."""

    def __init__(self, data: bytes, stall_at: int) -> None:
        super().__init__(data)
        self.stall_at = stall_at

    def read(self, size=-1):
        remaining = self.stall_at - self.tell()
        if remaining <= 0:
            return None
        if size is None or size < 0 or size > remaining:
            size = remaining
        return super().read(size)


def make_parser(data: bytes, schema=SCHEMA, **kwargs) -> TypedCSVParser:
    return TypedCSVParser(io.BytesIO(data), schema, **kwargs)


def lines(*records: str) -> bytes:
    return "".join(f"{r}\n" for r in records).encode("utf-8")


# ============================================================================
# Construction
# ============================================================================

class TestConstruction:
    def test_end_sentinel_is_length_plus_one(self):
        data = b"1,2,hello\n3,4,world\n"
        assert make_parser(data).end_sentinel == len(data) + 1

    def test_stream_rewound(self):
        stream = io.BytesIO(b"1,2,a\n")
        stream.seek(4)
        TypedCSVParser(stream, SCHEMA)
        assert stream.tell() == 0

    def test_schema_forms(self):
        class Pair(NamedTuple):
            a: int
            b: str

        assert make_parser(b"", Schema.of(int)).schema.arity == 1
        assert make_parser(b"", Pair).schema.row_type is Pair
        assert make_parser(b"", [int, str, str]).schema.arity == 3

    def test_text_stream_rejected(self):
        with pytest.raises(TypeError):
            TypedCSVParser(io.StringIO("1,2,a\n"), SCHEMA)

    @pytest.mark.parametrize("kwargs", [
        {"word_separator": ""},
        {"word_separator": ",,"},
        {"record_separator": ","},
        {"skip_count": -1},
        {"record_separator": "é"},
    ])
    def test_bad_configuration_rejected(self, kwargs):
        with pytest.raises(ValueError):
            make_parser(b"", **kwargs)

    def test_from_config(self):
        config = ParserConfig(skip_count=1, word_separator=";", record_separator="|",
                              encoding="utf-8", chunk_size=8)
        parser = TypedCSVParser.from_config(io.BytesIO(b"h|1;2;x|"), SCHEMA, config)
        assert parser.skip_count == 1
        assert parser.word_separator == ";"
        assert parser.record_separator == "|"
        assert list(parser) == [(1, 2, "x")]

    def test_measure_failure_is_stream_io_error(self):
        class BrokenSeek(io.BytesIO):
            def seek(self, *args):
                raise OSError("seek failed")

        with pytest.raises(StreamIOError):
            TypedCSVParser(BrokenSeek(b"1,2,a"), SCHEMA)


# ============================================================================
# Iteration
# ============================================================================

class TestIteration:
    def test_concrete_scenario(self):
        parser = make_parser(b"1,2,hello\n3,4,world\n")
        assert list(parser) == [(1, 2, "hello"), (3, 4, "world")]

    def test_without_trailing_separator(self):
        parser = make_parser(b"1,2,hello\n3,4,world")
        assert list(parser) == [(1, 2, "hello"), (3, 4, "world")]

    @pytest.mark.parametrize("skip", [0, 1, 2, 4])
    def test_skip_yields_remaining_rows_in_order(self, skip):
        records = [f"{i},{i * 10},r{i}" for i in range(5)]
        parser = make_parser(lines(*records), skip_count=skip)
        expected = [(i, i * 10, f"r{i}") for i in range(skip, 5)]
        assert list(parser) == expected

    def test_skip_header(self):
        parser = make_parser(lines("id,qty,name", "1,2,a"), skip_count=1)
        assert list(parser) == [(1, 2, "a")]

    def test_skip_equal_to_record_count_raises(self):
        with pytest.raises(EmptySourceError):
            list(make_parser(b"1,2,a\n", skip_count=1))

    def test_skip_exceeds_record_count_raises(self):
        with pytest.raises(EmptySourceError) as exc_info:
            list(make_parser(lines("1,2,a", "3,4,b"), skip_count=5))
        e = exc_info.value
        assert e.row == 3
        assert e.offset == 12

    def test_empty_stream_raises(self):
        with pytest.raises(EmptySourceError) as exc_info:
            next(iter(make_parser(b"")))
        assert exc_info.value.row == 1
        assert exc_info.value.column == 1

    def test_empty_source_is_source_error(self):
        assert issubclass(EmptySourceError, SourceError)

    def test_custom_separators(self):
        parser = make_parser(b"1;2;hello|3;4;world", word_separator=";", record_separator="|")
        assert list(parser) == [(1, 2, "hello"), (3, 4, "world")]

    def test_tab_separated(self):
        parser = make_parser(b"1\t2\ta,b\n", word_separator="\t")
        assert list(parser) == [(1, 2, "a,b")]

    def test_bom_is_stripped(self):
        parser = make_parser(b"\xef\xbb\xbf1,2,a\n")
        assert list(parser) == [(1, 2, "a")]

    def test_bom_is_kept_after_first_record(self):
        parser = TypedCSVParser(io.BytesIO(b"a\n\xef\xbb\xbfb\n"), (str,))
        assert list(parser) == [("a",), ("\ufeffb",)]

    def test_bom_is_kept_when_header_skipped(self):
        parser = TypedCSVParser(io.BytesIO(b"\xef\xbb\xbfh\n\xef\xbb\xbfb\n"), (str,), skip_count=1)
        assert list(parser) == [("\ufeffb",)]

    def test_non_ascii_strings(self):
        parser = make_parser("1,2,Grüße\n".encode("utf-8"))
        assert list(parser) == [(1, 2, "Grüße")]

    def test_namedtuple_rows(self):
        class Trade(NamedTuple):
            trade_id: int
            price: Decimal
            symbol: str

        rows = list(make_parser(b"1,9.50,ACME\n2,10.25,INIT\n", Trade))
        assert rows[1] == Trade(2, Decimal("10.25"), "INIT")
        assert rows[0].symbol == "ACME"

    def test_blank_record_for_single_string_column(self):
        parser = make_parser(b"a\n\nb\n", (str,))
        assert list(parser) == [("a",), ("",), ("b",)]

    def test_small_chunks(self):
        records = [f"{i},{-i},name-{i}" for i in range(200)]
        parser = make_parser(lines(*records), chunk_size=5)
        assert len(list(parser)) == 200

    def test_reiteration_rewinds(self):
        parser = make_parser(b"1,2,a\n3,4,b\n")
        assert list(parser) == list(parser)

    def test_stream_not_closed(self):
        stream = io.BytesIO(b"1,2,a\n")
        list(TypedCSVParser(stream, SCHEMA))
        assert not stream.closed


# ============================================================================
# External-iterator contract
# ============================================================================

class TestIteratorContract:
    def test_begin_current_advance(self):
        data = b"1,2,hello\n3,4,world\n"
        parser = make_parser(data)
        it = parser.begin()
        assert it.state is CursorState.POSITIONED
        assert it.current() == (1, 2, "hello")
        assert it.position == 10

        assert it.advance() == 20
        assert it.current() == (3, 4, "world")
        assert not it.at_end()

        assert it.advance() == parser.end_sentinel
        assert it.at_end()
        assert it.state is CursorState.EXHAUSTED

    def test_while_loop_form(self):
        parser = make_parser(b"1,2,a\n3,4,b\n5,6,c")
        seen = []
        it = parser.begin()
        while not it.at_end():
            seen.append(it.current())
            it.advance()
        assert seen == [(1, 2, "a"), (3, 4, "b"), (5, 6, "c")]

    def test_positions_monotonic(self):
        parser = make_parser(lines(*[f"{i},{i},x" for i in range(10)]))
        it = parser.begin()
        positions = [it.position]
        while not it.at_end():
            positions.append(it.advance())
        assert positions == sorted(positions)
        assert positions[-1] == parser.end_sentinel
        assert positions[-2] == parser.end_sentinel - 1

    def test_advance_at_end_is_noop(self):
        it = make_parser(b"1,2,a").begin()
        it.advance()
        assert it.advance() == it.end_sentinel
        assert it.at_end()

    def test_current_before_begin_raises(self):
        it = iter(make_parser(b"1,2,a"))
        assert isinstance(it, RowIterator)
        with pytest.raises(RuntimeError):
            it.current()

    def test_advance_before_begin_raises(self):
        with pytest.raises(RuntimeError):
            iter(make_parser(b"1,2,a")).advance()

    def test_current_after_exhaustion_raises(self):
        it = make_parser(b"1,2,a").begin()
        it.advance()
        with pytest.raises(RuntimeError):
            it.current()

    def test_begin_twice_raises(self):
        it = make_parser(b"1,2,a").begin()
        with pytest.raises(RuntimeError):
            it.begin()

    def test_for_loop_over_positioned_iterator(self):
        parser = make_parser(b"1,2,a\n3,4,b\n")
        assert list(parser.begin()) == [(1, 2, "a"), (3, 4, "b")]

    def test_stop_iteration_repeats(self):
        it = iter(make_parser(b"1,2,a\n"))
        assert next(it) == (1, 2, "a")
        with pytest.raises(StopIteration):
            next(it)
        with pytest.raises(StopIteration):
            next(it)

    def test_rows_decoded(self):
        it = iter(make_parser(b"1,2,a\n3,4,b\n"))
        list(it)
        assert it.rows_decoded == 2


# ============================================================================
# Errors
# ============================================================================

class TestErrors:
    def test_too_few_fields(self):
        with pytest.raises(FieldCountMismatch) as exc_info:
            list(make_parser(b"1,2\n"))
        e = exc_info.value
        assert e.expected == 3
        assert e.got == 2
        assert e.row_number == 1

    def test_mismatch_stops_iteration(self):
        it = iter(make_parser(b"1,2,a\n3,4\n5,6,c\n"))
        assert next(it) == (1, 2, "a")
        with pytest.raises(FieldCountMismatch) as exc_info:
            next(it)
        assert exc_info.value.row_number == 2
        assert it.state is CursorState.ERROR
        with pytest.raises(RuntimeError):
            next(it)
        with pytest.raises(RuntimeError):
            it.current()

    def test_too_many_fields(self):
        with pytest.raises(FieldCountMismatch):
            list(make_parser(b"1,2,a,extra\n"))

    def test_row_number_counts_skipped_records(self):
        with pytest.raises(FieldConversionError) as exc_info:
            list(make_parser(lines("h1,h2,h3", "1,2,a", "x,2,b"), skip_count=1))
        e = exc_info.value
        assert e.row_number == 3
        assert e.field_index == 0
        assert e.raw == "x"
        assert "row=3" in str(e)

    def test_non_numeric_on_first_row(self):
        with pytest.raises(FieldConversionError):
            make_parser(b"one,2,a\n").begin()

    def test_io_fault_on_advance(self):
        stream = FaultyStream(b"1,2,a\n3,4,b\n", fail_at=8)
        it = TypedCSVParser(stream, SCHEMA, chunk_size=4).begin()
        assert it.current() == (1, 2, "a")
        with pytest.raises(StreamIOError) as exc_info:
            it.advance()
        e = exc_info.value
        assert e.offset == 8
        assert e.row == 2
        assert e.column == 3
        assert isinstance(e.__cause__, OSError)
        assert it.state is CursorState.ERROR

    def test_io_fault_before_first_row(self):
        stream = FaultyStream(b"1,2,a\n", fail_at=0)
        with pytest.raises(StreamIOError) as exc_info:
            TypedCSVParser(stream, SCHEMA).begin()
        assert exc_info.value.row == 1

    def test_stalled_stream_is_format_error(self):
        stream = StallingStream(b"1,2,a\n3,4,b\n", stall_at=6)
        it = TypedCSVParser(stream, SCHEMA, chunk_size=6).begin()
        with pytest.raises(FormatError):
            it.advance()

    def test_closed_stream_is_format_error(self):
        stream = io.BytesIO(b"1,2,a\n")
        parser = TypedCSVParser(stream, SCHEMA)
        stream.close()
        with pytest.raises(FormatError):
            list(parser)

    def test_undecodable_bytes_is_format_error(self):
        with pytest.raises(FormatError) as exc_info:
            list(make_parser(b"1,2,ok\n3,4,\xff\xfe\n"))
        e = exc_info.value
        assert e.row == 2
        assert e.column == 5
        assert e.offset == 11

    def test_undecodable_bytes_after_bom_counts_bom_bytes(self):
        with pytest.raises(FormatError) as exc_info:
            list(TypedCSVParser(io.BytesIO(b"\xef\xbb\xbfab\xff\n"), (str,)))
        e = exc_info.value
        assert e.offset == 5
        assert e.row == 1
        assert e.column == 6

    def test_fault_while_skipping_is_silent(self):
        # The skip ends quietly; the failure surfaces on the first-row read.
        stream = FaultyStream(b"h,h,h\n1,2,a\n", fail_at=3)
        parser = TypedCSVParser(stream, SCHEMA, skip_count=1, chunk_size=3)
        with pytest.raises(StreamIOError):
            parser.begin()

    def test_error_str_has_position(self):
        with pytest.raises(EmptySourceError) as exc_info:
            make_parser(b"").begin()
        assert "offset=0" in str(exc_info.value)
        assert "row=1" in str(exc_info.value)
