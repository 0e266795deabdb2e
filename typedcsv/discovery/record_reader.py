"""
Chunked record reader implementing ``AbstractRecordSource``.

Handles:
- Any single-byte record separator, not just ``\\n``.
- Fixed-size chunked reads, so only one chunk plus the current record is in
  memory regardless of file size.
- Logical offsets: ``tell()`` reports where the next record starts, hiding the
  read-ahead buffer.
- Distinguishable failures: I/O faults propagate as ``OSError``; a stream that
  returns no data without reaching EOF raises ``ValueError``.
"""

from __future__ import annotations

import io
from typing import BinaryIO

from typedcsv.configs.config import DEFAULT_CHUNK_SIZE
from typedcsv.discovery.base import AbstractRecordSource
from typedcsv.utils.validation import validate_stream


class RecordReader(AbstractRecordSource):
    """
    Record reader over a seekable binary stream.

    Args:
        stream:     Open binary stream, owned by the caller.
        separator:  Single-byte record separator.
        chunk_size: Bytes requested per ``stream.read`` call.

    Raises:
        TypeError:  If ``stream`` is a text stream.
        ValueError: If ``stream`` is not seekable or ``separator`` is not one byte.
    """

    def __init__(
        self,
        stream: BinaryIO,
        separator: bytes,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        validate_stream(stream)
        if len(separator) != 1:
            raise ValueError(f"separator must be a single byte, got {separator!r}.")
        self._stream = stream
        self._separator = separator
        self._chunk_size = chunk_size
        self._buffer = bytearray()
        self._start = 0    # buffer index where the current record begins
        self._scan = 0     # buffer index where the separator search resumes
        self._offset = 0
        self._records_read = 0
        self._eof = False

    # ── AbstractRecordSource interface ───────────────────────────────────

    def measure(self) -> int:
        self._stream.seek(0, io.SEEK_END)
        length = self._stream.tell()
        self.rewind()
        return length

    def rewind(self) -> None:
        self._stream.seek(0)
        self._buffer.clear()
        self._start = 0
        self._scan = 0
        self._offset = 0
        self._records_read = 0
        self._eof = False

    def read_record(self) -> bytes | None:
        """
        Raises:
            OSError:    If the stream reports an I/O fault.
            ValueError: If the stream is closed or returns no data without EOF.
        """
        while True:
            index = self._buffer.find(self._separator, self._scan)
            if index >= 0:
                return self._take(index, index + 1)
            self._scan = len(self._buffer)

            if self._eof:
                if self._start == len(self._buffer):
                    return None
                return self._take(len(self._buffer), len(self._buffer))

            self._fill()

    def tell(self) -> int:
        return self._offset

    @property
    def records_read(self) -> int:
        return self._records_read

    @property
    def partial_length(self) -> int:
        return len(self._buffer) - self._start

    # ── internals ────────────────────────────────────────────────────────

    def _take(self, end: int, next_start: int) -> bytes:
        record = bytes(self._buffer[self._start:end])
        self._offset += next_start - self._start
        self._start = next_start
        self._scan = next_start
        self._records_read += 1
        return record

    def _fill(self) -> None:
        # Drop consumed bytes before growing the buffer.
        if self._start:
            del self._buffer[:self._start]
            self._scan -= self._start
            self._start = 0

        chunk = self._stream.read(self._chunk_size)
        if chunk is None:
            raise ValueError("stream returned no data without reaching end of file")
        if not chunk:
            self._eof = True
            return
        self._buffer += chunk
