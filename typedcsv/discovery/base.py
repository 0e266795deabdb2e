"""
Abstract base class for record sources.

A record source turns a caller-owned stream into records.  The row iterator
works exclusively against ``AbstractRecordSource`` so the cursor logic does not
depend on how records are found in the stream.

The source never opens or closes the stream; the caller does, and must not
read from or reposition it while a parser is using it:

    with open(path, "rb") as stream:
        source = RecordReader(stream, b"\\n")
        length = source.measure()
        while (record := source.read_record()) is not None:
            process(record)
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractRecordSource(ABC):
    """
    Interface for all record sources.

    Failure states must stay distinguishable:

    - ``read_record`` returning ``None`` — clean end of stream;
    - ``OSError`` — hard I/O fault;
    - ``ValueError`` — the stream is neither at a clean end nor failing with an
      I/O fault (closed, non-blocking with no data, undecodable bytes).
    """

    @abstractmethod
    def measure(self) -> int:
        """Return the total stream length in bytes and rewind to the start."""

    @abstractmethod
    def rewind(self) -> None:
        """Reposition at byte offset 0 and forget any buffered data."""

    @abstractmethod
    def read_record(self) -> bytes | None:
        """
        Return the next record without its separator, or ``None`` at clean EOF.

        A final record with no trailing separator is still a record; a
        separator at the very end of the stream does not start an empty one.
        """

    @abstractmethod
    def tell(self) -> int:
        """Byte offset of the first byte not yet returned in a record."""

    @property
    @abstractmethod
    def records_read(self) -> int:
        """Number of records returned since the last rewind."""

    @property
    @abstractmethod
    def partial_length(self) -> int:
        """Bytes of the record currently being assembled (non-zero only mid-failure)."""
