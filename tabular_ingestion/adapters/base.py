"""
Record reader protocol and reader options.

Contract:
    RecordReader.records() yields one list of string cells per CSV record,
    stops at end of stream, and raises FramingError on malformed framing.
    The reader never closes the stream it is given.

Architecture: tabular_ingestion/adapters. Stream I/O only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import IO, Any, Iterator, Protocol, runtime_checkable

QUOTING_MODES = ("minimal", "all", "none")


@dataclass(frozen=True)
class ReaderOptions:
    """CSV framing options."""

    delimiter: str = ","
    quoting: str = "minimal"  # One of QUOTING_MODES
    encoding: str = "utf-8"  # Used only for byte streams
    skip_rows: int = 0  # Physical lines dropped before the first record
    comment: str | None = None  # Lines starting with this are ignored
    trim_leading_space: bool = False
    fields_per_record: int = 0  # 0: set by first record; >0: fixed; <0: any


@runtime_checkable
class RecordReader(Protocol):
    """Protocol for reading delimited records from an open stream."""

    def records(self, source: IO[Any]) -> Iterator[list[str]]:
        """Yield one list of cells per record. Streams; does not load the whole source."""
        ...
