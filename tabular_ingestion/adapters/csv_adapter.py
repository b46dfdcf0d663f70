"""
CSV record reader.

Uses csv.reader over a text view of the source. Byte streams are decoded
with the configured encoding (utf-8 strips a BOM); text streams are read
as-is. Blank lines are skipped. Streams records.
"""

from __future__ import annotations

import csv
import io
from typing import IO, Any, Iterator

from tabular_kernel.exceptions import FramingError

from tabular_ingestion.adapters.base import ReaderOptions


_QUOTING = {
    "minimal": csv.QUOTE_MINIMAL,
    "all": csv.QUOTE_ALL,
    "none": csv.QUOTE_NONE,
}


def _get_encoding(options: ReaderOptions) -> str:
    enc = options.encoding
    if enc.lower().replace("_", "-") in ("utf-8", "utf8"):
        return "utf-8-sig"  # Strip BOM if present
    return enc


class _Lines:
    """
    Physical lines after skip_rows, with comment lines dropped.

    A comment prefix only counts at the start of a record, never on the
    continuation line of a quoted field. ``dropped`` counts every line not
    handed to csv.reader so far.
    """

    def __init__(self, text: IO[str], options: ReaderOptions):
        self._text = text
        self._options = options
        self.dropped = 0

    def __iter__(self) -> Iterator[str]:
        options = self._options
        for _ in range(options.skip_rows):
            if next(self._text, None) is None:
                return
            self.dropped += 1
        in_quotes = False
        for line in self._text:
            if not in_quotes and options.comment and line.startswith(options.comment):
                self.dropped += 1
                continue
            if options.quoting != "none" and line.count('"') % 2:
                in_quotes = not in_quotes
            yield line


class CsvRecordReader:
    """Read CSV records as lists of strings from an open stream."""

    def __init__(self, options: ReaderOptions | None = None):
        self._options = options or ReaderOptions()

    @property
    def options(self) -> ReaderOptions:
        return self._options

    def records(self, source: IO[Any]) -> Iterator[list[str]]:
        options = self._options
        if isinstance(source, io.TextIOBase):
            text, wrapper = source, None
        else:
            wrapper = io.TextIOWrapper(source, encoding=_get_encoding(options), newline="")
            text = wrapper
        try:
            lines = _Lines(text, options)
            reader = csv.reader(
                iter(lines),
                delimiter=options.delimiter,
                quoting=_QUOTING[options.quoting],
                skipinitialspace=options.trim_leading_space,
                strict=options.quoting != "none",
            )
            expected = options.fields_per_record or None
            while True:
                try:
                    record = next(reader)
                except StopIteration:
                    return
                except csv.Error as exc:
                    raise FramingError(str(exc), reader.line_num + lines.dropped) from exc
                except UnicodeDecodeError as exc:
                    raise FramingError(f"cannot decode source as {options.encoding}: {exc.reason}") from exc
                if not record:
                    continue
                if expected is None and options.fields_per_record == 0:
                    expected = len(record)
                if expected is not None and expected > 0 and len(record) != expected:
                    raise FramingError(
                        f"wrong number of fields: expected {expected}, got {len(record)}",
                        reader.line_num + lines.dropped,
                    )
                yield record
        finally:
            if wrapper is not None:
                wrapper.detach()
