"""Record readers for the tabular decoder (stream I/O only)."""

from tabular_ingestion.adapters.base import QUOTING_MODES, ReaderOptions, RecordReader
from tabular_ingestion.adapters.csv_adapter import CsvRecordReader

__all__ = [
    "QUOTING_MODES",
    "ReaderOptions",
    "RecordReader",
    "CsvRecordReader",
]
