"""
tabular_ingestion -- Declarative CSV decoding into dataclasses.

Resolves dataclass fields to CSV columns (by position or header alias),
coerces each cell to the field's kind, and assembles either one dataclass
instance per record or one list per field.

Architecture:
    adapters/  stream -> records (CSV framing)
    domain/    pure types (ColumnKind, ColumnDescriptor, Schema)
    mapping/   pure column resolution, coercion and timestamp layouts
    services/  decode entry points
"""

from tabular_ingestion.adapters.base import ReaderOptions
from tabular_ingestion.domain.types import (
    ColumnDescriptor,
    ColumnKind,
    ColumnOverride,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Schema,
    UInt,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    column,
)
from tabular_ingestion.services.decode_service import (
    decode_rows,
    decode_rows_from_path,
    decode_table,
    decode_table_from_path,
)

__all__ = [
    "ReaderOptions",
    "ColumnDescriptor",
    "ColumnKind",
    "ColumnOverride",
    "Schema",
    "column",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Float32",
    "Float64",
    "decode_rows",
    "decode_rows_from_path",
    "decode_table",
    "decode_table_from_path",
]
