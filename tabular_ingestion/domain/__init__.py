"""Pure domain types for column resolution (ZERO I/O)."""

from tabular_ingestion.domain.types import (
    DEFAULT_LAYOUT,
    TAG_FORMAT,
    TAG_HEADER,
    TAG_KIND,
    ColumnDescriptor,
    ColumnKind,
    ColumnOverride,
    Schema,
    column,
)

__all__ = [
    "DEFAULT_LAYOUT",
    "TAG_FORMAT",
    "TAG_HEADER",
    "TAG_KIND",
    "ColumnDescriptor",
    "ColumnKind",
    "ColumnOverride",
    "Schema",
    "column",
]
