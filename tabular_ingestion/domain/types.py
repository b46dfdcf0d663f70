"""
tabular_ingestion.domain.types -- Pure frozen dataclasses for column resolution.

ZERO I/O. Describes how a target dataclass maps onto CSV columns:

    ColumnKind        closed set of coercion kinds
    ColumnDescriptor  one field -> one source column
    Schema            ordered descriptors for a target type
    ColumnOverride    header/format override loaded from configuration

Width-specific numeric fields are declared with the NewType markers below,
e.g. ``volume: Int64`` or ``ratio: Float32``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, NewType

# Field metadata keys
TAG_HEADER = "header"
TAG_FORMAT = "format"
TAG_KIND = "kind"

# Reference layout "YYYY-MM-DD hh:mm:ss"
DEFAULT_LAYOUT = "2006-01-02 15:04:05"

# Platform-width int/uint
PLATFORM_INT_BITS = 64


# =============================================================================
# Width markers
# =============================================================================

Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
UInt = NewType("UInt", int)
UInt8 = NewType("UInt8", int)
UInt16 = NewType("UInt16", int)
UInt32 = NewType("UInt32", int)
UInt64 = NewType("UInt64", int)
Float32 = NewType("Float32", float)
Float64 = NewType("Float64", float)


# =============================================================================
# Kinds
# =============================================================================


class ColumnKind(str, Enum):
    """Supported coercion kinds."""

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    TIMESTAMP = "timestamp"

    @property
    def width(self) -> int | None:
        """Bit width for numeric kinds, None otherwise."""
        return _WIDTHS.get(self)

    @property
    def signed(self) -> bool:
        return self in _SIGNED_INTS

    @property
    def is_integer(self) -> bool:
        return self in _SIGNED_INTS or self in _UNSIGNED_INTS

    @property
    def is_float(self) -> bool:
        return self in (ColumnKind.FLOAT32, ColumnKind.FLOAT64)


_SIGNED_INTS = frozenset({
    ColumnKind.INT, ColumnKind.INT8, ColumnKind.INT16, ColumnKind.INT32, ColumnKind.INT64,
})
_UNSIGNED_INTS = frozenset({
    ColumnKind.UINT, ColumnKind.UINT8, ColumnKind.UINT16, ColumnKind.UINT32, ColumnKind.UINT64,
})

_WIDTHS: dict[ColumnKind, int] = {
    ColumnKind.INT: PLATFORM_INT_BITS,
    ColumnKind.INT8: 8,
    ColumnKind.INT16: 16,
    ColumnKind.INT32: 32,
    ColumnKind.INT64: 64,
    ColumnKind.UINT: PLATFORM_INT_BITS,
    ColumnKind.UINT8: 8,
    ColumnKind.UINT16: 16,
    ColumnKind.UINT32: 32,
    ColumnKind.UINT64: 64,
    ColumnKind.FLOAT32: 32,
    ColumnKind.FLOAT64: 64,
}


# =============================================================================
# Descriptors
# =============================================================================


@dataclass(frozen=True)
class ColumnDescriptor:
    """Maps one target field onto one source column."""

    header: str  # Alias matched against the file header
    source_column: int  # Position in the record; positional by default
    field_index: int  # Declaration index in the target type
    field_name: str
    kind: ColumnKind
    format: str = DEFAULT_LAYOUT  # Timestamp layout; ignored by other kinds
    matched: bool = False  # True once resolved by header name


@dataclass(frozen=True)
class Schema:
    """Ordered column descriptors for one target type."""

    target: type
    columns: tuple[ColumnDescriptor, ...]

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self):
        return iter(self.columns)

    def column(self, field_name: str) -> ColumnDescriptor:
        """Return the descriptor feeding ``field_name``."""
        for col in self.columns:
            if col.field_name == field_name:
                return col
        raise KeyError(field_name)

    @property
    def max_source_column(self) -> int:
        return max((c.source_column for c in self.columns), default=-1)


@dataclass(frozen=True)
class ColumnOverride:
    """Header alias / layout override for a single field (from configuration)."""

    header: str | None = None
    format: str | None = None


# =============================================================================
# Declaration helper
# =============================================================================


def column(
    *,
    header: str | None = None,
    format: str | None = None,
    kind: ColumnKind | None = None,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
) -> Any:
    """Declare a dataclass field with decoder metadata.

    Example::

        @dataclass
        class Price:
            date: datetime = column(header="Date", format="2006-01-02")
            close: float = column(header="Close")
    """
    metadata: dict[str, Any] = {}
    if header is not None:
        metadata[TAG_HEADER] = header
    if format is not None:
        metadata[TAG_FORMAT] = format
    if kind is not None:
        metadata[TAG_KIND] = ColumnKind(kind)
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
    )
