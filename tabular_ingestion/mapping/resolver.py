"""
Column resolver: target dataclass -> Schema, and Schema x header row -> Schema.

Field declaration order is the positional column order. A field's header
alias comes from its ``header`` metadata (else the field name) and its
timestamp layout from ``format`` (else DEFAULT_LAYOUT). Configuration
overrides win over both.

Header reconciliation is case-insensitive and first-match-wins. A field whose
alias is absent from the header keeps its positional column. Duplicate header
cells and descriptors sharing a column are logged, not rejected.

ZERO I/O.
"""

from __future__ import annotations

import dataclasses
import typing
from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Sequence

from tabular_kernel.exceptions import ConfigError, SchemaError, UnsupportedTypeError
from tabular_kernel.logging_config import get_logger

from tabular_ingestion.domain.types import (
    DEFAULT_LAYOUT,
    TAG_FORMAT,
    TAG_HEADER,
    TAG_KIND,
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
)
from tabular_ingestion.mapping.layout import validate_layout

logger = get_logger("ingestion.resolver")

_KIND_BY_TYPE: dict[Any, ColumnKind] = {
    str: ColumnKind.STRING,
    bool: ColumnKind.BOOL,
    int: ColumnKind.INT,
    float: ColumnKind.FLOAT64,
    Decimal: ColumnKind.DECIMAL,
    datetime: ColumnKind.TIMESTAMP,
    Int8: ColumnKind.INT8,
    Int16: ColumnKind.INT16,
    Int32: ColumnKind.INT32,
    Int64: ColumnKind.INT64,
    UInt: ColumnKind.UINT,
    UInt8: ColumnKind.UINT8,
    UInt16: ColumnKind.UINT16,
    UInt32: ColumnKind.UINT32,
    UInt64: ColumnKind.UINT64,
    Float32: ColumnKind.FLOAT32,
    Float64: ColumnKind.FLOAT64,
}


def kind_for_annotation(annotation: Any, field_name: str | None = None) -> ColumnKind:
    """Map a resolved type annotation to its ColumnKind."""
    try:
        return _KIND_BY_TYPE[annotation]
    except (KeyError, TypeError):
        raise UnsupportedTypeError(annotation, field_name) from None


def list_element_type(annotation: Any) -> Any | None:
    """Return X for ``list[X]``, None for anything else."""
    if typing.get_origin(annotation) is not list:
        return None
    args = typing.get_args(annotation)
    return args[0] if len(args) == 1 else None


def _build_schema(
    target: type,
    annotations: Sequence[tuple[dataclasses.Field, Any]],
    overrides: Mapping[str, ColumnOverride] | None,
) -> Schema:
    overrides = overrides or {}
    unknown = sorted(set(overrides) - {f.name for f, _ in annotations})
    if unknown:
        raise ConfigError(f"columns.{unknown[0]}", f"{target.__name__} has no such field")

    columns: list[ColumnDescriptor] = []
    for index, (fld, annotation) in enumerate(annotations):
        meta = fld.metadata
        declared_kind = meta.get(TAG_KIND)
        if declared_kind is not None:
            try:
                kind = ColumnKind(declared_kind)
            except ValueError:
                raise UnsupportedTypeError(declared_kind, fld.name) from None
        else:
            kind = kind_for_annotation(annotation, fld.name)

        override = overrides.get(fld.name) or ColumnOverride()
        header = override.header or meta.get(TAG_HEADER, fld.name)
        layout = override.format or meta.get(TAG_FORMAT, DEFAULT_LAYOUT)
        if kind is ColumnKind.TIMESTAMP:
            validate_layout(layout)

        columns.append(ColumnDescriptor(
            header=header,
            source_column=index,
            field_index=index,
            field_name=fld.name,
            kind=kind,
            format=layout,
        ))
    return Schema(target=target, columns=tuple(columns))


def derive_schema(
    target: Any,
    overrides: Mapping[str, ColumnOverride] | None = None,
) -> Schema:
    """
    Build the Schema for a row dataclass.

    Raises:
        SchemaError: ``target`` is not a dataclass type.
        UnsupportedTypeError: a field's type has no coercion kind.
        ConfigError: an override names a field that does not exist.
        LayoutError: a timestamp field's layout is unusable.
    """
    if not (isinstance(target, type) and dataclasses.is_dataclass(target)):
        raise SchemaError(target)
    hints = typing.get_type_hints(target)
    fields = dataclasses.fields(target)
    return _build_schema(target, [(f, hints[f.name]) for f in fields], overrides)


def derive_table_schema(
    target: Any,
    overrides: Mapping[str, ColumnOverride] | None = None,
) -> Schema:
    """Build the Schema for a table dataclass whose fields are all ``list[X]``.

    Each descriptor's kind is that of the list's element type. Fields that
    are not lists raise UnsupportedTypeError.
    """
    if not (isinstance(target, type) and dataclasses.is_dataclass(target)):
        raise SchemaError(target)
    hints = typing.get_type_hints(target)
    pairs: list[tuple[dataclasses.Field, Any]] = []
    for f in dataclasses.fields(target):
        element = list_element_type(hints[f.name])
        if element is None:
            raise UnsupportedTypeError(hints[f.name], f.name)
        pairs.append((f, element))
    return _build_schema(target, pairs, overrides)


def reconcile_header(schema: Schema, header_row: Sequence[str]) -> Schema:
    """
    Re-point descriptors at the header columns that carry their alias.

    Matching is case-insensitive and exact; the first matching cell wins.
    Unmatched descriptors keep their positional column and ``matched=False``.
    """
    folded = [cell.casefold() for cell in header_row]

    duplicates = {h for h, n in Counter(folded).items() if n > 1}
    columns: list[ColumnDescriptor] = []
    for col in schema.columns:
        alias = col.header.casefold()
        try:
            index = folded.index(alias)
        except ValueError:
            columns.append(col)
            continue
        if alias in duplicates:
            logger.warning(
                "duplicate_header_cell",
                extra={"header": col.header, "field_name": col.field_name, "source_column": index},
            )
        columns.append(dataclasses.replace(col, source_column=index, matched=True))

    shared = [pos for pos, n in Counter(c.source_column for c in columns).items() if n > 1]
    if shared:
        logger.warning("shared_source_column", extra={"source_columns": sorted(shared)})

    logger.debug(
        "header_reconciled",
        extra={
            "matched": [c.field_name for c in columns if c.matched],
            "positional": [c.field_name for c in columns if not c.matched],
        },
    )
    return dataclasses.replace(schema, columns=tuple(columns))
