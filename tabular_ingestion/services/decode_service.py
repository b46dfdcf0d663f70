"""
Decode service: CSV records -> dataclass rows, or -> a table of column lists.

Flow for every entry point:
    check the output shape (ShapeError, before any read)
    -> derive the Schema from the target type
    -> read the header record and reconcile it (when has_header)
    -> read, coerce and assemble each record; the first error aborts.

Row mode returns a new list only on full success. Table mode appends to the
caller's table in place, cell by cell; on failure the values already
appended stay where they are (the table is left partially filled and the
caller should discard it).

Uses structured logging (LogContext, get_logger("ingestion.*")).
"""

from __future__ import annotations

import dataclasses
import os
import typing
from pathlib import Path
from typing import IO, Any, Iterator, Mapping, Sequence, TypeVar
from uuid import uuid4

from tabular_kernel.exceptions import CoercionError, FramingError, ShapeError
from tabular_kernel.logging_config import LogContext, get_logger

from tabular_ingestion.adapters.base import ReaderOptions
from tabular_ingestion.adapters.csv_adapter import CsvRecordReader
from tabular_ingestion.domain.types import ColumnDescriptor, ColumnOverride, Schema
from tabular_ingestion.mapping.engine import coerce
from tabular_ingestion.mapping.resolver import (
    derive_schema,
    derive_table_schema,
    list_element_type,
    reconcile_header,
)

logger = get_logger("ingestion.decode_service")

T = TypeVar("T")


# -----------------------------------------------------------------------------
# Shape checks (no I/O)
# -----------------------------------------------------------------------------


def _row_type(into: Any) -> type:
    """Return the element type of ``list[Row]``; ShapeError otherwise."""
    origin = typing.get_origin(into)
    if origin is None and not isinstance(into, type):
        raise ShapeError("a type form such as list[Row]", into)
    if origin is not list:
        raise ShapeError("list[Row]", into)
    element = list_element_type(into)
    if not (isinstance(element, type) and dataclasses.is_dataclass(element)):
        raise ShapeError("list[Row] where Row is a dataclass", into)
    return element


def _table_type(table: Any) -> type:
    """Return the dataclass type of a table instance; ShapeError otherwise."""
    if isinstance(table, type) or not dataclasses.is_dataclass(table):
        raise ShapeError("a dataclass instance", table)
    table_type = type(table)
    hints = typing.get_type_hints(table_type)
    for f in dataclasses.fields(table_type):
        if list_element_type(hints[f.name]) is None:
            raise ShapeError(f"field {f.name!r} annotated as list[X]", hints[f.name])
        if not isinstance(getattr(table, f.name), list):
            raise ShapeError(f"field {f.name!r} holding a list", getattr(table, f.name))
    return table_type


# -----------------------------------------------------------------------------
# Record handling
# -----------------------------------------------------------------------------


def _describe(source: Any) -> str:
    name = getattr(source, "name", None)
    return str(name) if name is not None else type(source).__name__


def _read_header(schema: Schema, records: Iterator[list[str]], has_header: bool) -> Schema:
    if not has_header:
        return schema
    header = next(records, None)
    if header is None:
        return schema
    return reconcile_header(schema, header)


def _cell(record: Sequence[str], col: ColumnDescriptor, number: int) -> str:
    if col.source_column >= len(record):
        raise FramingError(
            f"record {number} has {len(record)} fields; "
            f"field {col.field_name!r} needs column {col.source_column}"
        )
    return record[col.source_column]


def _coerce_cell(record: Sequence[str], col: ColumnDescriptor, number: int) -> Any:
    text = _cell(record, col, number)
    try:
        return coerce(text, col.kind, col.format)
    except CoercionError as exc:
        raise exc.with_location(col.field_name, number) from exc


# -----------------------------------------------------------------------------
# Entry points
# -----------------------------------------------------------------------------


def decode_rows(
    source: IO[Any],
    has_header: bool,
    into: type[list[T]],
    *,
    options: ReaderOptions | None = None,
    overrides: Mapping[str, ColumnOverride] | None = None,
) -> list[T]:
    """
    Decode every record of ``source`` into a new instance of the row dataclass.

    ``into`` is the type form ``list[Row]``. Returns the assembled list; on
    any error nothing is returned.

    Raises:
        ShapeError: ``into`` is not ``list[Row]`` with a dataclass Row.
        UnsupportedTypeError, LayoutError, ConfigError: the target or its
            overrides cannot be mapped (raised before any read).
        FramingError: the source could not be split into records.
        CoercionError: a cell does not parse as its field's kind.
    """
    row_type = _row_type(into)
    schema = derive_schema(row_type, overrides)
    reader = CsvRecordReader(options)

    with LogContext.bind(
        correlation_id=str(uuid4()),
        source=_describe(source),
        target=row_type.__name__,
        mode="rows",
    ):
        logger.info("decode_started", extra={"has_header": has_header, "columns": len(schema)})
        rows: list[T] = []
        records = reader.records(source)
        try:
            schema = _read_header(schema, records, has_header)
            for number, record in enumerate(records, start=1):
                values = {col.field_name: _coerce_cell(record, col, number) for col in schema}
                rows.append(row_type(**values))
        finally:
            records.close()
        logger.info("decode_completed", extra={"records": len(rows)})
    return rows


def decode_rows_from_path(
    path: str | os.PathLike[str],
    has_header: bool,
    into: type[list[T]],
    *,
    options: ReaderOptions | None = None,
    overrides: Mapping[str, ColumnOverride] | None = None,
) -> list[T]:
    """Open ``path`` and decode it with decode_rows. The file is always closed.

    OSError from opening the file propagates. The output shape is checked
    before the file is opened.
    """
    _row_type(into)
    with Path(path).open("rb") as f:
        return decode_rows(f, has_header, into, options=options, overrides=overrides)


def decode_table(
    source: IO[Any],
    has_header: bool,
    table: T,
    *,
    options: ReaderOptions | None = None,
    overrides: Mapping[str, ColumnOverride] | None = None,
) -> T:
    """
    Append each record's cells to the matching ``list`` fields of ``table``.

    ``table`` is a dataclass instance whose fields are all ``list[X]``. It is
    mutated in place and returned. If an error is raised, the values appended
    before the failing cell remain in the table.
    """
    table_type = _table_type(table)
    schema = derive_table_schema(table_type, overrides)
    reader = CsvRecordReader(options)
    targets = {col.field_name: getattr(table, col.field_name) for col in schema}

    with LogContext.bind(
        correlation_id=str(uuid4()),
        source=_describe(source),
        target=table_type.__name__,
        mode="table",
    ):
        logger.info("decode_started", extra={"has_header": has_header, "columns": len(schema)})
        count = 0
        records = reader.records(source)
        try:
            schema = _read_header(schema, records, has_header)
            for number, record in enumerate(records, start=1):
                for col in schema:
                    targets[col.field_name].append(_coerce_cell(record, col, number))
                count = number
        finally:
            records.close()
        logger.info("decode_completed", extra={"records": count})
    return table


def decode_table_from_path(
    path: str | os.PathLike[str],
    has_header: bool,
    table: T,
    *,
    options: ReaderOptions | None = None,
    overrides: Mapping[str, ColumnOverride] | None = None,
) -> T:
    """Open ``path`` and decode it with decode_table. The file is always closed."""
    _table_type(table)
    with Path(path).open("rb") as f:
        return decode_table(f, has_header, table, options=options, overrides=overrides)
