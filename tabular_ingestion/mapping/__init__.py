"""Column resolution, cell coercion and timestamp layouts (pure)."""

from tabular_ingestion.mapping.engine import coerce, coercer_for
from tabular_ingestion.mapping.layout import format_timestamp, parse_timestamp, validate_layout
from tabular_ingestion.mapping.resolver import (
    derive_schema,
    derive_table_schema,
    kind_for_annotation,
    reconcile_header,
)

__all__ = [
    "coerce",
    "coercer_for",
    "derive_schema",
    "derive_table_schema",
    "format_timestamp",
    "kind_for_annotation",
    "parse_timestamp",
    "reconcile_header",
    "validate_layout",
]
