"""
Decode services.

Exports:
    decode_rows / decode_rows_from_path: records -> list of dataclass rows.
    decode_table / decode_table_from_path: records -> dataclass of column lists.
"""

from tabular_ingestion.services.decode_service import (
    decode_rows,
    decode_rows_from_path,
    decode_table,
    decode_table_from_path,
)

__all__ = [
    "decode_rows",
    "decode_rows_from_path",
    "decode_table",
    "decode_table_from_path",
]
