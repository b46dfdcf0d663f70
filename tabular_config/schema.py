"""
DecodeProfile schema.

A decode profile is the human-authored, reviewable description of how one
CSV layout maps onto a target dataclass: whether the file carries a header,
how records are framed, and per-field header/layout overrides. YAML
fragments are parsed into these types by the loader.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from tabular_ingestion.adapters.base import ReaderOptions
from tabular_ingestion.domain.types import ColumnOverride


@dataclass(frozen=True)
class DecodeProfile:
    """Parsed decode profile."""

    name: str
    has_header: bool = True
    reader: ReaderOptions = field(default_factory=ReaderOptions)
    columns: Mapping[str, ColumnOverride] = field(default_factory=dict)
