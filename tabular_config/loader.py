"""
Configuration Loader (``tabular_config.loader``).

Responsibility
--------------
Loads YAML decode profiles and parses them into typed
``tabular_config.schema`` dataclass instances.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or values of the wrong type  -> ``ConfigError``.

Example profile::

    name: daily_prices
    has_header: true
    reader:
      delimiter: ";"
      skip_rows: 1
    columns:
      date: {header: Date, format: "2006-01-02"}
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from tabular_kernel.exceptions import ConfigError

from tabular_config.schema import DecodeProfile
from tabular_ingestion.adapters.base import QUOTING_MODES, ReaderOptions
from tabular_ingestion.domain.types import ColumnOverride
from tabular_ingestion.mapping.layout import validate_layout

_PROFILE_KEYS = frozenset({"name", "has_header", "reader", "columns"})
_COLUMN_KEYS = frozenset({"header", "format"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError("<root>", f"expected a mapping, got {type(data).__name__}")
    return data


def _check_keys(data: dict[str, Any], allowed: frozenset[str], where: str) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigError(f"{where}{unknown[0]}", "unknown key")


def _expect(value: Any, kind: type | tuple[type, ...], key: str) -> Any:
    # bool is an int; never accept it where an int is expected
    if isinstance(value, bool) and kind is int:
        raise ConfigError(key, "expected int, got bool")
    if not isinstance(value, kind):
        expected = kind.__name__ if isinstance(kind, type) else "/".join(k.__name__ for k in kind)
        raise ConfigError(key, f"expected {expected}, got {type(value).__name__}")
    return value


def parse_reader_options(data: dict[str, Any] | None) -> ReaderOptions:
    """Parse a ``reader:`` block. Missing keys keep the ReaderOptions defaults."""
    if not data:
        return ReaderOptions()
    _expect(data, dict, "reader")
    _check_keys(data, frozenset(f.name for f in fields(ReaderOptions)), "reader.")

    kwargs: dict[str, Any] = {}
    if "delimiter" in data:
        delimiter = _expect(data["delimiter"], str, "reader.delimiter")
        if len(delimiter) != 1 or delimiter in "\r\n\"":
            raise ConfigError("reader.delimiter", f"invalid delimiter {delimiter!r}")
        kwargs["delimiter"] = delimiter
    if "quoting" in data:
        quoting = _expect(data["quoting"], str, "reader.quoting").lower()
        if quoting not in QUOTING_MODES:
            raise ConfigError("reader.quoting", f"expected one of {', '.join(QUOTING_MODES)}")
        kwargs["quoting"] = quoting
    if "encoding" in data:
        kwargs["encoding"] = _expect(data["encoding"], str, "reader.encoding")
    if "skip_rows" in data:
        skip_rows = _expect(data["skip_rows"], int, "reader.skip_rows")
        if skip_rows < 0:
            raise ConfigError("reader.skip_rows", "must not be negative")
        kwargs["skip_rows"] = skip_rows
    if "comment" in data and data["comment"] is not None:
        kwargs["comment"] = _expect(data["comment"], str, "reader.comment")
    if "trim_leading_space" in data:
        kwargs["trim_leading_space"] = _expect(data["trim_leading_space"], bool, "reader.trim_leading_space")
    if "fields_per_record" in data:
        kwargs["fields_per_record"] = _expect(data["fields_per_record"], int, "reader.fields_per_record")
    return ReaderOptions(**kwargs)


def parse_column_override(name: str, data: dict[str, Any] | None) -> ColumnOverride:
    """Parse one entry of the ``columns:`` block."""
    if data is None:
        return ColumnOverride()
    _expect(data, dict, f"columns.{name}")
    _check_keys(data, _COLUMN_KEYS, f"columns.{name}.")
    header = data.get("header")
    layout = data.get("format")
    if header is not None:
        _expect(header, str, f"columns.{name}.header")
    if layout is not None:
        _expect(layout, str, f"columns.{name}.format")
        validate_layout(layout)
    return ColumnOverride(header=header, format=layout)


def parse_column_overrides(data: dict[str, Any] | None) -> dict[str, ColumnOverride]:
    """Parse the ``columns:`` block into field name -> ColumnOverride."""
    if not data:
        return {}
    _expect(data, dict, "columns")
    return {str(name): parse_column_override(str(name), entry) for name, entry in data.items()}


def parse_profile(data: dict[str, Any], default_name: str = "default") -> DecodeProfile:
    """Parse a full decode profile dict."""
    _check_keys(data, _PROFILE_KEYS, "")
    return DecodeProfile(
        name=str(data.get("name", default_name)),
        has_header=_expect(data.get("has_header", True), bool, "has_header"),
        reader=parse_reader_options(data.get("reader")),
        columns=parse_column_overrides(data.get("columns")),
    )


def load_profile(path: Path | str) -> DecodeProfile:
    """Load and parse a YAML decode profile; the file stem is the default name."""
    path = Path(path)
    return parse_profile(load_yaml_file(path), default_name=path.stem)
