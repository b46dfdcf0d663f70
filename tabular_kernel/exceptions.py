"""
Typed Exception Hierarchy for the tabular decoder.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from TabularError:

    TabularError (base)
    |
    +-- ShapeError            output argument has the wrong shape
    +-- SchemaError           target is not a dataclass
    +-- UnsupportedTypeError  field annotation has no coercion kind
    +-- LayoutError           timestamp layout cannot be compiled
    +-- FramingError          record reader could not frame a record
    +-- CoercionError         cell text does not parse as the field's kind
    +-- ConfigError           decode profile is malformed

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                   | When Raised
-----------------------|-----------------------------------------------------
INVALID_OUTPUT_SHAPE   | decode target is not list[dataclass] / table instance
INVALID_TARGET_SCHEMA  | schema requested for a non-dataclass type
UNSUPPORTED_TYPE       | field annotation maps to no ColumnKind
INVALID_LAYOUT         | timestamp layout has an unusable token
RECORD_FRAMING         | malformed CSV, wrong field count, short record
COERCION_FAILED        | bad bool/int/float/decimal/timestamp cell
INVALID_CONFIG         | YAML profile has unknown keys or bad values

===============================================================================
HANDLING PATTERNS
===============================================================================

Shape, schema, unsupported-type, layout and config errors are configuration
defects: they are raised before any record is read and retrying cannot help.

Framing and coercion errors are data defects. Both abort the decode call:

    try:
        rows = decode_rows(stream, True, list[Price])
    except CoercionError as e:
        report(e.code, e.field, e.record, e.text)

Every exception stores its context as attributes so it can be logged or
serialized without parsing the message.
"""

from __future__ import annotations

from typing import Any


class TabularError(Exception):
    """
    Base exception for all tabular decoder errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "TABULAR_ERROR"


# Configuration-time errors (raised before any I/O)


class ShapeError(TabularError):
    """The decode output argument does not have the required shape."""

    code: str = "INVALID_OUTPUT_SHAPE"

    def __init__(self, expected: str, actual: Any):
        self.expected = expected
        self.actual = repr(actual)
        super().__init__(f"Output must be {expected}, got {self.actual}")


class SchemaError(TabularError):
    """A schema was requested for a type that is not a dataclass."""

    code: str = "INVALID_TARGET_SCHEMA"

    def __init__(self, target: Any):
        self.target = repr(target)
        super().__init__(f"Target is not a dataclass type: {self.target}")


class UnsupportedTypeError(TabularError):
    """A field's declared type has no coercion rule."""

    code: str = "UNSUPPORTED_TYPE"

    def __init__(self, kind: Any, field: str | None = None):
        self.kind = repr(kind)
        self.field = field
        where = f" for field {field!r}" if field else ""
        super().__init__(f"Unsupported field type {self.kind}{where}")


class LayoutError(TabularError):
    """A timestamp layout could not be compiled."""

    code: str = "INVALID_LAYOUT"

    def __init__(self, layout: str, reason: str):
        self.layout = layout
        self.reason = reason
        super().__init__(f"Invalid timestamp layout {layout!r}: {reason}")


class ConfigError(TabularError):
    """A decode profile is malformed."""

    code: str = "INVALID_CONFIG"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration at {key!r}: {reason}")


# Data errors (raised while reading records)


class FramingError(TabularError):
    """The record reader could not produce a well-formed record."""

    code: str = "RECORD_FRAMING"

    def __init__(self, message: str, line: int | None = None):
        self.line = line
        self.reason = message
        where = f"line {line}: " if line is not None else ""
        super().__init__(f"{where}{message}")


class CoercionError(TabularError):
    """
    A cell could not be converted into its field's kind.

    ``kind`` is the ColumnKind value (e.g. "int8", "bool", "timestamp"),
    ``width`` the declared bit width for numeric kinds and ``format`` the
    layout for timestamps. ``field`` and ``record`` are filled in by the
    decoding engine once the failing cell is known.
    """

    code: str = "COERCION_FAILED"

    def __init__(
        self,
        kind: str,
        text: str,
        *,
        width: int | None = None,
        format: str | None = None,
        field: str | None = None,
        record: int | None = None,
    ):
        self.kind = kind
        self.text = text
        self.width = width
        self.format = format
        self.field = field
        self.record = record
        super().__init__(self._message())

    def _message(self) -> str:
        target = self.kind
        if self.format is not None:
            target = f"{self.kind} with layout {self.format!r}"
        msg = f"Cannot parse {self.text!r} as {target}"
        if self.field is not None:
            msg += f" (field {self.field!r}"
            if self.record is not None:
                msg += f", record {self.record}"
            msg += ")"
        return msg

    def with_location(self, field: str, record: int) -> "CoercionError":
        """Return a copy of this error that names the failing field and record."""
        return CoercionError(
            self.kind,
            self.text,
            width=self.width,
            format=self.format,
            field=field,
            record=record,
        )
