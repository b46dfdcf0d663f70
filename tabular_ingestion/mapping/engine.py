"""
Coercion engine: pure conversion from one CSV cell to a typed value.

One coercer per ColumnKind family; ``coerce`` dispatches on the kind. Cell
text is taken as-is: no trimming, no locale, no digit grouping. ZERO I/O.
"""

from __future__ import annotations

import math
import re
import struct
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from tabular_kernel.exceptions import CoercionError, UnsupportedTypeError

from tabular_ingestion.domain.types import DEFAULT_LAYOUT, ColumnKind
from tabular_ingestion.mapping.layout import parse_timestamp

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_SIGNED_RE = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_RE = re.compile(r"[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_SPECIAL_FLOAT_RE = re.compile(r"[+-]?(?:inf|infinity|nan)", re.IGNORECASE)


# -----------------------------------------------------------------------------
# Coercers (one per kind family)
# -----------------------------------------------------------------------------


def coerce_string(text: str, kind: ColumnKind, layout: str) -> str:
    return text


def coerce_bool(text: str, kind: ColumnKind, layout: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise CoercionError(kind.value, text)


def coerce_int(text: str, kind: ColumnKind, layout: str) -> int:
    """Base-10 integer, range-checked against the kind's bit width."""
    width = kind.width
    pattern = _SIGNED_RE if kind.signed else _UNSIGNED_RE
    if not pattern.fullmatch(text):
        raise CoercionError(kind.value, text, width=width)
    try:
        value = int(text)
    except ValueError:
        # Beyond the interpreter's int-string digit limit
        raise CoercionError(kind.value, text, width=width) from None
    if kind.signed:
        lo, hi = -(1 << (width - 1)), (1 << (width - 1)) - 1
    else:
        lo, hi = 0, (1 << width) - 1
    if not lo <= value <= hi:
        raise CoercionError(kind.value, text, width=width)
    return value


def coerce_float(text: str, kind: ColumnKind, layout: str) -> float:
    """
    Base-10 float honoring the kind's precision.

    ``inf``/``infinity``/``nan`` (any case, optional sign) are accepted. A
    finite literal whose magnitude overflows the width is rejected.
    """
    width = kind.width
    if _SPECIAL_FLOAT_RE.fullmatch(text):
        return float(text)
    if not _FLOAT_RE.fullmatch(text):
        raise CoercionError(kind.value, text, width=width)
    value = float(text)
    if math.isinf(value):
        raise CoercionError(kind.value, text, width=width)
    if width == 32:
        try:
            value = struct.unpack("f", struct.pack("f", value))[0]
        except OverflowError:
            raise CoercionError(kind.value, text, width=width) from None
        if math.isinf(value):
            raise CoercionError(kind.value, text, width=width)
    return value


def coerce_decimal(text: str, kind: ColumnKind, layout: str) -> Decimal:
    if not _FLOAT_RE.fullmatch(text):
        raise CoercionError(kind.value, text)
    try:
        return Decimal(text)
    except InvalidOperation:
        raise CoercionError(kind.value, text) from None


def coerce_timestamp(text: str, kind: ColumnKind, layout: str) -> datetime:
    try:
        return parse_timestamp(text, layout)
    except ValueError:
        raise CoercionError(kind.value, text, format=layout) from None


_COERCERS: dict[ColumnKind, Callable[[str, ColumnKind, str], Any]] = {
    ColumnKind.STRING: coerce_string,
    ColumnKind.BOOL: coerce_bool,
    ColumnKind.INT: coerce_int,
    ColumnKind.INT8: coerce_int,
    ColumnKind.INT16: coerce_int,
    ColumnKind.INT32: coerce_int,
    ColumnKind.INT64: coerce_int,
    ColumnKind.UINT: coerce_int,
    ColumnKind.UINT8: coerce_int,
    ColumnKind.UINT16: coerce_int,
    ColumnKind.UINT32: coerce_int,
    ColumnKind.UINT64: coerce_int,
    ColumnKind.FLOAT32: coerce_float,
    ColumnKind.FLOAT64: coerce_float,
    ColumnKind.DECIMAL: coerce_decimal,
    ColumnKind.TIMESTAMP: coerce_timestamp,
}


# -----------------------------------------------------------------------------
# Dispatch
# -----------------------------------------------------------------------------


def coercer_for(kind: Any) -> Callable[[str, ColumnKind, str], Any]:
    """Return the coercer for ``kind``; UnsupportedTypeError if there is none."""
    try:
        return _COERCERS[ColumnKind(kind)]
    except (ValueError, KeyError, TypeError):
        raise UnsupportedTypeError(kind) from None


def coerce(text: str, kind: ColumnKind, layout: str = DEFAULT_LAYOUT) -> Any:
    """
    Convert one cell to ``kind``. Pure function.

    Raises CoercionError when the text does not parse, UnsupportedTypeError
    when ``kind`` has no coercion rule.
    """
    coercer = coercer_for(kind)
    return coercer(text, ColumnKind(kind), layout)
