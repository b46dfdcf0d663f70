"""
Timestamp layouts written against the reference date.

A layout is an example rendering of the reference moment
``Mon Jan 2 15:04:05 MST 2006`` (UTC offset ``-07:00``). Each recognizable
piece of that moment is a token:

    year      2006  06
    month     01  1  Jan  January
    day       02  _2  2
    weekday   Mon  Monday            (parsed, not checked)
    hour      15  03  3
    minute    04  4
    second    05  5
    fraction  .000 (fixed width)  .999 (trailing zeros dropped)
    meridiem  PM  pm
    zone      MST  -07:00  -0700  -07  Z07:00  Z0700  Z07
              (plus the seconds forms -07:00:00, -070000 and Z variants)

Everything else is matched literally. A layout containing ``%`` is taken as
a ``strptime``/``strftime`` pattern instead.

Parsing fills missing parts with year 1, January, day 1, midnight. A parsed
zone offset gives an aware datetime; otherwise the result is naive.
Fractions beyond microseconds are truncated.

ZERO I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable

from tabular_kernel.exceptions import LayoutError

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_STRFTIME_DIRECTIVES = frozenset("aAwdbBmyYHIpMSfzZjUWcxXGuV%")


@dataclass(frozen=True)
class _Token:
    """One layout token: a regex fragment and a renderer."""

    name: str
    pattern: str
    render: Callable[[datetime], str]


@dataclass(frozen=True)
class CompiledLayout:
    """A layout split into tokens, ready to parse and format."""

    layout: str
    tokens: tuple[_Token | str, ...]
    regex: re.Pattern[str]


# -----------------------------------------------------------------------------
# Renderers
# -----------------------------------------------------------------------------


def _hour12(value: datetime) -> int:
    h = value.hour % 12
    return 12 if h == 0 else h


def _offset_seconds(value: datetime) -> int:
    off = value.utcoffset()
    return int(off.total_seconds()) if off is not None else 0


def _render_offset(value: datetime, *, colon: bool, seconds: bool, short: bool, zulu: bool) -> str:
    total = _offset_seconds(value)
    if zulu and total == 0:
        return "Z"
    sign = "-" if total < 0 else "+"
    total = abs(total)
    hh, rem = divmod(total, 3600)
    mm, ss = divmod(rem, 60)
    sep = ":" if colon else ""
    out = f"{sign}{hh:02d}"
    if short:
        return out
    out += f"{sep}{mm:02d}"
    if seconds:
        out += f"{sep}{ss:02d}"
    return out


def _render_zone_name(value: datetime) -> str:
    name = value.tzname()
    if name is None:
        return "UTC"
    if name.startswith("UTC") and len(name) > 3:
        # Unnamed fixed offset: render the offset itself
        return _render_offset(value, colon=False, seconds=False, short=False, zulu=False)
    return name


def _render_fraction(digits: int, trim: bool) -> Callable[[datetime], str]:
    def render(value: datetime) -> str:
        nanos = f"{value.microsecond * 1000:09d}"[:digits]
        if trim:
            nanos = nanos.rstrip("0")
            return f".{nanos}" if nanos else ""
        return f".{nanos}"
    return render


def _offset_token(name: str, zulu: bool) -> _Token:
    body = name[1:]  # strip the leading "-" or "Z"
    colon = ":" in body
    seconds = body.count(":") == 2 or len(body) == 6
    short = body == "07"
    if short:
        num = r"[+-]\d{2}"
    elif colon:
        num = r"[+-]\d{2}:\d{2}" + (r":\d{2}" if seconds else "")
    else:
        num = r"[+-]\d{4}" + (r"\d{2}" if seconds else "")
    pattern = f"(Z|{num})" if zulu else f"({num})"
    return _Token(
        name,
        pattern,
        lambda v: _render_offset(v, colon=colon, seconds=seconds, short=short, zulu=zulu),
    )


_MONTH_ABBR = "|".join(m[:3] for m in _MONTHS)
_MONTH_FULL = "|".join(_MONTHS)
_DAY_ABBR = "|".join(d[:3] for d in _DAYS)
_DAY_FULL = "|".join(_DAYS)

_FIXED_TOKENS: dict[str, _Token] = {
    "2006": _Token("2006", r"(\d{4})", lambda v: f"{v.year:04d}"),
    "06": _Token("06", r"(\d{2})", lambda v: f"{v.year % 100:02d}"),
    "01": _Token("01", r"(\d{2})", lambda v: f"{v.month:02d}"),
    "1": _Token("1", r"(\d{1,2})", lambda v: str(v.month)),
    "Jan": _Token("Jan", f"(?i:({_MONTH_ABBR}))", lambda v: _MONTHS[v.month - 1][:3]),
    "January": _Token("January", f"(?i:({_MONTH_FULL}))", lambda v: _MONTHS[v.month - 1]),
    "02": _Token("02", r"(\d{2})", lambda v: f"{v.day:02d}"),
    "_2": _Token("_2", r" ?(\d{1,2})", lambda v: f"{v.day:2d}"),
    "2": _Token("2", r"(\d{1,2})", lambda v: str(v.day)),
    "Mon": _Token("Mon", f"(?i:({_DAY_ABBR}))", lambda v: _DAYS[v.weekday()][:3]),
    "Monday": _Token("Monday", f"(?i:({_DAY_FULL}))", lambda v: _DAYS[v.weekday()]),
    "15": _Token("15", r"(\d{1,2})", lambda v: f"{v.hour:02d}"),
    "03": _Token("03", r"(\d{2})", lambda v: f"{_hour12(v):02d}"),
    "3": _Token("3", r"(\d{1,2})", lambda v: str(_hour12(v))),
    "04": _Token("04", r"(\d{2})", lambda v: f"{v.minute:02d}"),
    "4": _Token("4", r"(\d{1,2})", lambda v: str(v.minute)),
    "05": _Token("05", r"(\d{2})", lambda v: f"{v.second:02d}"),
    "5": _Token("5", r"(\d{1,2})", lambda v: str(v.second)),
    "PM": _Token("PM", r"(AM|PM)", lambda v: "PM" if v.hour >= 12 else "AM"),
    "pm": _Token("pm", r"(am|pm)", lambda v: "pm" if v.hour >= 12 else "am"),
    "MST": _Token("MST", r"([A-Z]{3,5})", _render_zone_name),
}

# Input may carry a fraction after the seconds even when the layout has none
_IMPLICIT_FRACTION = _Token(".", r"(?:[.,](\d+))?", lambda v: "")

# Longest first within each leading character
_OFFSET_NAMES = ("-07:00:00", "-070000", "-07:00", "-0700", "-07")
_ZULU_NAMES = ("Z07:00:00", "Z070000", "Z07:00", "Z0700", "Z07")
_CANDIDATES = (
    "January", "Jan", "Monday", "Mon", "MST",
    "2006", "01", "02", "03", "04", "05", "06",
    "15", "1", "_2", "2", "3", "4", "5", "PM", "pm",
)


# -----------------------------------------------------------------------------
# Compilation
# -----------------------------------------------------------------------------


def _fraction_at(layout: str, i: int) -> tuple[str, int] | None:
    """Return (token, length) for a '.000' / '.999' run starting at i."""
    if layout[i] not in ".," or i + 1 >= len(layout) or layout[i + 1] not in "09":
        return None
    digit = layout[i + 1]
    j = i + 1
    while j < len(layout) and layout[j] == digit:
        j += 1
    if j < len(layout) and layout[j].isdigit():
        return None
    return layout[i:j], j - i


def _tokenize(layout: str) -> tuple[_Token | str, ...]:
    tokens: list[_Token | str] = []
    literal = ""
    i = 0
    while i < len(layout):
        tok: _Token | None = None
        size = 0
        frac = _fraction_at(layout, i)
        if frac is not None:
            text, size = frac
            digits = size - 1
            sep = re.escape(text[0])
            if text[1] == "9":
                tok = _Token(text, rf"(?:{sep}(\d+))?", _render_fraction(digits, trim=True))
            else:
                tok = _Token(text, rf"{sep}(\d{{{digits}}})", _render_fraction(digits, trim=False))
        elif layout.startswith("_2006", i):
            # "_" before a year is a literal underscore
            literal += "_"
            i += 1
            continue
        else:
            for name in _OFFSET_NAMES:
                if layout.startswith(name, i):
                    tok, size = _offset_token(name, zulu=False), len(name)
                    break
            if tok is None:
                for name in _ZULU_NAMES:
                    if layout.startswith(name, i):
                        tok, size = _offset_token(name, zulu=True), len(name)
                        break
            if tok is None:
                for name in _CANDIDATES:
                    if layout.startswith(name, i):
                        tok, size = _FIXED_TOKENS[name], len(name)
                        break
        if tok is None:
            literal += layout[i]
            i += 1
            continue
        if literal:
            tokens.append(literal)
            literal = ""
        tokens.append(tok)
        i += size
        if tok.name in ("05", "5") and (i >= len(layout) or _fraction_at(layout, i) is None):
            tokens.append(_IMPLICIT_FRACTION)
    if literal:
        tokens.append(literal)
    return tuple(tokens)


@lru_cache(maxsize=256)
def compile_layout(layout: str) -> CompiledLayout:
    """Compile a reference-date layout. Raises LayoutError when unusable."""
    if not layout:
        raise LayoutError(layout, "layout is empty")
    tokens = _tokenize(layout)
    parts = [t.pattern if isinstance(t, _Token) else re.escape(t) for t in tokens]
    return CompiledLayout(layout=layout, tokens=tokens, regex=re.compile("".join(parts), re.ASCII))


def is_strftime_layout(layout: str) -> bool:
    return "%" in layout


def validate_layout(layout: str) -> None:
    """Raise LayoutError if ``layout`` cannot be used for parsing."""
    if is_strftime_layout(layout):
        i = 0
        while i < len(layout):
            if layout[i] == "%":
                if i + 1 >= len(layout) or layout[i + 1] not in _STRFTIME_DIRECTIVES:
                    raise LayoutError(layout, f"unknown directive at position {i}")
                i += 2
                continue
            i += 1
        return
    compile_layout(layout)


# -----------------------------------------------------------------------------
# Parse / format
# -----------------------------------------------------------------------------


def _parse_offset(text: str) -> int:
    if text == "Z":
        return 0
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    hh = int(digits[0:2])
    mm = int(digits[2:4]) if len(digits) >= 4 else 0
    ss = int(digits[4:6]) if len(digits) >= 6 else 0
    return sign * (hh * 3600 + mm * 60 + ss)


def parse_timestamp(text: str, layout: str) -> datetime:
    """
    Parse ``text`` against ``layout``.

    Raises ValueError when the text does not match or names an impossible
    date; LayoutError when the layout itself is unusable.
    """
    if is_strftime_layout(layout):
        validate_layout(layout)
        return datetime.strptime(text, layout)

    compiled = compile_layout(layout)
    m = compiled.regex.fullmatch(text)
    if m is None:
        raise ValueError(f"{text!r} does not match layout {layout!r}")

    year, month, day = 1, 1, 1
    hour = minute = second = micro = 0
    pm: bool | None = None
    offset: int | None = None
    zone_name: str | None = None

    groups = iter(m.groups())
    for tok in compiled.tokens:
        if not isinstance(tok, _Token):
            continue
        value = next(groups)
        name = tok.name
        if name == "2006":
            year = int(value)
        elif name == "06":
            yy = int(value)
            year = yy + (1900 if yy >= 69 else 2000)
        elif name in ("01", "1"):
            month = int(value)
        elif name == "Jan":
            month = [mo[:3].lower() for mo in _MONTHS].index(value.lower()) + 1
        elif name == "January":
            month = [mo.lower() for mo in _MONTHS].index(value.lower()) + 1
        elif name in ("02", "_2", "2"):
            day = int(value)
        elif name == "15":
            hour = int(value)
        elif name in ("03", "3"):
            hour = int(value)
            if not 0 <= hour <= 12:
                raise ValueError(f"hour out of range in {text!r}")
        elif name in ("04", "4"):
            minute = int(value)
        elif name in ("05", "5"):
            second = int(value)
        elif name in ("PM", "pm"):
            pm = value.lower() == "pm"
        elif name == "MST":
            zone_name = value
        elif name[0] in "-Z":
            offset = _parse_offset(value)
        elif name[0] in ".,":
            if value:
                micro = int(value[:6].ljust(6, "0"))
        # Weekday names are accepted and ignored

    if pm is not None:
        hour = hour % 12 + (12 if pm else 0)

    tzinfo = None
    if offset is not None or zone_name is not None:
        delta = timedelta(seconds=offset or 0)
        if zone_name in (None, "UTC") and not delta:
            tzinfo = timezone.utc
        elif zone_name is None:
            tzinfo = timezone(delta)
        else:
            # Zone abbreviations carry no offset of their own
            tzinfo = timezone(delta, zone_name)

    return datetime(year, month, day, hour, minute, second, micro, tzinfo=tzinfo)


def format_timestamp(value: datetime, layout: str) -> str:
    """Render ``value`` with ``layout``."""
    if is_strftime_layout(layout):
        validate_layout(layout)
        return value.strftime(layout)
    compiled = compile_layout(layout)
    return "".join(
        tok.render(value) if isinstance(tok, _Token) else tok
        for tok in compiled.tokens
    )
