"""
Tests for the decode service (row mode, table mode and from-path variants).

Covers:
- Positional and header-matched column binding
- Output shape checks performed before any read
- Error propagation with field/record location
- Table-mode partial state on failure
- Structured log events
"""

import io
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from tabular_kernel.exceptions import (
    CoercionError,
    FramingError,
    LayoutError,
    ShapeError,
    UnsupportedTypeError,
)

from tabular_ingestion import (
    ColumnOverride,
    Int8,
    Int64,
    ReaderOptions,
    column,
    decode_rows,
    decode_rows_from_path,
    decode_table,
    decode_table_from_path,
)


# =============================================================================
# Targets
# =============================================================================


@dataclass
class Pair:
    a: int
    b: int


@dataclass
class Swapped:
    b: int = column(header="B")
    a: int = column(header="A")


@dataclass
class Price:
    date: datetime = column(format="2006-01-02 15:04:05-07:00")
    close: float
    volume: Int64
    split_factor: Decimal = column(header="splitFactor")


@dataclass
class Triple:
    x: int
    y: Int8
    z: str


@dataclass
class TripleColumns:
    x: list[int] = field(default_factory=list)
    y: list[Int8] = field(default_factory=list)
    z: list[str] = field(default_factory=list)


@dataclass
class PriceColumns:
    date: list[datetime] = column(format="2006-01-02 15:04:05-07:00", default_factory=list)
    close: list[float] = field(default_factory=list)


class _ExplodingStream(io.RawIOBase):
    """A source that fails the test if anything reads from it."""

    def readable(self):
        return True

    def readinto(self, buffer):
        raise AssertionError("source was read")

    def read(self, size=-1):
        raise AssertionError("source was read")


def _source(text: str) -> io.BytesIO:
    return io.BytesIO(text.encode("utf-8"))


# =============================================================================
# Row mode
# =============================================================================


class TestDecodeRows:
    def test_positional_without_header(self):
        rows = decode_rows(_source("1,2\n3,4\n"), False, list[Pair])
        assert rows == [Pair(1, 2), Pair(3, 4)]

    def test_header_binds_by_alias_not_declaration_order(self):
        rows = decode_rows(_source("a,b\n1,2\n3,4\n"), True, list[Swapped])
        assert rows == [Swapped(b=2, a=1), Swapped(b=4, a=3)]

    def test_header_match_is_case_insensitive(self):
        rows = decode_rows(_source("B,A\n1,2\n"), True, list[Pair])
        assert rows == [Pair(a=2, b=1)]

    def test_unmatched_alias_falls_back_to_position(self):
        rows = decode_rows(_source("first,second\n1,2\n"), True, list[Pair])
        assert rows == [Pair(1, 2)]

    def test_prices(self, prices_stream):
        rows = decode_rows(prices_stream, True, list[Price])
        assert len(rows) == 3
        assert rows[0].date == datetime(2019, 1, 2, tzinfo=timezone.utc)
        assert rows[0].close == 157.92
        assert rows[1].volume == 91312195
        assert rows[2].date == datetime(2019, 1, 4, tzinfo=timezone(timedelta(hours=-5)))
        assert rows[2].split_factor == Decimal("1.0")

    def test_empty_source(self):
        assert decode_rows(_source(""), True, list[Pair]) == []
        assert decode_rows(_source(""), False, list[Pair]) == []

    def test_header_only(self):
        assert decode_rows(_source("a,b\n"), True, list[Pair]) == []

    def test_header_row_decoded_when_header_disabled(self):
        with pytest.raises(CoercionError) as exc:
            decode_rows(_source("a,b\n1,2\n"), False, list[Pair])
        assert exc.value.record == 1
        assert exc.value.field == "a"

    def test_text_stream(self):
        assert decode_rows(io.StringIO("1,2\n"), False, list[Pair]) == [Pair(1, 2)]

    def test_width_overflow_aborts(self):
        source = _source("x,y,z\n1,2,a\n5,300,b\n6,7,c\n")
        with pytest.raises(CoercionError) as exc:
            decode_rows(source, True, list[Triple])
        assert exc.value.kind == "int8"
        assert exc.value.width == 8
        assert exc.value.text == "300"
        assert exc.value.field == "y"
        assert exc.value.record == 2

    def test_timestamp_error_carries_layout(self):
        with pytest.raises(CoercionError) as exc:
            decode_rows(_source("date,close,volume,splitFactor\nsoon,1,1,1\n"), True, list[Price])
        assert exc.value.format == "2006-01-02 15:04:05-07:00"

    def test_inconsistent_field_count(self):
        with pytest.raises(FramingError) as exc:
            decode_rows(_source("a,b\n1,2\n3\n"), True, list[Pair])
        assert exc.value.line == 3

    def test_short_record_with_variable_field_count(self):
        options = ReaderOptions(fields_per_record=-1)
        with pytest.raises(FramingError):
            decode_rows(_source("1,2\n3\n"), False, list[Pair], options=options)

    def test_reader_options(self):
        options = ReaderOptions(delimiter=";", skip_rows=1)
        rows = decode_rows(_source("exported\na;b\n1;2\n"), True, list[Pair], options=options)
        assert rows == [Pair(1, 2)]

    def test_overrides(self):
        overrides = {"a": ColumnOverride(header="left"), "b": ColumnOverride(header="right")}
        rows = decode_rows(_source("right,left\n1,2\n"), True, list[Pair], overrides=overrides)
        assert rows == [Pair(a=2, b=1)]

    def test_source_left_open(self):
        source = _source("1,2\n")
        decode_rows(source, False, list[Pair])
        assert not source.closed

    @pytest.mark.parametrize(
        "into",
        [[], Pair, list[int], list, dict[str, Pair], "list[Pair]", None, Pair(1, 2)],
    )
    def test_shape_error_before_any_read(self, into):
        with pytest.raises(ShapeError) as exc:
            decode_rows(_ExplodingStream(), True, into)
        assert exc.value.code == "INVALID_OUTPUT_SHAPE"

    def test_unsupported_field_before_any_read(self):
        @dataclass
        class Nested:
            pair: Pair

        with pytest.raises(UnsupportedTypeError):
            decode_rows(_ExplodingStream(), True, list[Nested])

    def test_bad_layout_before_any_read(self):
        @dataclass
        class Bad:
            when: datetime = column(format="%Q")

        with pytest.raises(LayoutError):
            decode_rows(_ExplodingStream(), True, list[Bad])

    def test_logs_decode_events(self, captured_logs):
        decode_rows(_source("a,b\n1,2\n3,4\n"), True, list[Pair])
        logs = captured_logs()
        started = next(r for r in logs if r["message"] == "decode_started")
        completed = next(r for r in logs if r["message"] == "decode_completed")
        assert started["mode"] == "rows"
        assert started["target"] == "Pair"
        assert started["columns"] == 2
        assert completed["records"] == 2
        assert started["correlation_id"] == completed["correlation_id"]


# =============================================================================
# Table mode
# =============================================================================


class TestDecodeTable:
    def test_appends_columns(self):
        table = decode_table(_source("x,y,z\n1,2,a\n3,4,b\n"), True, TripleColumns())
        assert table == TripleColumns(x=[1, 3], y=[2, 4], z=["a", "b"])

    def test_mutates_in_place(self):
        table = TripleColumns(x=[0], y=[0], z=["-"])
        result = decode_table(_source("1,2,a\n"), False, table)
        assert result is table
        assert table.x == [0, 1]
        assert table.z == ["-", "a"]

    def test_partial_state_on_failure(self):
        table = TripleColumns()
        with pytest.raises(CoercionError) as exc:
            decode_table(_source("x,y,z\n1,2,a\n5,300,b\n6,7,c\n"), True, table)
        assert exc.value.record == 2
        assert table.x == [1, 5]
        assert table.y == [2]
        assert table.z == ["a"]

    def test_header_reordering(self):
        table = decode_table(_source("z,x,y\na,1,2\n"), True, TripleColumns())
        assert table == TripleColumns(x=[1], y=[2], z=["a"])

    def test_prices(self, prices_stream):
        table = decode_table(prices_stream, True, PriceColumns())
        assert table.close == [157.92, 142.19, 148.26]
        assert table.date[1] == datetime(2019, 1, 3, tzinfo=timezone.utc)

    def test_empty_source_leaves_table_untouched(self):
        table = TripleColumns(x=[9])
        decode_table(_source(""), True, table)
        assert table == TripleColumns(x=[9])

    @pytest.mark.parametrize("table", [TripleColumns, Pair(1, 2), object(), [], None])
    def test_shape_error_before_any_read(self, table):
        with pytest.raises(ShapeError):
            decode_table(_ExplodingStream(), True, table)

    def test_field_holding_non_list(self):
        with pytest.raises(ShapeError):
            decode_table(_ExplodingStream(), True, TripleColumns(x=None))

    def test_logs_table_mode(self, captured_logs):
        decode_table(_source("1,2,a\n"), False, TripleColumns())
        started = next(r for r in captured_logs() if r["message"] == "decode_started")
        assert started["mode"] == "table"
        assert started["target"] == "TripleColumns"


# =============================================================================
# From-path variants
# =============================================================================


class TestFromPath:
    def test_rows_from_path(self, prices_file):
        rows = decode_rows_from_path(prices_file, True, list[Price])
        assert [r.volume for r in rows] == [37039737, 91312195, 58607070]

    def test_rows_from_str_path(self, prices_file):
        rows = decode_rows_from_path(str(prices_file), True, list[Price])
        assert len(rows) == 3

    def test_table_from_path(self, prices_file):
        table = decode_table_from_path(prices_file, True, PriceColumns())
        assert len(table.date) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            decode_rows_from_path(tmp_path / "missing.csv", True, list[Pair])
        with pytest.raises(FileNotFoundError):
            decode_table_from_path(tmp_path / "missing.csv", True, TripleColumns())

    def test_shape_checked_before_open(self, tmp_path):
        with pytest.raises(ShapeError):
            decode_rows_from_path(tmp_path / "missing.csv", True, Pair)
        with pytest.raises(ShapeError):
            decode_table_from_path(tmp_path / "missing.csv", True, TripleColumns)

    def test_path_shows_in_log_context(self, prices_file, captured_logs):
        decode_rows_from_path(prices_file, True, list[Price])
        started = next(r for r in captured_logs() if r["message"] == "decode_started")
        assert started["source"] == str(prices_file)
