"""Tests for delimited-text heart-rate ingestion."""

from __future__ import annotations

import time
from datetime import datetime

import pytest

from fuellog.tracking.ingest import (
    detect_column,
    detect_hr_column,
    detect_time_column,
    guess_delimiter,
    import_heart_rate_csv,
    ingest_delimited_text,
    parse_timestamp,
    parse_timestamps,
    split_line,
    to_heart_rate_series,
)


class TestGuessDelimiter:
    """Tests for guess_delimiter."""

    @pytest.mark.parametrize(
        "header,expected",
        [("time,hr", ","), ("time\thr", "\t"), ("time;hr;steps", ";"), ("time|hr", "|")],
    )
    def test_most_fields_wins(self, header: str, expected: str) -> None:
        assert guess_delimiter(header) == expected

    def test_tie_prefers_comma(self) -> None:
        assert guess_delimiter("a,b;c") == ","
        assert guess_delimiter("single") == ","


class TestSplitLine:
    """Tests for quote-aware splitting."""

    def test_quoted_delimiter(self) -> None:
        assert split_line('"2024-03-01, 07:00",120', ",") == ["2024-03-01, 07:00", "120"]

    def test_fields_trimmed(self) -> None:
        assert split_line(" a , b ", ",") == ["a", "b"]

    def test_trailing_empty_field(self) -> None:
        assert split_line("a,", ",") == ["a", ""]


class TestIngestDelimitedText:
    """Tests for ingest_delimited_text."""

    def test_tab_separated(self) -> None:
        table = ingest_delimited_text("time\thr\r\n1\t2\r\n\r\n3\t4\n")
        assert table.delimiter == "\t"
        assert table.headers == ["time", "hr"]
        assert table.rows == [{"time": "1", "hr": "2"}, {"time": "3", "hr": "4"}]

    def test_short_rows_padded(self) -> None:
        table = ingest_delimited_text("a,b,c\n1,2\n")
        assert table.rows == [{"a": "1", "b": "2", "c": ""}]

    def test_quoted_headers(self) -> None:
        table = ingest_delimited_text('"Time","Heart Rate"\n1,2\n')
        assert table.headers == ["Time", "Heart Rate"]

    @pytest.mark.parametrize("raw", ["", None, "time,hr\n", "\n\n"])
    def test_too_short(self, raw) -> None:
        table = ingest_delimited_text(raw)
        assert table.headers == []
        assert table.rows == []


class TestDetectColumns:
    """Tests for column detection."""

    def test_typical_export(self) -> None:
        headers = ["Start Time", "Heart Rate (bpm)", "Steps"]
        assert detect_time_column(headers) == "Start Time"
        assert detect_hr_column(headers) == "Heart Rate (bpm)"

    def test_chinese_headers(self) -> None:
        headers = ["步数", "心率", "时间"]
        assert detect_time_column(headers) == "时间"
        assert detect_hr_column(headers) == "心率"

    def test_key_order_beats_column_order(self) -> None:
        """'time' is tried before 'date', whatever the column order."""
        assert detect_time_column(["date", "time"]) == "time"

    def test_fallback_to_first(self) -> None:
        assert detect_column(["foo", "bar"], ("baz",)) == "foo"
        assert detect_column([], ("baz",)) is None


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_epoch_millis(self) -> None:
        assert parse_timestamp("1700000000000") == datetime(2023, 11, 14, 22, 13, 20)

    def test_epoch_seconds(self) -> None:
        assert parse_timestamp("1700000000") == datetime(2023, 11, 14, 22, 13, 20)

    def test_iso_string(self) -> None:
        assert parse_timestamp("2024-03-01 07:05:00") == datetime(2024, 3, 1, 7, 5)

    def test_slash_date(self) -> None:
        assert parse_timestamp("2024/03/01 07:05:00") == datetime(2024, 3, 1, 7, 5)

    def test_timezone_to_utc(self) -> None:
        assert parse_timestamp("2024-03-01T08:00:00+01:00") == datetime(2024, 3, 1, 7, 0)

    @pytest.mark.parametrize("value", ["", None, "not a time", "   "])
    def test_unparseable(self, value) -> None:
        assert parse_timestamp(value) is None


class TestToHeartRateSeries:
    """Tests for to_heart_rate_series."""

    def test_drops_invalid_rows(self) -> None:
        rows = [
            {"t": "2024-03-01 07:02:00", "hr": "130"},
            {"t": "garbage", "hr": "120"},
            {"t": "2024-03-01 07:00:00", "hr": "110"},
            {"t": "2024-03-01 07:01:00", "hr": "n/a"},
            {"t": "2024-03-01 07:03:00", "hr": "0"},
        ]
        series = to_heart_rate_series(rows, "t", "hr")
        assert [s.bpm for s in series] == [110.0, 130.0]
        assert series[0].timestamp < series[1].timestamp

    def test_unknown_column(self) -> None:
        assert to_heart_rate_series([{"t": "1", "hr": "2"}], "t", "pulse") == []

    def test_no_rows(self) -> None:
        assert to_heart_rate_series([], "t", "hr") == []


class TestImportHeartRateCsv:
    """Tests for the one-step import."""

    def test_detects_and_parses(self, hr_csv_text: str) -> None:
        result = import_heart_rate_csv(hr_csv_text)
        assert result.ok
        assert result.reason is None
        assert result.time_column == "时间"
        assert result.hr_column == "心率"
        assert len(result.series) == 3
        assert result.dropped_rows == 1

    def test_explicit_columns(self) -> None:
        raw = "when;value\n1700000000;100\n1700000060;110\n"
        result = import_heart_rate_csv(raw, time_column="when", hr_column="value")
        assert result.table.delimiter == ";"
        assert [s.bpm for s in result.series] == [100.0, 110.0]

    def test_insufficient_data(self) -> None:
        result = import_heart_rate_csv("time,hr\n2024-03-01 07:00:00,120\n")
        assert not result.ok
        assert result.reason == "insufficient_data"


class TestParseTimestamps:
    """Tests for whole-column timestamp parsing."""

    def test_mixed_column(self) -> None:
        parsed = parse_timestamps(
            ["1700000000000", "1700000000", "2024-03-01 07:05:00", "2024/03/01 07:06:00", "nope", None]
        )
        assert list(parsed.iloc[:4]) == [
            datetime(2023, 11, 14, 22, 13, 20),
            datetime(2023, 11, 14, 22, 13, 20),
            datetime(2024, 3, 1, 7, 5),
            datetime(2024, 3, 1, 7, 6),
        ]
        assert parsed.iloc[4:].isna().all()

    def test_large_import(self) -> None:
        """Tens of thousands of rows import in well under a second or two."""
        lines = ["time,hr"] + [
            f"2024-03-01 {6 + i // 3600:02d}:{i // 60 % 60:02d}:{i % 60:02d},{100 + i % 50}"
            for i in range(30000)
        ]
        started = time.perf_counter()
        result = import_heart_rate_csv("\n".join(lines))
        elapsed = time.perf_counter() - started
        assert len(result.series) == 30000
        assert result.series[0].timestamp == datetime(2024, 3, 1, 6, 0, 0)
        assert result.series[-1].timestamp > result.series[0].timestamp
        assert elapsed < 5.0
