"""Import heart-rate series from delimited text exports.

Watch and app exports come in many shapes, so nothing about the file is
assumed beyond "first non-empty line is a header":

- The delimiter is whichever of comma, tab, semicolon or pipe splits the
  header into the most fields.
- Double quotes toggle a "do not split" state and are dropped.
- Time and heart-rate columns are guessed from header names.
- Timestamps may be epoch milliseconds (13 digits), epoch seconds (10
  digits) or calendar strings.
- Rows without a parseable time or a positive heart rate are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from fuellog.tracking.models import HeartRateSample

logger = logging.getLogger(__name__)

CANDIDATE_DELIMITERS = (",", "\t", ";", "|")
TIME_COLUMN_KEYS = ("time", "date", "timestamp", "开始", "时间", "datetime")
HR_COLUMN_KEYS = ("hr", "heart", "心率", "bpm", "pulse")
MIN_SERIES_SAMPLES = 2

_EPOCH_MS = r"\d{13}"
_EPOCH_S = r"\d{10}"


@dataclass
class DelimitedTable:
    """Parsed delimited text."""

    headers: list[str]
    rows: list[dict[str, str]]
    delimiter: str = ","


@dataclass
class HeartRateImport:
    """Result of importing a heart-rate export."""

    table: DelimitedTable
    time_column: Optional[str]
    hr_column: Optional[str]
    series: list[HeartRateSample] = field(default_factory=list)
    dropped_rows: int = 0

    @property
    def ok(self) -> bool:
        """True when enough samples were found to estimate a workout."""
        return len(self.series) >= MIN_SERIES_SAMPLES

    @property
    def reason(self) -> Optional[str]:
        """Why the import was rejected, or None."""
        return None if self.ok else "insufficient_data"


def guess_delimiter(header_line: str) -> str:
    """Pick the candidate delimiter that yields the most header fields.

    Ties go to the earlier candidate, so plain single-column text is
    treated as comma-separated.
    """
    best, best_count = CANDIDATE_DELIMITERS[0], 0
    for delimiter in CANDIDATE_DELIMITERS:
        count = len(header_line.split(delimiter))
        if count > best_count:
            best, best_count = delimiter, count
    return best


def split_line(line: str, delimiter: str) -> list[str]:
    """Split one line, honouring double-quoted sections.

    A quote only toggles whether the delimiter splits; quotes are never
    kept and there is no escaping.
    """
    if '"' not in line:
        return [f.strip() for f in line.split(delimiter)]
    fields: list[str] = []
    current: list[str] = []
    quoted = False
    for ch in line:
        if ch == '"':
            quoted = not quoted
            continue
        if ch == delimiter and not quoted:
            fields.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    fields.append("".join(current).strip())
    return fields


def ingest_delimited_text(raw: Optional[str]) -> DelimitedTable:
    """Parse delimited text into header-keyed rows.

    Args:
        raw: Decoded file content

    Returns:
        DelimitedTable; headers and rows are empty when there are fewer
        than two non-blank lines
    """
    lines = [line for line in (raw or "").replace("\r", "").split("\n") if line.strip()]
    if len(lines) < 2:
        return DelimitedTable(headers=[], rows=[])

    delimiter = guess_delimiter(lines[0])
    headers = [h.strip('"') for h in split_line(lines[0], delimiter)]
    rows = []
    for line in lines[1:]:
        cols = split_line(line, delimiter)
        rows.append({h: cols[i] if i < len(cols) else "" for i, h in enumerate(headers)})
    return DelimitedTable(headers=headers, rows=rows, delimiter=delimiter)


def detect_column(headers: Sequence[str], keys: Iterable[str]) -> Optional[str]:
    """Return the first header containing one of keys (case-insensitive).

    Keys are tried in order; falls back to the first header.
    """
    if not headers:
        return None
    lower = [h.lower() for h in headers]
    for key in keys:
        for header, name in zip(headers, lower):
            if key in name:
                return header
    return headers[0]


def detect_time_column(headers: Sequence[str]) -> Optional[str]:
    """Guess the timestamp column."""
    return detect_column(headers, TIME_COLUMN_KEYS)


def detect_hr_column(headers: Sequence[str]) -> Optional[str]:
    """Guess the heart-rate column."""
    return detect_column(headers, HR_COLUMN_KEYS)


def _parse_calendar(text: pd.Series) -> pd.Series:
    """Parse calendar strings; tz-aware values become naive UTC."""
    parsed = pd.to_datetime(text, errors="coerce", format="mixed", utc=True)
    return parsed.dt.tz_localize(None)


def parse_timestamps(values: Iterable[object]) -> pd.Series:
    """Parse a column of timestamp cells in one pass.

    Tried in order: 13-digit epoch milliseconds, 10-digit epoch seconds,
    calendar parsing, calendar parsing with '/' replaced by '-'.
    Epoch values are naive UTC.

    Returns:
        datetime64 Series aligned with values; NaT where nothing worked
    """
    text = pd.Series(list(values), dtype="object").fillna("").astype(str).str.strip()
    is_ms = text.str.fullmatch(_EPOCH_MS).astype(bool)
    is_s = text.str.fullmatch(_EPOCH_S).astype(bool)
    rest = ~(is_ms | is_s) & (text != "")

    parsed = pd.Series(pd.NaT, index=text.index, dtype="datetime64[ns]")
    if is_ms.any():
        parsed[is_ms] = pd.to_datetime(text[is_ms].astype("int64"), unit="ms")
    if is_s.any():
        parsed[is_s] = pd.to_datetime(text[is_s].astype("int64"), unit="s")
    if rest.any():
        calendar = _parse_calendar(text[rest])
        retry = calendar.isna() & text[rest].str.contains("/", regex=False).astype(bool)
        if retry.any():
            calendar[retry] = _parse_calendar(text[rest][retry].str.replace("/", "-", regex=False))
        parsed[rest] = calendar
    return parsed


def parse_timestamp(value: object) -> Optional[datetime]:
    """Parse a single timestamp cell (see parse_timestamps).

    Returns:
        datetime, or None if nothing worked
    """
    ts = parse_timestamps([value]).iloc[0]
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()


def to_heart_rate_series(
    rows: Sequence[Mapping[str, object]],
    time_column: str,
    hr_column: str,
) -> list[HeartRateSample]:
    """Reduce parsed rows to a time-ordered heart-rate series.

    Rows whose time does not parse or whose heart rate is not a positive
    finite number are dropped. Duplicate timestamps are kept.
    """
    if not rows:
        return []
    frame = pd.DataFrame.from_records(list(rows))
    if time_column not in frame.columns or hr_column not in frame.columns:
        return []

    times = parse_timestamps(frame[time_column])
    bpm = pd.to_numeric(frame[hr_column], errors="coerce").astype(float)
    valid = times.notna() & np.isfinite(bpm) & (bpm > 0)

    kept = pd.DataFrame({"timestamp": times[valid], "bpm": bpm[valid]})
    kept = kept.sort_values("timestamp", kind="stable")
    series = [
        HeartRateSample(timestamp=t.to_pydatetime(), bpm=float(b))
        for t, b in zip(kept["timestamp"], kept["bpm"])
    ]
    dropped = len(frame) - len(series)
    if dropped:
        logger.debug("Dropped %d of %d rows without a valid time/heart rate", dropped, len(frame))
    return series


def import_heart_rate_csv(
    raw: Optional[str],
    time_column: Optional[str] = None,
    hr_column: Optional[str] = None,
) -> HeartRateImport:
    """Parse an export and build the heart-rate series in one step.

    Args:
        raw: Decoded file content
        time_column: Column to read timestamps from (auto-detected if None)
        hr_column: Column to read heart rate from (auto-detected if None)

    Returns:
        HeartRateImport; check .ok before estimating
    """
    table = ingest_delimited_text(raw)
    time_column = time_column or detect_time_column(table.headers)
    hr_column = hr_column or detect_hr_column(table.headers)
    series: list[HeartRateSample] = []
    if time_column and hr_column:
        series = to_heart_rate_series(table.rows, time_column, hr_column)
    result = HeartRateImport(
        table=table,
        time_column=time_column,
        hr_column=hr_column,
        series=series,
        dropped_rows=len(table.rows) - len(series),
    )
    if not result.ok:
        logger.debug("Heart-rate import rejected: %d usable samples", len(series))
    return result
