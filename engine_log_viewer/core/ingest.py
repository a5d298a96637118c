"""
Log file ingestion: delimiter and time-axis inference for the Engine Log Viewer.
"""
from __future__ import annotations

import logging
import math
import re
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .config import ViewerConfig
from .errors import EmptyOrMalformed, FileUnreadable
from .models import LogData, RecordSet, XAxisDescriptor, XAxisKind

logger = logging.getLogger(__name__)


# BOM and zero-width marks some exporters put in front of fields
INVISIBLE_MARKS = re.compile("[\ufeff\u200b\u200c\u200d\u2060]")

LINE_BREAK = re.compile(r"\r\n|\r|\n")

TIME_COLUMN_PATTERN = re.compile(r"time|timestamp|date|utc", re.IGNORECASE)

# HH:MM:SS with optional fraction, e.g. 12:03:44.250
TIME_OF_DAY_PATTERN = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})(?:[.,](\d+))?$")

# Bare numbers are never handed to the date parser (it would read 2024 as a year)
BARE_NUMBER_PATTERN = re.compile(r"^[+-]?\d+(?:[.,]\d+)?$")

EPOCH = pd.Timestamp("1970-01-01", tz="UTC")


def clean_field(text: str) -> str:
    """Strip invisible marks and surrounding whitespace from a field."""
    return INVISIBLE_MARKS.sub("", text).strip()


def non_blank_lines(text: str) -> list[str]:
    """Split text into lines, dropping lines that are blank once cleaned."""
    return [line for line in LINE_BREAK.split(text) if clean_field(line)]


def count_outside_quotes(line: str, char: str) -> int:
    """Count occurrences of char that are not inside a quoted span."""
    count = 0
    in_quotes = False
    for c in line:
        if c == '"':
            in_quotes = not in_quotes
        elif c == char and not in_quotes:
            count += 1
    return count


def detect_delimiter(lines: Sequence[str], sample_size: int = 5) -> str:
    """
    Choose between comma and semicolon.

    Semicolon wins only when it strictly outnumbers commas in the sampled
    lines; ties and comma majorities give comma.
    """
    sample = [line for line in lines if clean_field(line)][:sample_size]
    commas = sum(count_outside_quotes(line, ",") for line in sample)
    semicolons = sum(count_outside_quotes(line, ";") for line in sample)
    return ";" if semicolons > commas else ","


def split_line(line: str, delimiter: str) -> list[str]:
    """Split one line on delimiter, treating quoted spans as literal text."""
    fields = []
    current: list[str] = []
    in_quotes = False
    for c in line:
        if c == '"':
            in_quotes = not in_quotes
        elif c == delimiter and not in_quotes:
            fields.append(clean_field("".join(current)))
            current = []
        else:
            current.append(c)
    fields.append(clean_field("".join(current)))
    return fields


def make_unique_headers(raw_headers: Sequence[str]) -> list[str]:
    """Name empty headers and suffix duplicates so every header is unique."""
    headers: list[str] = []
    seen: set[str] = set()
    for i, name in enumerate(raw_headers):
        base = name or f"Column {i + 1}"
        candidate = base
        n = 2
        while candidate in seen:
            candidate = f"{base} ({n})"
            n += 1
        seen.add(candidate)
        headers.append(candidate)
    return headers


def parse_text(text: str, sample_size: int = 5) -> RecordSet:
    """
    Parse delimited log text into a record set.

    Rows shorter than the header get None for the missing trailing cells;
    extra cells in longer rows are dropped. Empty cells become None.

    Raises:
        EmptyOrMalformed: fewer than two non-blank lines, or an empty header
    """
    lines = non_blank_lines(text)
    if len(lines) < 2:
        raise EmptyOrMalformed(
            f"Expected a header and at least one data line, got {len(lines)} non-blank line(s)"
        )

    delimiter = detect_delimiter(lines, sample_size)
    raw_headers = split_line(lines[0], delimiter)
    if not any(raw_headers):
        raise EmptyOrMalformed("Header row is empty")
    headers = make_unique_headers(raw_headers)
    width = len(headers)

    rows = []
    short_rows = 0
    long_rows = 0
    for line in lines[1:]:
        fields = split_line(line, delimiter)
        if len(fields) < width:
            short_rows += 1
            fields = fields + [""] * (width - len(fields))
        elif len(fields) > width:
            long_rows += 1
            fields = fields[:width]
        rows.append({h: (v if v else None) for h, v in zip(headers, fields)})

    if short_rows:
        logger.debug("%d row(s) shorter than header, missing cells set to None", short_rows)
    if long_rows:
        logger.debug("%d row(s) longer than header, extra cells dropped", long_rows)

    return RecordSet(headers=headers, rows=rows, delimiter=delimiter)


def detect_time_column(headers: Sequence[str]) -> Optional[str]:
    """Pick the first time-like header, falling back to the first header."""
    for header in headers:
        if TIME_COLUMN_PATTERN.search(header):
            return header
    return headers[0] if headers else None


def coerce_channel(values: Sequence[Optional[str]]) -> np.ndarray:
    """
    Convert raw cells to floats, accepting a comma as decimal separator.

    Cells that do not parse (or parse to inf/nan) become NaN gaps.
    """
    series = pd.Series(list(values), dtype=object)
    if series.empty:
        return np.array([], dtype=float)
    normalized = series.str.replace(",", ".", n=1, regex=False)
    numbers = pd.to_numeric(normalized, errors="coerce").to_numpy(dtype=float, copy=True)
    numbers[~np.isfinite(numbers)] = np.nan
    return numbers


def parse_calendar(
    values: Sequence[Optional[str]],
    today: Optional[pd.Timestamp] = None
) -> np.ndarray:
    """
    Convert raw cells to epoch milliseconds.

    HH:MM:SS[.fraction] cells are placed on `today` (midnight, UTC wall
    clock), so logs crossing midnight lose the day boundary. Other cells go
    through the pandas date parser; naive timestamps are read as UTC.
    """
    today = pd.Timestamp.now() if today is None else pd.Timestamp(today)
    if today.tzinfo is not None:
        today = today.tz_convert("UTC").tz_localize(None)
    today_ms = (today.normalize() - pd.Timestamp("1970-01-01")) / pd.Timedelta(milliseconds=1)

    result = np.full(len(values), np.nan)
    date_positions = []
    date_cells = []

    for i, cell in enumerate(values):
        if cell is None:
            continue
        match = TIME_OF_DAY_PATTERN.match(cell)
        if match:
            hours, minutes, seconds = (int(g) for g in match.group(1, 2, 3))
            if hours < 24 and minutes < 60 and seconds < 60:
                fraction = float(f"0.{match.group(4)}") if match.group(4) else 0.0
                result[i] = today_ms + ((hours * 60 + minutes) * 60 + seconds + fraction) * 1000.0
            continue
        if BARE_NUMBER_PATTERN.match(cell):
            continue
        date_positions.append(i)
        date_cells.append(cell)

    if date_cells:
        cells = pd.Series(date_cells, dtype=object)
        parsed = pd.to_datetime(cells, errors="coerce", format="ISO8601", utc=True)
        missing = parsed.isna()
        if missing.any():
            parsed[missing] = pd.to_datetime(cells[missing], errors="coerce", format="mixed", utc=True)
        millis = ((parsed - EPOCH) / pd.Timedelta(milliseconds=1)).to_numpy(dtype=float)
        result[np.array(date_positions)] = millis

    return result


def valid_ratio(values: np.ndarray) -> float:
    """Share of finite entries."""
    if len(values) == 0:
        return 0.0
    return float(np.count_nonzero(np.isfinite(values))) / len(values)


def compute_domain(values: np.ndarray) -> tuple[float, float]:
    """Min/max over finite entries, padded so that min < max."""
    finite = values[np.isfinite(values)]
    if len(finite) == 0:
        low, high = 0.0, float(max(len(values) - 1, 0))
    else:
        low, high = float(finite.min()), float(finite.max())
    if low == high:
        low, high = low - 0.5, high + 0.5
    return (low, high)


def sparse_ticks(labels: Sequence[str], tick_count: int) -> list[tuple[float, str]]:
    """Every n-th label so that at most tick_count labels are shown."""
    if not labels:
        return []
    step = max(1, math.ceil(len(labels) / tick_count))
    return [(float(i), labels[i]) for i in range(0, len(labels), step)]


def infer_x_axis(
    column: str,
    values: Sequence[Optional[str]],
    config: Optional[ViewerConfig] = None,
    today: Optional[pd.Timestamp] = None
) -> XAxisDescriptor:
    """
    Classify the x column as numeric, calendar or categorical.

    Args:
        column: Header of the x column
        values: Raw cells of the x column, one per row
        config: Thresholds; defaults to ViewerConfig()
        today: Date used for time-of-day cells

    Returns:
        XAxisDescriptor aligned 1:1 with values
    """
    config = config or ViewerConfig()

    numeric = coerce_channel(values)
    if valid_ratio(numeric) >= config.numeric_threshold:
        return XAxisDescriptor(
            kind=XAxisKind.NUMERIC,
            column=column,
            values=numeric,
            domain=compute_domain(numeric),
        )

    calendar = parse_calendar(values, today)
    if valid_ratio(calendar) >= config.calendar_threshold:
        return XAxisDescriptor(
            kind=XAxisKind.CALENDAR,
            column=column,
            values=calendar,
            domain=compute_domain(calendar),
        )

    labels = [v if v is not None else "" for v in values]
    index = np.arange(len(labels), dtype=float)
    return XAxisDescriptor(
        kind=XAxisKind.CATEGORICAL,
        column=column,
        values=index,
        domain=compute_domain(index),
        labels=labels,
        ticks=sparse_ticks(labels, config.categorical_tick_count),
    )


def build_x_axis(
    record_set: RecordSet,
    column: Optional[str] = None,
    config: Optional[ViewerConfig] = None,
    today: Optional[pd.Timestamp] = None
) -> XAxisDescriptor:
    """Build the x-axis from a chosen column, or the detected time column."""
    column = column or detect_time_column(record_set.headers)
    if column not in record_set.headers:
        raise KeyError(f"Unknown x column: {column}")
    return infer_x_axis(column, record_set.column(column), config, today)


class FileReader:
    """Reads engine log files into record sets with an inferred x-axis."""

    def __init__(self, config: Optional[ViewerConfig] = None):
        self.config = config or ViewerConfig()

    def read_text(self, filepath: Path | str) -> str:
        """Read a file as UTF-8 text (a leading BOM is tolerated)."""
        filepath = Path(filepath)
        try:
            with open(filepath, "r", encoding="utf-8-sig", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FileUnreadable(f"Cannot read {filepath}: {e}") from e

    def parse(self, text: str, source: str = "<text>", x_column: Optional[str] = None) -> LogData:
        """Parse log text and infer its x-axis."""
        record_set = parse_text(text, self.config.delimiter_sample_lines)
        x_axis = build_x_axis(record_set, x_column, self.config)
        logger.info(
            "Parsed %s: %d rows, %d columns, delimiter %r, x=%s (%s)",
            source, len(record_set), len(record_set.headers),
            record_set.delimiter, x_axis.column, x_axis.kind.name.lower()
        )
        return LogData(source=source, record_set=record_set, x_axis=x_axis)

    def read_file(self, filepath: Path | str) -> LogData:
        """Read and parse a log file."""
        filepath = Path(filepath)
        return self.parse(self.read_text(filepath), source=filepath.name)
