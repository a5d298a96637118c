"""
Core data models for the Engine Log Viewer application.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional

import numpy as np
import pandas as pd


Row = dict[str, Optional[str]]


class XAxisKind(Enum):
    """How the x-axis values of a loaded log are interpreted."""
    NUMERIC = auto()       # Float values, e.g. seconds since start
    CALENDAR = auto()      # Epoch milliseconds
    CATEGORICAL = auto()   # Row index, raw strings kept as labels


@dataclass
class RecordSet:
    """Parsed rows of a log file, keyed by header name."""
    headers: list[str] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)
    delimiter: str = ","

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def row(self, index: int) -> Row:
        """Get a row by sample index."""
        return self.rows[index]

    def column(self, header: str) -> list[Optional[str]]:
        """Get the raw cells of one column."""
        if header not in self.headers:
            raise KeyError(header)
        return [r[header] for r in self.rows]

    def to_dataframe(self) -> pd.DataFrame:
        """Get the raw cells as an object-dtype dataframe."""
        return pd.DataFrame(self.rows, columns=self.headers, dtype=object)


@dataclass
class HeaderDescriptor:
    """Classification result for a single header."""
    raw_name: str
    key: str
    display_name: str
    is_time_candidate: bool = False
    default_checked: bool = False


@dataclass(frozen=True)
class ChannelEntry:
    """A selectable channel as offered to the selection UI."""
    header: str
    display_name: str
    default_checked: bool = False


@dataclass
class XAxisDescriptor:
    """Shared x-axis of every chart, aligned 1:1 with the record set rows."""
    kind: XAxisKind
    column: str
    values: np.ndarray
    domain: tuple[float, float]
    labels: list[str] = field(default_factory=list)
    ticks: list[tuple[float, str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def label(self) -> str:
        """Axis title shown under the charts and in the marker readout."""
        if self.kind == XAxisKind.CATEGORICAL:
            return f"{self.column} (index)"
        return self.column

    def value_at(self, index: int) -> Optional[float]:
        """Get the x value of a sample, or None when the cell was invalid."""
        value = float(self.values[index])
        if np.isnan(value):
            return None
        return value

    def nearest_index(self, x: float) -> Optional[int]:
        """Find the sample whose x value is closest to x (NaN entries skipped)."""
        if len(self.values) == 0 or not np.isfinite(x):
            return None
        distance = np.abs(self.values - x)
        if np.all(np.isnan(distance)):
            return None
        return int(np.nanargmin(distance))


@dataclass
class LogData:
    """One loaded log: parsed records plus the inferred x-axis."""
    source: str
    record_set: RecordSet
    x_axis: XAxisDescriptor


@dataclass(frozen=True)
class Viewport:
    """Visible x range in domain units."""
    low: float
    high: float

    @property
    def width(self) -> float:
        return self.high - self.low

    def clamp(self, domain: tuple[float, float]) -> Viewport:
        """
        Fit this range inside the domain.

        A non-positive or over-wide range becomes the full domain; a range
        hanging off either end is shifted back inside, preserving its width.
        """
        d_min, d_max = domain
        width = self.width
        if not np.isfinite(width) or width <= 0 or width >= d_max - d_min:
            return Viewport(float(d_min), float(d_max))

        low, high = self.low, self.high
        if low < d_min:
            low, high = d_min, d_min + width
        elif high > d_max:
            low, high = d_max - width, d_max
        return Viewport(float(low), float(high))

    def to_tuple(self) -> tuple[float, float]:
        return (self.low, self.high)


@dataclass(frozen=True)
class MarkerState:
    """Sample row currently highlighted on every chart."""
    sample_index: Optional[int] = None

    @property
    def is_set(self) -> bool:
        return self.sample_index is not None

