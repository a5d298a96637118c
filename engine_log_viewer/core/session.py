"""
Session state for one loaded log, and the guard against stale file loads.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from .classifier import classify_headers, unique_display_names
from .ingest import coerce_channel
from .models import ChannelEntry, LogData, MarkerState, RecordSet, Viewport, XAxisDescriptor

logger = logging.getLogger(__name__)


@dataclass
class ChannelSeries:
    """Numeric y data of one channel against the shared x-axis."""
    channel: str
    title: str
    x_axis: XAxisDescriptor
    y: np.ndarray

    @property
    def gap_count(self) -> int:
        return int(np.count_nonzero(np.isnan(self.y)))


@dataclass
class Session:
    """
    Everything the application knows about the currently loaded log.

    Created once per load and replaced wholesale on reload. The viewport and
    marker fields are written only by the SyncCoordinator.
    """
    log: LogData
    channels: list[ChannelEntry] = field(default_factory=list)
    display_names: dict[str, str] = field(default_factory=dict)
    selected: list[str] = field(default_factory=list)
    viewport: Optional[Viewport] = None
    marker: MarkerState = field(default_factory=MarkerState)
    _series_cache: dict[str, ChannelSeries] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def from_log(cls, log: LogData) -> Session:
        """Classify the log's headers and pre-select the default channels."""
        channels = classify_headers(log.record_set.headers, log.x_axis.column)
        session = cls(
            log=log,
            channels=channels,
            display_names=unique_display_names(channels),
            selected=[c.header for c in channels if c.default_checked],
        )
        logger.info(
            "Session for %s: %d channel(s), %d selected by default",
            log.source, len(channels), len(session.selected)
        )
        return session

    @property
    def record_set(self) -> RecordSet:
        return self.log.record_set

    @property
    def x_axis(self) -> XAxisDescriptor:
        return self.log.x_axis

    @property
    def domain(self) -> tuple[float, float]:
        return self.log.x_axis.domain

    @property
    def full_viewport(self) -> Viewport:
        return Viewport(*self.domain)

    @property
    def channel_names(self) -> list[str]:
        return [c.header for c in self.channels]

    def display_name(self, channel: str) -> str:
        return self.display_names.get(channel, channel)

    def series(self, channel: str) -> ChannelSeries:
        """Numeric series for a channel; unparseable cells become NaN gaps."""
        if channel not in self._series_cache:
            raw = self.record_set.column(channel)
            y = coerce_channel(raw)
            failures = sum(1 for cell, value in zip(raw, y) if cell is not None and np.isnan(value))
            if failures:
                logger.debug("%s: %d non-numeric cell(s) shown as gaps", channel, failures)
            self._series_cache[channel] = ChannelSeries(
                channel=channel,
                title=self.display_name(channel),
                x_axis=self.x_axis,
                y=y,
            )
        return self._series_cache[channel]

    def readout_rows(self, sample_index: int) -> list[tuple[str, Any]]:
        """(display name, raw cell) for every selected channel at one sample."""
        row = self.record_set.row(sample_index)
        return [(self.display_name(ch), row.get(ch)) for ch in self.selected]


class LoadGuard:
    """
    Generation counter for asynchronous file loads.

    Every load takes a token from begin(); a completion whose token is no
    longer current belongs to a superseded load and must be dropped.
    """

    def __init__(self):
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        """Start a new load, superseding any in flight."""
        self._generation += 1
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def accept(self, token: int) -> bool:
        """Check a completion token, logging when it is stale."""
        if self.is_current(token):
            return True
        logger.warning("Ignoring stale load #%d (current #%d)", token, self._generation)
        return False
