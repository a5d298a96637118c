"""
Shared fixtures: in-memory chart handles and a hand-cranked scheduler.
"""
from typing import Callable, Optional

import pytest

from engine_log_viewer.core import (
    ChannelSeries,
    ChartHandle,
    FileReader,
    Session,
    SyncCoordinator,
    ViewerConfig,
    Viewport,
)


SCENARIO_A = "Time,RPM,AFR\n0,1000,14.7\n1,2000,12.1\n2,,13.0\n"


class ManualScheduler:
    """Scheduler whose pending callbacks run only when the test says so."""

    def __init__(self):
        self.now = 0
        self._next_token = 0
        self.pending: dict[int, tuple[int, Callable[[], None]]] = {}
        self.cancelled: list[int] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> int:
        self._next_token += 1
        self.pending[self._next_token] = (self.now + delay_ms, callback)
        return self._next_token

    def cancel(self, token: int) -> None:
        if self.pending.pop(token, None) is not None:
            self.cancelled.append(token)

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing callbacks that come due."""
        self.now += ms
        due = sorted(
            (when, token) for token, (when, _) in self.pending.items() if when <= self.now
        )
        for _, token in due:
            entry = self.pending.pop(token, None)
            if entry is not None:
                entry[1]()


class RecordingHandle(ChartHandle):
    """ChartHandle that records what was applied to it."""

    def __init__(self, series: ChannelSeries):
        super().__init__(series.channel)
        self.series = series
        self.applied_viewports: list[Viewport] = []
        self.applied_markers: list[Optional[float]] = []
        self.dispose_calls = 0

    def _apply_viewport(self, viewport: Viewport) -> None:
        self.applied_viewports.append(viewport)

    def _apply_marker(self, x: Optional[float]) -> None:
        self.applied_markers.append(x)

    def _dispose(self) -> None:
        self.dispose_calls += 1


class RecordingReadout:
    """Marker panel stand-in."""

    def __init__(self):
        self.shown: list[tuple[int, list, str]] = []
        self.hidden = 0
        self.visible = False

    def show_readout(self, sample_index, rows, axis_label):
        self.shown.append((sample_index, list(rows), axis_label))
        self.visible = True

    def hide_readout(self):
        self.hidden += 1
        self.visible = False

    @property
    def last(self):
        return self.shown[-1]


class HandleFactory:
    """Factory that keeps every handle it ever created."""

    def __init__(self):
        self.created: list[RecordingHandle] = []

    def __call__(self, series: ChannelSeries) -> RecordingHandle:
        handle = RecordingHandle(series)
        self.created.append(handle)
        return handle


@pytest.fixture
def reader():
    return FileReader(ViewerConfig())


@pytest.fixture
def scenario_a_session(reader):
    return Session.from_log(reader.parse(SCENARIO_A, source="scenario_a.csv"))


@pytest.fixture
def long_session(reader):
    """101 samples at x = 0..100 with two channels."""
    lines = ["Time,RPM,AFR"]
    for i in range(101):
        lines.append(f"{i},{1000 + 10 * i},{14.7 - i / 100:.2f}")
    return Session.from_log(reader.parse("\n".join(lines), source="long.csv"))


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def factory():
    return HandleFactory()


@pytest.fixture
def readout():
    return RecordingReadout()


@pytest.fixture
def coordinator(factory, scheduler, readout):
    return SyncCoordinator(factory, scheduler, readout=readout, config=ViewerConfig())
