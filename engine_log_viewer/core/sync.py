"""
Cross-chart synchronization: shared viewport, marker broadcast and debouncing.

Charts never talk to each other. Each ChartHandle emits interaction events
(Hover, Click, ViewportChanged, PinchGesture) into SyncCoordinator.dispatch,
which is the only writer of the session's viewport and marker and pushes the
result back to every handle.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Protocol, Sequence, Union

from .config import ViewerConfig
from .errors import NoChannelsSelected
from .models import MarkerState, Viewport
from .session import ChannelSeries, Session

logger = logging.getLogger(__name__)


# =========================================================================
# Events
# =========================================================================

@dataclass(frozen=True)
class Hover:
    """Pointer moved over a chart at x (sample_index when the surface knows it)."""
    source: Optional[str]
    x: float
    sample_index: Optional[int] = None


@dataclass(frozen=True)
class Click:
    """Chart clicked at x."""
    source: Optional[str]
    x: float
    sample_index: Optional[int] = None


@dataclass(frozen=True)
class ViewportChanged:
    """Chart panned or scroll-zoomed to a new x range."""
    source: Optional[str]
    low: float
    high: float


@dataclass(frozen=True)
class PinchGesture:
    """One frame of a two-finger pinch; midpoint is in x-domain units."""
    source: Optional[str]
    previous_distance: float
    distance: float
    midpoint: float


@dataclass(frozen=True)
class Reset:
    """Explicit reset of zoom and marker."""
    source: Optional[str] = None


ChartEvent = Union[Hover, Click, ViewportChanged, PinchGesture, Reset]


# =========================================================================
# Scheduling
# =========================================================================

class Scheduler(Protocol):
    """Timer mechanism used for deferred work."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        ...

    def cancel(self, token: Any) -> None:
        ...


class SingleFlight:
    """
    At most one pending callback: submitting a new one cancels the old.
    """

    def __init__(self, scheduler: Scheduler, delay_ms: int):
        self.scheduler = scheduler
        self.delay_ms = delay_ms
        self._token: Any = None

    @property
    def pending(self) -> bool:
        return self._token is not None

    def submit(self, callback: Callable[[], None]) -> None:
        """Schedule callback after the delay, replacing any pending one."""
        self.cancel()

        def fire():
            self._token = None
            callback()

        self._token = self.scheduler.call_later(self.delay_ms, fire)

    def cancel(self) -> None:
        """Drop the pending callback, if any."""
        if self._token is not None:
            self.scheduler.cancel(self._token)
            self._token = None


# =========================================================================
# Chart handles
# =========================================================================

class ChartHandle:
    """
    One rendering surface bound to one channel.

    Keeps the last applied viewport and marker so repeated broadcasts of the
    same state do not redraw. Subclasses implement the _apply_* hooks.
    """

    def __init__(self, channel: str):
        self.channel = channel
        self.viewport: Optional[Viewport] = None
        self.marker_x: Optional[float] = None
        self.disposed = False
        self._listeners: list[Callable[[ChartEvent], None]] = []

    def set_viewport(self, viewport: Viewport) -> None:
        if viewport == self.viewport:
            return
        self.viewport = viewport
        self._apply_viewport(viewport)

    def set_marker_shape(self, x: Optional[float]) -> None:
        if x == self.marker_x:
            return
        self.marker_x = x
        self._apply_marker(x)

    def subscribe(self, callback: Callable[[ChartEvent], None]) -> None:
        self._listeners.append(callback)

    def emit(self, event: ChartEvent) -> None:
        """Forward an interaction event to subscribers."""
        if self.disposed:
            return
        for listener in list(self._listeners):
            listener(event)

    def dispose(self) -> None:
        """Release the rendering surface; the handle emits nothing afterwards."""
        if self.disposed:
            return
        self.disposed = True
        self._listeners.clear()
        self._dispose()

    def _apply_viewport(self, viewport: Viewport) -> None:
        raise NotImplementedError

    def _apply_marker(self, x: Optional[float]) -> None:
        raise NotImplementedError

    def _dispose(self) -> None:
        pass


HandleFactory = Callable[[ChannelSeries], ChartHandle]


class MarkerReadout(Protocol):
    """Marker panel collaborator."""

    def show_readout(self, sample_index: int, rows: Sequence[tuple[str, Any]], axis_label: str) -> None:
        ...

    def hide_readout(self) -> None:
        ...


class ChartSet:
    """Immutable collection of chart handles, one per selected channel."""

    def __init__(self, handles: Sequence[ChartHandle] = ()):
        self._handles = tuple(handles)

    def __iter__(self) -> Iterator[ChartHandle]:
        return iter(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    @property
    def channels(self) -> list[str]:
        return [h.channel for h in self._handles]

    def get(self, channel: str) -> Optional[ChartHandle]:
        for handle in self._handles:
            if handle.channel == channel:
                return handle
        return None

    def dispose(self) -> None:
        for handle in self._handles:
            handle.dispose()


# =========================================================================
# Coordinator
# =========================================================================

class SyncCoordinator:
    """
    Single authority for the shared viewport and marker.

    Marker moves from a gesture redraw the originating chart and the readout
    at once; the other charts are updated after marker_debounce_ms, and only
    with the latest marker if several arrive within that window.
    """

    def __init__(
        self,
        factory: HandleFactory,
        scheduler: Scheduler,
        readout: Optional[MarkerReadout] = None,
        config: Optional[ViewerConfig] = None
    ):
        self.factory = factory
        self.readout = readout
        self.config = config or ViewerConfig()
        self.session: Optional[Session] = None
        self.charts = ChartSet()
        self._marker_flush = SingleFlight(scheduler, self.config.marker_debounce_ms)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def load_session(self, session: Session) -> None:
        """Replace the session, discarding every chart and all sync state."""
        self._marker_flush.cancel()
        self.charts.dispose()
        self.charts = ChartSet()
        self.session = session
        session.viewport = None
        session.marker = MarkerState()
        if self.readout is not None:
            self.readout.hide_readout()

    def rebuild(self, channels: Sequence[str]) -> ChartSet:
        """
        Replace the chart set with one handle per channel, then reapply the
        last viewport and marker.

        Raises:
            NoChannelsSelected: channels is empty; the current charts are kept
        """
        session = self._require_session()
        channels = [ch for ch in dict.fromkeys(channels) if ch in session.channel_names]
        if not channels:
            raise NoChannelsSelected("Select at least one channel to plot")

        self._marker_flush.cancel()
        old = self.charts
        handles = []
        for channel in channels:
            handle = self.factory(session.series(channel))
            handle.subscribe(self.dispatch)
            handles.append(handle)
        self.charts = ChartSet(handles)
        old.dispose()
        session.selected = channels
        logger.info("Rebuilt %d chart(s): %s", len(channels), ", ".join(channels))

        self.set_viewport(session.viewport or self._initial_viewport())
        if session.marker.is_set:
            self._show_marker(session.marker.sample_index, origin=None)
        return self.charts

    # ------------------------------------------------------------------
    # State changes
    # ------------------------------------------------------------------

    def set_viewport(self, viewport: Viewport) -> Viewport:
        """Clamp a range to the domain and apply it to every chart."""
        session = self._require_session()
        clamped = viewport.clamp(session.domain)
        if clamped != session.viewport:
            logger.debug("Viewport %.6g .. %.6g", clamped.low, clamped.high)
        session.viewport = clamped
        for handle in self.charts:
            handle.set_viewport(clamped)
        return clamped

    def set_marker(self, sample_index: int, origin: Optional[str] = None) -> bool:
        """
        Move the marker to a sample row.

        With an origin chart, that chart is updated immediately and the rest
        after the debounce delay; without one every chart is updated now.

        Returns:
            False when sample_index is out of range and nothing changed
        """
        session = self._require_session()
        if not 0 <= sample_index < len(session.record_set):
            return False
        session.marker = MarkerState(sample_index)
        self._show_marker(sample_index, origin)
        return True

    def clear_marker(self) -> None:
        session = self._require_session()
        self._marker_flush.cancel()
        session.marker = MarkerState()
        for handle in self.charts:
            handle.set_marker_shape(None)
        if self.readout is not None:
            self.readout.hide_readout()

    def reset(self) -> Viewport:
        """Back to the default window with no marker."""
        self._require_session()
        viewport = self.set_viewport(self._initial_viewport())
        self.clear_marker()
        return viewport

    def flush(self) -> None:
        """Apply a pending marker broadcast now."""
        if self._marker_flush.pending:
            self._marker_flush.cancel()
            self._broadcast_marker()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def dispatch(self, event: ChartEvent) -> None:
        """Single entry point for chart interaction events."""
        if self.session is None:
            return

        if isinstance(event, (Hover, Click)):
            index = self._lookup_sample(event)
            if index is not None:
                self.set_marker(index, origin=event.source)
        elif isinstance(event, ViewportChanged):
            self.set_viewport(Viewport(event.low, event.high))
        elif isinstance(event, PinchGesture):
            self._apply_pinch(event)
        elif isinstance(event, Reset):
            self.reset()
        else:
            raise TypeError(f"Unknown chart event: {event!r}")

    def _lookup_sample(self, event: Union[Hover, Click]) -> Optional[int]:
        n = len(self.session.record_set)
        if event.sample_index is not None and 0 <= event.sample_index < n:
            return event.sample_index
        return self.session.x_axis.nearest_index(event.x)

    def _apply_pinch(self, event: PinchGesture) -> None:
        if event.previous_distance <= 0 or event.distance <= 0:
            return
        scale = event.distance / event.previous_distance
        current = self.session.viewport or self.session.full_viewport
        half = current.width / scale / 2.0
        self.set_viewport(Viewport(event.midpoint - half, event.midpoint + half))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_session(self) -> Session:
        if self.session is None:
            raise RuntimeError("No log loaded")
        return self.session

    def _initial_viewport(self) -> Viewport:
        d_min, d_max = self.session.domain
        window = self.config.default_window
        if window is None:
            return Viewport(d_min, d_max)
        return Viewport(d_min, d_min + window).clamp(self.session.domain)

    def _marker_x(self) -> Optional[float]:
        index = self.session.marker.sample_index
        if index is None:
            return None
        return self.session.x_axis.value_at(index)

    def _show_marker(self, sample_index: int, origin: Optional[str]) -> None:
        x = self._marker_x()
        origin_handle = self.charts.get(origin) if origin is not None else None
        if origin_handle is None:
            self._marker_flush.cancel()
            self._broadcast_marker()
        else:
            origin_handle.set_marker_shape(x)
            self._marker_flush.submit(self._broadcast_marker)

        if self.readout is not None:
            self.readout.show_readout(
                sample_index,
                self.session.readout_rows(sample_index),
                self.session.x_axis.label,
            )

    def _broadcast_marker(self) -> None:
        x = self._marker_x()
        for handle in self.charts:
            handle.set_marker_shape(x)
