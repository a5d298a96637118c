"""
Single-channel plot widget with a synchronized marker line.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

import pyqtgraph as pg
from PySide6.QtCore import QEvent, QObject, QPointF, Qt, Signal
from PySide6.QtGui import QFont
from PySide6.QtWidgets import QFrame, QLabel, QVBoxLayout, QWidget

from ..core import (
    ChannelSeries,
    ChartHandle,
    Click,
    Hover,
    PinchGesture,
    Viewport,
    ViewportChanged,
    XAxisDescriptor,
    XAxisKind,
    render_readout,
)


# Color palette, one per chart in selection order
COLORS = [
    "#1f77b4",  # Blue
    "#ff7f0e",  # Orange
    "#2ca02c",  # Green
    "#d62728",  # Red
    "#9467bd",  # Purple
    "#8c564b",  # Brown
    "#e377c2",  # Pink
    "#7f7f7f",  # Gray
    "#bcbd22",  # Yellow-green
    "#17becf",  # Cyan
]

MARKER_COLOR = "crimson"


class EpochMillisAxisItem(pg.AxisItem):
    """Bottom axis for epoch-millisecond values, shown as UTC wall-clock time."""

    def tickStrings(self, values, scale, spacing):
        if spacing >= 86_400_000:
            fmt = "%Y-%m-%d"
        elif spacing >= 1000:
            fmt = "%H:%M:%S"
        else:
            fmt = "%H:%M:%S.%f"

        strings = []
        for v in values:
            try:
                text = datetime.fromtimestamp(v / 1000.0, tz=timezone.utc).strftime(fmt)
            except (OverflowError, OSError, ValueError):
                strings.append("")
                continue
            strings.append(text[:-3] if fmt.endswith("%f") else text)
        return strings


def make_bottom_axis(x_axis: XAxisDescriptor) -> pg.AxisItem:
    """Axis item matching the kind of x-axis."""
    if x_axis.kind == XAxisKind.CALENDAR:
        return EpochMillisAxisItem(orientation="bottom")
    axis = pg.AxisItem(orientation="bottom")
    if x_axis.kind == XAxisKind.CATEGORICAL:
        axis.setTicks([x_axis.ticks])
    return axis


class ChannelPlotWidget(QWidget):
    """
    Plot of one channel against the shared x-axis.

    Emits Qt signals for hover, click, pan/zoom and pinch; ranges applied
    through set_x_range do not echo back through x_range_changed.
    """

    hovered = Signal(float)  # x_value
    clicked = Signal(float)  # x_value
    x_range_changed = Signal(float, float)  # low, high
    pinched = Signal(float, float, float)  # previous_distance, distance, midpoint

    def __init__(
        self,
        series: ChannelSeries,
        color: str = COLORS[0],
        plot_height: int = 220,
        parent: Optional[QWidget] = None
    ):
        super().__init__(parent)
        self.series = series
        self._applying_range = False

        self._setup_ui(color, plot_height)
        self._setup_marker()
        self._setup_events()

    def _setup_ui(self, color: str, plot_height: int):
        """Set up the plot UI."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self.title_label = QLabel(self.series.title)
        self.title_label.setStyleSheet("font-weight: bold; padding: 2px 5px;")
        layout.addWidget(self.title_label)

        pg.setConfigOptions(antialias=True, useOpenGL=False)

        x_axis = self.series.x_axis
        self.plot_widget = pg.PlotWidget(axisItems={"bottom": make_bottom_axis(x_axis)})
        self.plot_widget.setBackground("#1e1e1e")
        self.plot_widget.showGrid(x=True, y=True, alpha=0.3)
        self.plot_widget.setMinimumHeight(plot_height)

        self.plot_item = self.plot_widget.getPlotItem()
        self.plot_item.setLabel("bottom", x_axis.label)
        self.plot_item.setLabel("left", self.series.title, color=color)

        # Horizontal pan/zoom only; y follows the visible data
        self.plot_item.setMouseEnabled(x=True, y=False)
        self.plot_item.vb.setAutoVisible(y=True)
        self.plot_item.enableAutoRange(axis="y")

        # connect="finite" leaves gaps where cells were missing or non-numeric
        self.curve = pg.PlotDataItem(
            x_axis.values, self.series.y,
            pen=pg.mkPen(color=color, width=1.5),
            name=self.series.title,
            connect="finite",
        )
        self.plot_item.addItem(self.curve)

        layout.addWidget(self.plot_widget)

    def _setup_marker(self):
        """Set up the vertical marker line."""
        self.marker_line = pg.InfiniteLine(
            angle=90, movable=False, pen=pg.mkPen(color=MARKER_COLOR, width=1.5)
        )
        self.marker_line.setVisible(False)
        self.plot_item.addItem(self.marker_line, ignoreBounds=True)

    def _setup_events(self):
        """Connect mouse, range and gesture events."""
        scene = self.plot_widget.scene()
        scene.sigMouseMoved.connect(self._on_mouse_moved)
        scene.sigMouseClicked.connect(self._on_mouse_clicked)
        self.plot_item.vb.sigXRangeChanged.connect(self._on_x_range_changed)

        viewport = self.plot_widget.viewport()
        viewport.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents)
        viewport.grabGesture(Qt.GestureType.PinchGesture)
        viewport.installEventFilter(self)

    def _scene_to_x(self, scene_pos) -> Optional[float]:
        vb = self.plot_item.vb
        if not vb.sceneBoundingRect().contains(scene_pos):
            return None
        return vb.mapSceneToView(scene_pos).x()

    def _on_mouse_moved(self, pos):
        x = self._scene_to_x(pos)
        if x is not None:
            self.hovered.emit(x)

    def _on_mouse_clicked(self, event):
        if event.button() != Qt.MouseButton.LeftButton:
            return
        x = self._scene_to_x(event.scenePos())
        if x is not None:
            self.clicked.emit(x)

    def _on_x_range_changed(self, _vb, x_range):
        if self._applying_range:
            return
        low, high = x_range
        self.x_range_changed.emit(float(low), float(high))

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:
        """Translate pinch gestures on the plot viewport into pinched signals."""
        if event.type() == QEvent.Type.Gesture:
            pinch = event.gesture(Qt.GestureType.PinchGesture)
            if pinch is not None:
                self._handle_pinch(pinch)
                event.accept(pinch)
                return True
        return super().eventFilter(watched, event)

    def _handle_pinch(self, pinch):
        # scaleFactor() is the finger distance ratio since the previous frame
        scale = pinch.scaleFactor()
        if scale <= 0:
            return
        local = self.plot_widget.viewport().mapFromGlobal(pinch.centerPoint().toPoint())
        scene_pos = self.plot_widget.mapToScene(local)
        midpoint = self.plot_item.vb.mapSceneToView(QPointF(scene_pos)).x()
        self.pinched.emit(1.0, float(scale), float(midpoint))

    def set_x_range(self, low: float, high: float):
        """Show [low, high] without emitting x_range_changed."""
        self._applying_range = True
        try:
            self.plot_item.setXRange(low, high, padding=0)
        finally:
            self._applying_range = False

    def set_marker(self, x: Optional[float]):
        """Move the marker line, or hide it when x is None."""
        if x is None:
            self.marker_line.setVisible(False)
            return
        self.marker_line.setPos(x)
        self.marker_line.setVisible(True)


class PlotChartHandle(ChartHandle):
    """ChartHandle backed by a ChannelPlotWidget."""

    def __init__(
        self,
        series: ChannelSeries,
        color: str = COLORS[0],
        plot_height: int = 220,
        parent: Optional[QWidget] = None
    ):
        super().__init__(series.channel)
        self.widget = ChannelPlotWidget(series, color, plot_height, parent)
        self.widget.hovered.connect(self._on_hovered)
        self.widget.clicked.connect(self._on_clicked)
        self.widget.x_range_changed.connect(self._on_x_range_changed)
        self.widget.pinched.connect(self._on_pinched)

    def _on_hovered(self, x: float):
        self.emit(Hover(self.channel, x))

    def _on_clicked(self, x: float):
        self.emit(Click(self.channel, x))

    def _on_x_range_changed(self, low: float, high: float):
        self.emit(ViewportChanged(self.channel, low, high))

    def _on_pinched(self, previous_distance: float, distance: float, midpoint: float):
        self.emit(PinchGesture(self.channel, previous_distance, distance, midpoint))

    def _apply_viewport(self, viewport: Viewport) -> None:
        self.widget.set_x_range(viewport.low, viewport.high)

    def _apply_marker(self, x: Optional[float]) -> None:
        self.widget.set_marker(x)

    def _dispose(self) -> None:
        self.widget.setParent(None)
        self.widget.deleteLater()


class MarkerPanel(QFrame):
    """Readout of every charted channel's value at the marker sample."""

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.setStyleSheet("""
            QFrame {
                background-color: rgba(40, 40, 40, 200);
                border: 1px solid #555;
                border-radius: 4px;
                padding: 4px;
            }
            QLabel {
                color: white;
                font-family: monospace;
                font-size: 11px;
            }
        """)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 4, 6, 4)

        self.text_label = QLabel("")
        self.text_label.setFont(QFont("monospace", 10))
        self.text_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        layout.addWidget(self.text_label)

        self.setVisible(False)

    def show_readout(self, sample_index: int, rows: Sequence[tuple[str, object]], axis_label: str) -> None:
        self.text_label.setText(render_readout(sample_index, rows, axis_label))
        self.setVisible(True)

    def hide_readout(self) -> None:
        self.text_label.setText("")
        self.setVisible(False)
