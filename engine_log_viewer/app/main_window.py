"""
Main Window for the Engine Log Viewer application.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QComboBox,
    QDockWidget,
    QFileDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from ..core import (
    FileReader,
    LoadGuard,
    LogData,
    NoChannelsSelected,
    Reset,
    Session,
    SyncCoordinator,
    ViewerConfig,
    build_x_axis,
)
from ..plot import MarkerPanel, QtScheduler
from .widgets import ChannelSelector, PlotContainer
from .workers import FileLoadWorker

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, config: Optional[ViewerConfig] = None):
        super().__init__()

        self.setWindowTitle("Engine Log Viewer")
        self.setMinimumSize(1000, 700)
        self.resize(1400, 900)

        # Core objects
        self.config = config or ViewerConfig()
        self.file_reader = FileReader(self.config)
        self.load_guard = LoadGuard()
        self.session: Optional[Session] = None
        self._workers: set[FileLoadWorker] = set()
        self._charts_built = False

        self._setup_ui()
        self._setup_menus()
        self._setup_toolbar()

        self.coordinator = SyncCoordinator(
            factory=self.plot_container.create_handle,
            scheduler=QtScheduler(self),
            readout=self.marker_panel,
            config=self.config,
        )

        self._setup_connections()
        self._update_actions()

        self.statusBar().showMessage("Open a log file to begin")

    def _setup_ui(self):
        """Set up the main UI layout."""
        central = QWidget()
        self.setCentralWidget(central)

        center_layout = QVBoxLayout(central)
        center_layout.setContentsMargins(0, 0, 0, 0)
        center_layout.setSpacing(2)

        self.marker_panel = MarkerPanel()
        center_layout.addWidget(self.marker_panel)

        self.plot_container = PlotContainer(self.config)
        center_layout.addWidget(self.plot_container, 1)

        # Right dock: Channel selector
        self.channel_selector = ChannelSelector()
        right_dock = QDockWidget("Channels", self)
        right_dock.setWidget(self.channel_selector)
        right_dock.setFeatures(
            QDockWidget.DockWidgetFeature.DockWidgetMovable |
            QDockWidget.DockWidgetFeature.DockWidgetFloatable
        )
        right_dock.setMinimumWidth(250)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, right_dock)

    def _setup_menus(self):
        """Set up the menu bar."""
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu("&File")

        self.open_action = QAction("Open Log...", self)
        self.open_action.setShortcut(QKeySequence.StandardKey.Open)
        self.open_action.triggered.connect(self.on_open_file)
        file_menu.addAction(self.open_action)

        file_menu.addSeparator()

        exit_action = QAction("Exit", self)
        exit_action.setShortcut(QKeySequence.StandardKey.Quit)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        # View menu
        view_menu = menubar.addMenu("&View")

        self.plot_action = QAction("Plot Selected Channels", self)
        self.plot_action.setShortcut(QKeySequence("Ctrl+P"))
        self.plot_action.triggered.connect(self.on_plot)
        view_menu.addAction(self.plot_action)

        self.reset_action = QAction("Reset Zoom", self)
        self.reset_action.setShortcut(QKeySequence("Ctrl+R"))
        self.reset_action.triggered.connect(self.on_reset)
        view_menu.addAction(self.reset_action)

        # Help menu
        help_menu = menubar.addMenu("&Help")

        about_action = QAction("About", self)
        about_action.triggered.connect(self.on_about)
        help_menu.addAction(about_action)

    def _setup_toolbar(self):
        """Set up the toolbar."""
        toolbar = QToolBar("Main Toolbar")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        toolbar.addAction(self.open_action)
        toolbar.addSeparator()

        toolbar.addWidget(QLabel(" X axis: "))
        self.x_combo = QComboBox()
        self.x_combo.setMinimumWidth(160)
        toolbar.addWidget(self.x_combo)
        toolbar.addSeparator()

        toolbar.addAction(self.plot_action)
        toolbar.addAction(self.reset_action)

    def _setup_connections(self):
        """Set up signal/slot connections."""
        self.channel_selector.channels_selected.connect(self.on_channels_selected)
        self.x_combo.currentTextChanged.connect(self.on_x_column_changed)

    def _update_actions(self):
        has_session = self.session is not None
        self.plot_action.setEnabled(has_session)
        self.reset_action.setEnabled(has_session and self._charts_built)
        self.x_combo.setEnabled(has_session)

    # =========================================================================
    # Loading
    # =========================================================================

    def open_file(self, filepath: Path | str) -> None:
        """Start loading a log file in the background."""
        filepath = Path(filepath)
        token = self.load_guard.begin()

        worker = FileLoadWorker(token, filepath, self.file_reader)
        worker.loaded.connect(self.on_file_loaded)
        worker.failed.connect(self.on_file_load_failed)
        worker.finished.connect(lambda w=worker: self._release_worker(w))
        self._workers.add(worker)

        self.statusBar().showMessage(f"Loading {filepath.name}...")
        worker.start()

    def _release_worker(self, worker: FileLoadWorker):
        self._workers.discard(worker)
        worker.deleteLater()

    def _apply_log(self, log: LogData, selected: Optional[list[str]] = None):
        """Replace the session wholesale with one built from log."""
        session = Session.from_log(log)
        if selected is not None:
            session.selected = [ch for ch in selected if ch in session.channel_names]

        self.session = session
        self.coordinator.load_session(session)
        self.plot_container.reset_colors()
        self._charts_built = False

        self.channel_selector.set_channels(session.channels, session.selected)

        self.x_combo.blockSignals(True)
        self.x_combo.clear()
        self.x_combo.addItems(log.record_set.headers)
        self.x_combo.setCurrentText(log.x_axis.column)
        self.x_combo.blockSignals(False)

        self._update_actions()

    # =========================================================================
    # Slots
    # =========================================================================

    @Slot()
    def on_open_file(self):
        """Pick a log file and load it."""
        filepath, _ = QFileDialog.getOpenFileName(
            self,
            "Open Engine Log",
            "",
            "Log Files (*.csv *.txt *.log);;All Files (*)"
        )
        if filepath:
            self.open_file(filepath)

    @Slot(int, object)
    def on_file_loaded(self, token: int, log: LogData):
        if not self.load_guard.accept(token):
            return

        self._apply_log(log)
        self.statusBar().showMessage(
            f"Loaded {log.source}: {len(log.record_set)} rows, "
            f"{len(self.session.channels)} channels, "
            f"x = {log.x_axis.column} ({log.x_axis.kind.name.lower()})"
        )

    @Slot(int, str)
    def on_file_load_failed(self, token: int, message: str):
        if not self.load_guard.accept(token):
            return
        self.statusBar().showMessage("Load failed")
        QMessageBox.warning(self, "Load Error", message)

    @Slot(str)
    def on_x_column_changed(self, column: str):
        """Rebuild the session around a different x column."""
        if self.session is None or not column or column == self.session.x_axis.column:
            return

        log = self.session.log
        x_axis = build_x_axis(log.record_set, column, self.config)
        logger.info("X column changed to %s (%s)", column, x_axis.kind.name.lower())
        was_built = self._charts_built
        selected = [ch for ch in self.session.selected if ch != column]
        self._apply_log(LogData(log.source, log.record_set, x_axis), selected)
        self.statusBar().showMessage(f"X axis: {column} ({x_axis.kind.name.lower()})")

        if was_built and selected:
            self._build_charts(selected)

    @Slot()
    def on_plot(self):
        """Build charts for the checked channels."""
        if self.session is None:
            return
        try:
            self._build_charts(self.channel_selector.get_selected_channels())
        except NoChannelsSelected as e:
            QMessageBox.information(self, "No Channels Selected", str(e))

    @Slot(list)
    def on_channels_selected(self, channels: list):
        """Rebuild existing charts when the selection changes."""
        if self.session is None or not self._charts_built:
            return
        try:
            self._build_charts(channels)
        except NoChannelsSelected as e:
            self.statusBar().showMessage(str(e))

    @Slot()
    def on_reset(self):
        if self.session is not None and self._charts_built:
            self.coordinator.dispatch(Reset())
            self.statusBar().showMessage("Zoom reset")

    @Slot()
    def on_about(self):
        QMessageBox.about(
            self,
            "About Engine Log Viewer",
            "Engine Log Viewer\n\n"
            "One chart per channel of an engine-monitoring log, with a shared "
            "time axis and a synchronized marker readout."
        )

    def _build_charts(self, channels: list[str]):
        self.plot_container.reset_colors()
        charts = self.coordinator.rebuild(channels)
        self._charts_built = True
        self._update_actions()
        self.statusBar().showMessage(f"Plotted {len(charts)} channel(s)")
