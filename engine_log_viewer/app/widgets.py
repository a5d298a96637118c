"""
Custom widgets for the Engine Log Viewer application.
"""
from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from ..core import ChannelEntry, ChannelSeries, ViewerConfig
from ..plot import PlotChartHandle
from ..plot.plot_widget import COLORS


class ChannelSelector(QWidget):
    """Checkable list of channels, in file order."""

    channels_selected = Signal(list)  # List of channel headers

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self._entries: list[ChannelEntry] = []

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        # Search box
        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Search channels...")
        self.search_edit.textChanged.connect(self._filter_channels)
        layout.addWidget(self.search_edit)

        self.list_widget = QListWidget()
        self.list_widget.setSelectionMode(QListWidget.SelectionMode.NoSelection)
        self.list_widget.itemChanged.connect(self._on_item_changed)
        layout.addWidget(self.list_widget)

        # Quick actions
        actions_layout = QHBoxLayout()
        self.select_all_btn = QPushButton("Select All")
        self.select_all_btn.clicked.connect(self._select_all)
        actions_layout.addWidget(self.select_all_btn)

        self.clear_btn = QPushButton("Clear")
        self.clear_btn.clicked.connect(self._clear_selection)
        actions_layout.addWidget(self.clear_btn)

        layout.addLayout(actions_layout)
        self.setEnabled(False)

    def set_channels(self, entries: list[ChannelEntry], selected: list[str]) -> None:
        """Replace the channel list; `selected` headers start checked."""
        self._entries = list(entries)
        checked = set(selected)

        self.list_widget.blockSignals(True)
        self.list_widget.clear()
        for entry in self._entries:
            label = entry.display_name
            if entry.display_name != entry.header:
                label = f"{entry.display_name}  ({entry.header})"
            item = QListWidgetItem(label)
            item.setData(Qt.ItemDataRole.UserRole, entry.header)
            item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
            item.setCheckState(
                Qt.CheckState.Checked if entry.header in checked else Qt.CheckState.Unchecked
            )
            self.list_widget.addItem(item)
        self.list_widget.blockSignals(False)

        self._filter_channels(self.search_edit.text())
        self.setEnabled(bool(self._entries))

    def get_selected_channels(self) -> list[str]:
        """Checked channel headers, in file order."""
        selected = []
        for i in range(self.list_widget.count()):
            item = self.list_widget.item(i)
            if item.checkState() == Qt.CheckState.Checked:
                selected.append(item.data(Qt.ItemDataRole.UserRole))
        return selected

    def _filter_channels(self, text: str):
        """Hide channels not matching the search text."""
        text = text.lower()
        for i in range(self.list_widget.count()):
            item = self.list_widget.item(i)
            header = item.data(Qt.ItemDataRole.UserRole)
            visible = not text or text in item.text().lower() or text in header.lower()
            item.setHidden(not visible)

    def _on_item_changed(self, item: QListWidgetItem):
        self.channels_selected.emit(self.get_selected_channels())

    def _select_all(self):
        """Check all visible channels."""
        self._set_all(Qt.CheckState.Checked)

    def _clear_selection(self):
        """Uncheck all channels."""
        self._set_all(Qt.CheckState.Unchecked, include_hidden=True)

    def _set_all(self, state: Qt.CheckState, include_hidden: bool = False):
        self.list_widget.blockSignals(True)
        for i in range(self.list_widget.count()):
            item = self.list_widget.item(i)
            if include_hidden or not item.isHidden():
                item.setCheckState(state)
        self.list_widget.blockSignals(False)
        self.channels_selected.emit(self.get_selected_channels())


class PlotContainer(QScrollArea):
    """Vertical stack of per-channel plots; builds chart handles on request."""

    def __init__(self, config: ViewerConfig, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.config = config
        self._color_index = 0

        self.setWidgetResizable(True)
        self._content = QWidget()
        self._layout = QVBoxLayout(self._content)
        self._layout.setContentsMargins(0, 0, 0, 0)
        self._layout.setSpacing(4)
        self._layout.addStretch()
        self.setWidget(self._content)

    def create_handle(self, series: ChannelSeries) -> PlotChartHandle:
        """Chart handle factory for the SyncCoordinator."""
        color = COLORS[self._color_index % len(COLORS)]
        self._color_index += 1
        handle = PlotChartHandle(series, color, self.config.plot_height, self._content)
        # Keep the stretch as the last item
        self._layout.insertWidget(self._layout.count() - 1, handle.widget)
        return handle

    def reset_colors(self) -> None:
        """Start the next build from the first palette color."""
        self._color_index = 0
