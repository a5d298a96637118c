"""
Plot module for Engine Log Viewer application.
Contains the per-channel plot widget, its chart handle and the marker panel.
"""

from .plot_widget import ChannelPlotWidget, MarkerPanel, PlotChartHandle
from .timers import QtScheduler

__all__ = ["ChannelPlotWidget", "MarkerPanel", "PlotChartHandle", "QtScheduler"]
