"""
App module for Engine Log Viewer application.
Contains Qt UI components, the background loader and the main window.
"""

from .main_window import MainWindow
from .widgets import ChannelSelector, PlotContainer
from .workers import FileLoadWorker

__all__ = [
    "MainWindow",
    "ChannelSelector",
    "PlotContainer",
    "FileLoadWorker",
]
