"""
Main entry point for the Engine Log Viewer application.
"""
import argparse
import logging
import sys
from typing import Optional, Sequence

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import QApplication

from .. import __version__
from ..core import ConfigError, load_config
from ..logging_config import setup_logging
from .main_window import MainWindow

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="engine-log-viewer",
        description="Plot engine-monitoring logs with a synchronized time axis and marker.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("file", nargs="?", help="Log file to open on startup.")
    parser.add_argument("--config", help="JSON file with viewer settings.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console and file log level.",
    )
    parser.add_argument("--log-file", help="Also write log output to this file.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def dark_palette() -> QPalette:
    palette = QPalette()
    palette.setColor(QPalette.ColorRole.Window, QColor(53, 53, 53))
    palette.setColor(QPalette.ColorRole.WindowText, Qt.GlobalColor.white)
    palette.setColor(QPalette.ColorRole.Base, QColor(25, 25, 25))
    palette.setColor(QPalette.ColorRole.AlternateBase, QColor(53, 53, 53))
    palette.setColor(QPalette.ColorRole.ToolTipBase, Qt.GlobalColor.white)
    palette.setColor(QPalette.ColorRole.ToolTipText, Qt.GlobalColor.white)
    palette.setColor(QPalette.ColorRole.Text, Qt.GlobalColor.white)
    palette.setColor(QPalette.ColorRole.Button, QColor(53, 53, 53))
    palette.setColor(QPalette.ColorRole.ButtonText, Qt.GlobalColor.white)
    palette.setColor(QPalette.ColorRole.BrightText, Qt.GlobalColor.red)
    palette.setColor(QPalette.ColorRole.Link, QColor(42, 130, 218))
    palette.setColor(QPalette.ColorRole.Highlight, QColor(42, 130, 218))
    palette.setColor(QPalette.ColorRole.HighlightedText, Qt.GlobalColor.black)
    return palette


def main(argv: Optional[Sequence[str]] = None):
    """Run the Engine Log Viewer application."""
    args = build_parser().parse_args(argv)

    setup_logging(getattr(logging, args.log_level), args.log_file)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"engine-log-viewer: {e}", file=sys.stderr)
        sys.exit(2)

    # Enable high DPI scaling
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv[:1])

    # Set application metadata
    app.setApplicationName("Engine Log Viewer")
    app.setOrganizationName("EngineLogViewer")
    app.setApplicationVersion(__version__)

    # Apply dark style
    app.setStyle("Fusion")
    app.setPalette(dark_palette())

    window = MainWindow(config)
    window.show()

    if args.file:
        window.open_file(args.file)

    logger.info("Engine Log Viewer %s started", __version__)
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
