"""
Background file loading.

Reading and parsing runs in a QThread so a large log does not freeze the
window. Each worker carries the load token it was started with; the main
window drops results whose token is stale.
"""
from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QThread, Signal

from ..core import FileReader, LogViewerError

logger = logging.getLogger(__name__)


class FileLoadWorker(QThread):
    loaded = Signal(int, object)  # token, LogData
    failed = Signal(int, str)  # token, message

    def __init__(self, token: int, filepath: Path, reader: FileReader):
        super().__init__()
        self.token = token
        self.filepath = Path(filepath)
        self.reader = reader

    def run(self):
        logger.info("Loading %s (load #%d)", self.filepath, self.token)
        try:
            log = self.reader.read_file(self.filepath)
        except LogViewerError as e:
            logger.error("Failed to load %s: %s", self.filepath, e)
            self.failed.emit(self.token, str(e))
            return
        except Exception as e:
            logger.exception("Unexpected error loading %s", self.filepath)
            self.failed.emit(self.token, f"Unexpected error loading {self.filepath.name}: {e}")
            return
        self.loaded.emit(self.token, log)
