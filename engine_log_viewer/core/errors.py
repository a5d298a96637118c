"""
Exceptions raised by the Engine Log Viewer core.
"""


class LogViewerError(Exception):
    """Base exception for all viewer errors."""

    pass


class FileUnreadable(LogViewerError):
    """Raised when a log file cannot be read from disk or decoded."""

    pass


class EmptyOrMalformed(LogViewerError):
    """Raised when a log has fewer than two non-blank lines or an empty header."""

    pass


class NoChannelsSelected(LogViewerError):
    """Raised when a chart rebuild is requested with no channels selected."""

    pass


class ConfigError(LogViewerError):
    """Raised when a configuration file or value is invalid."""

    pass
