"""
Core module for Engine Log Viewer application.
Contains data models, ingestion, column classification and chart synchronization.
"""

from .models import (
    ChannelEntry,
    HeaderDescriptor,
    LogData,
    MarkerState,
    RecordSet,
    Viewport,
    XAxisDescriptor,
    XAxisKind,
)
from .errors import (
    ConfigError,
    EmptyOrMalformed,
    FileUnreadable,
    LogViewerError,
    NoChannelsSelected,
)
from .config import ViewerConfig, load_config
from .ingest import (
    FileReader,
    build_x_axis,
    coerce_channel,
    detect_delimiter,
    detect_time_column,
    infer_x_axis,
    parse_text,
    split_line,
)
from .classifier import (
    ALIAS_RULES,
    AliasRule,
    classify_headers,
    compact,
    describe_header,
)
from .session import ChannelSeries, LoadGuard, Session
from .sync import (
    ChartEvent,
    ChartHandle,
    ChartSet,
    Click,
    Hover,
    PinchGesture,
    Reset,
    SingleFlight,
    SyncCoordinator,
    ViewportChanged,
)
from .readout import format_value, render_readout

__all__ = [
    # Models
    "ChannelEntry",
    "HeaderDescriptor",
    "LogData",
    "MarkerState",
    "RecordSet",
    "Viewport",
    "XAxisDescriptor",
    "XAxisKind",
    # Errors
    "ConfigError",
    "EmptyOrMalformed",
    "FileUnreadable",
    "LogViewerError",
    "NoChannelsSelected",
    # Config
    "ViewerConfig",
    "load_config",
    # Ingest
    "FileReader",
    "build_x_axis",
    "coerce_channel",
    "detect_delimiter",
    "detect_time_column",
    "infer_x_axis",
    "parse_text",
    "split_line",
    # Classifier
    "ALIAS_RULES",
    "AliasRule",
    "classify_headers",
    "compact",
    "describe_header",
    # Session
    "ChannelSeries",
    "LoadGuard",
    "Session",
    # Sync
    "ChartEvent",
    "ChartHandle",
    "ChartSet",
    "Click",
    "Hover",
    "PinchGesture",
    "Reset",
    "SingleFlight",
    "SyncCoordinator",
    "ViewportChanged",
    # Readout
    "format_value",
    "render_readout",
]
