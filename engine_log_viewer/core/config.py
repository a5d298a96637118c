"""
Viewer configuration: inference thresholds, debounce delay and layout sizes.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class ViewerConfig:
    """Tunable settings for ingestion and chart synchronization."""
    delimiter_sample_lines: int = 5
    numeric_threshold: float = 0.85
    calendar_threshold: float = 0.75
    marker_debounce_ms: int = 30
    categorical_tick_count: int = 10
    default_window: Optional[float] = None  # Reset window width, None = full domain
    plot_height: int = 220

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Check value ranges, raising ConfigError on the first bad value."""
        if self.delimiter_sample_lines < 1:
            raise ConfigError("delimiter_sample_lines must be at least 1")
        for name in ("numeric_threshold", "calendar_threshold"):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ConfigError(f"{name} must be in (0, 1], got {value}")
        if self.marker_debounce_ms < 0:
            raise ConfigError("marker_debounce_ms must not be negative")
        if self.categorical_tick_count < 2:
            raise ConfigError("categorical_tick_count must be at least 2")
        if self.default_window is not None and self.default_window <= 0:
            raise ConfigError("default_window must be positive when set")
        if self.plot_height < 50:
            raise ConfigError("plot_height must be at least 50")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ViewerConfig:
        """Deserialize from dictionary, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        try:
            return cls(**data)
        except TypeError as e:
            raise ConfigError(str(e)) from e


def load_config(path: Optional[Path | str] = None) -> ViewerConfig:
    """
    Load a JSON config file.

    Args:
        path: Path to a JSON object with ViewerConfig keys. None returns defaults.

    Returns:
        ViewerConfig instance
    """
    if path is None:
        return ViewerConfig()

    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a JSON object")

    config = ViewerConfig.from_dict(data)
    logger.info("Loaded config from %s", path)
    return config
