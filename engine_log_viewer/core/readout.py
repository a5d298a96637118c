"""
Marker readout text: every selected channel's value at the marker sample.
"""
from __future__ import annotations

import math
from typing import Any, Sequence

MISSING = "-"


def format_value(value: Any) -> str:
    """Format a cell for display; None and NaN show as '-'."""
    if value is None:
        return MISSING
    if isinstance(value, float):
        if math.isnan(value):
            return MISSING
        return f"{value:.4f}".rstrip("0").rstrip(".")
    text = str(value)
    return text if text else MISSING


def render_readout(
    sample_index: int,
    rows: Sequence[tuple[str, Any]],
    axis_label: str
) -> str:
    """
    Render the marker panel text.

    Args:
        sample_index: Row number of the marker
        rows: (display name, value) pairs in chart order
        axis_label: Title of the shared x-axis

    Returns:
        Multi-line text, names padded to a common width
    """
    title = f"{axis_label}  |  sample {sample_index}"

    if not rows:
        return title

    width = max(len(name) for name, _ in rows)
    lines = [title]
    for name, value in rows:
        lines.append(f"{name.ljust(width)}  {format_value(value)}")
    return "\n".join(lines)
