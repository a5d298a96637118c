"""
Engine Log Viewer: synchronized per-channel charts for engine-monitoring logs.
"""

__version__ = "1.0.0"
