"""Native library build orchestration: per-platform cargo builds staged for packaging."""

__version__ = "0.1.0"
