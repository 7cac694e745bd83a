"""Kitchen Defense - turn-based grid defense simulation core."""

__version__ = "0.1.0"
