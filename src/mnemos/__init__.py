"""mnemos: learning analytics for vocabulary drills."""

__version__ = "0.4.0"
