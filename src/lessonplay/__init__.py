"""Interactive lesson playback engine."""

__version__ = "0.1.0"
