"""pulseconfig: configuration editing workflow for the Pulse monitoring server."""

__version__ = "0.3.0"
