"""Sleep tracker presentation-layer state holders."""

__version__ = "0.1.0"
