"""powermode - switch power-saving profiles and restore original settings."""

__version__ = "0.1.0"
