"""Call sheet contact extraction engine."""

__version__ = "0.1.0"
