"""Credit default feature building and scoring service."""

__version__ = "0.1.0"
