"""Task combinators for cooperative, tick-driven schedulers."""

__version__ = "0.1.0"
