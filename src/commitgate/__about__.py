"""Package metadata."""

__version__ = "1.2.0"
__self__ = "commitgate"
