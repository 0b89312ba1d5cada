"""License attribution reports for dependency graphs."""

__version__ = "0.1.0"
