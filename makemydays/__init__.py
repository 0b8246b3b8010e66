"""MakeMyDays experience discovery and booking."""

__version__ = "0.1.0"
