"""Recurring-class scheduling and materialization backend."""

__version__ = "0.1.0"
