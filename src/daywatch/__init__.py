"""Daywatch - stopwatch and daily time log."""

__version__ = "0.3.0"
