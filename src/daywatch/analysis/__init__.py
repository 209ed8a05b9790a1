"""Presentation of tracked time."""

from daywatch.analysis.reports import ReportGenerator

__all__ = ["ReportGenerator"]
