"""Command-line interface for Daywatch."""
