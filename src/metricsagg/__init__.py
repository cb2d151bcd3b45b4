"""Bucketed summary statistics for delimited time-series files."""

__version__ = "0.1.0"
