"""Fitout Portal - apartment fit-out selections for developers and buyers."""

__version__ = "1.0.0"
