"""Resilient real-time messaging channel for the Macrobius learning platform."""

__version__ = "0.3.0"
