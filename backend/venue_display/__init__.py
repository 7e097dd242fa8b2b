"""Venue display engine: scene rotation, milestone celebrations and live trend series."""

__version__ = "0.1.0"
