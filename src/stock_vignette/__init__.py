"""Polygon.io market data vignette: ticker resolution, bars and reference data."""

__version__ = "0.1.0"
