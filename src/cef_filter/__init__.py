"""Decode ArcSight CEF lines into structured event fields."""

__version__ = "0.1.0"
