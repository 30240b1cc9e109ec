"""Pivot: a small language for 2-D transformation programs."""

__version__ = "0.1.0"
