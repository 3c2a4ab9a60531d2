"""Shorts Slider backend: cached YouTube playlist data for a video slider."""

__version__ = "1.0.1"
