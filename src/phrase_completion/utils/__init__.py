"""Utility modules for phrase completion."""

from .clock import Clock, now_ms

__all__ = [
    "Clock",
    "now_ms",
]
