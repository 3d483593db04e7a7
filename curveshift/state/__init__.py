"""
State management for curve transformations
"""

from .curve_store import CurveStateStore

__all__ = [
    "CurveStateStore",
]
