"""
Data models for metric records.
"""

from .metric import Metric

__all__ = [
    "Metric",
]
