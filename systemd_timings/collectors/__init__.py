"""
Metric collectors.
"""

from .base import Collector, CollectorResult
from .timings import SystemdTimingsCollector

__all__ = [
    "Collector",
    "CollectorResult",
    "SystemdTimingsCollector",
]
