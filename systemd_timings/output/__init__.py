"""
Local outputs for metric records.
"""

from .line_protocol import LineProtocolWriter

__all__ = [
    "LineProtocolWriter",
]
