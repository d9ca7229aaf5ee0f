"""
InfluxDB line protocol output.
"""

import sys
from collections.abc import Iterable
from typing import TextIO

from ..models.metric import Metric


class LineProtocolWriter:
    """Writes metric records as line protocol to a text stream."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stdout
        self.written = 0

    def write(self, metrics: Iterable[Metric]) -> int:
        """
        Write records, one per line, and flush.

        Returns:
            Number of lines written
        """
        count = 0
        for metric in metrics:
            self.stream.write(metric.to_line_protocol() + "\n")
            count += 1

        self.stream.flush()
        self.written += count
        return count
