"""
Metric record model.

A metric is a measurement name, a tag set identifying the source and a
set of integer fields, stamped with the time it was collected.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..const import MEASUREMENT


@dataclass
class Metric:
    """A single metric record."""

    tags: dict[str, str]
    fields: dict[str, int]
    measurement: str = MEASUREMENT
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def tag_value(self) -> str:
        """Value of the (single) identifying tag."""
        return next(iter(self.tags.values()), "")

    def to_json_dict(self) -> dict[str, Any]:
        """Get the fields for JSON serialization."""
        return dict(self.fields)

    def to_line_protocol(self) -> str:
        """
        Render as an InfluxDB line protocol line.

        Example:
            systemd_timings,UnitName=ssh.service ActivatingTimestamp=10u,... 1700000000000000000
        """
        key = _escape_key(self.measurement, measurement=True)
        for name, value in sorted(self.tags.items()):
            key += f",{_escape_key(name)}={_escape_key(value)}"

        fields = ",".join(f"{_escape_key(name)}={value}u" for name, value in self.fields.items())
        timestamp_ns = int(self.timestamp.timestamp()) * 1_000_000_000 + self.timestamp.microsecond * 1000
        return f"{key} {fields} {timestamp_ns}"

    def __repr__(self) -> str:
        return f"Metric({self.measurement}, {self.tags}, {len(self.fields)} fields)"


def _escape_key(value: str, measurement: bool = False) -> str:
    """Escape line protocol special characters in names and tag values."""
    value = value.replace("\\", "\\\\").replace(",", "\\,").replace(" ", "\\ ")
    if not measurement:
        value = value.replace("=", "\\=")
    return value
