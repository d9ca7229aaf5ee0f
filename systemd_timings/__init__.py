"""
Systemd Timings - boot and unit activation timing collector.

Reads boot milestone timestamps and per-unit activation timestamps from
the systemd manager over D-Bus and publishes them as metric records.
"""

from .const import APP_VERSION

__version__ = APP_VERSION
