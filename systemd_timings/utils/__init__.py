"""
Bus access and value decoding helpers.
"""

from .busctl import BusError, SystemdBus, open_system_bus, unit_object_path
from .decode import ValueDecodeError, decode_uint64

__all__ = [
    "BusError",
    "SystemdBus",
    "open_system_bus",
    "unit_object_path",
    "ValueDecodeError",
    "decode_uint64",
]
