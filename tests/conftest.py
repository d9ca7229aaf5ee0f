"""
Pytest configuration and fixtures.
"""

import fnmatch
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from pathlib import Path

import pytest

from systemd_timings.const import MANAGER_TIMESTAMPS, UNIT_TIMESTAMPS
from systemd_timings.utils.busctl import BusError


EXAMPLE_CONFIG = Path(__file__).parent.parent / "config.example.conf"


def manager_properties(**values: int) -> dict[str, str]:
    """All manager milestones rendered by busctl, zero unless given."""
    props = {name: "t 0" for name in MANAGER_TIMESTAMPS}
    for name, value in values.items():
        props[name] = f"t {value}"
    return props


def unit_properties(
    activating: int = 0,
    activated: int = 0,
    deactivating: int = 0,
    deactivated: int = 0,
) -> dict[str, str]:
    """Unit lifecycle properties rendered by busctl."""
    values = (activating, activated, deactivating, deactivated)
    return {name: f"t {value}" for name, value in zip(UNIT_TIMESTAMPS, values)}


class FakeBus:
    """In-memory stand-in for SystemdBus."""

    def __init__(
        self,
        manager: dict[str, str] | None = None,
        units: dict[str, dict[str, str]] | None = None,
    ):
        self.manager = manager if manager is not None else manager_properties()
        self.units = units or {}
        self.connect_error: BusError | None = None
        self.list_error: BusError | None = None
        self.opened = 0
        self.closed = 0
        self.listed_patterns: list[list[str]] = []

    async def get_manager_property(self, name: str) -> str:
        if name not in self.manager:
            raise BusError(f"Unknown property {name}")
        return self.manager[name]

    async def get_unit_property(self, unit: str, name: str) -> str:
        try:
            return self.units[unit][name]
        except KeyError:
            raise BusError(f"Unknown property {name} of {unit}") from None

    async def list_units_by_patterns(self, patterns: Sequence[str]) -> list[str]:
        self.listed_patterns.append(list(patterns))
        if self.list_error:
            raise self.list_error
        return [
            unit
            for unit in self.units
            if not patterns or any(fnmatch.fnmatch(unit, p) for p in patterns)
        ]

    @asynccontextmanager
    async def connection(self) -> AsyncIterator["FakeBus"]:
        """Bus factory; counts opened and closed connections."""
        if self.connect_error:
            raise self.connect_error
        self.opened += 1
        try:
            yield self
        finally:
            self.closed += 1


@pytest.fixture
def booted_bus() -> FakeBus:
    """A finished boot with a service, an idle service and a target."""
    return FakeBus(
        manager=manager_properties(
            FirmwareTimestampMonotonic=0,
            InitRDTimestampMonotonic=1_200_000,
            UserspaceTimestampMonotonic=500,
            FinishTimestampMonotonic=9_000_000,
        ),
        units={
            "ssh.service": unit_properties(1000, 5000, 0, 0),
            "idle.service": unit_properties(0, 0, 0, 0),
            "multi-user.target": unit_properties(8000, 8000, 0, 0),
        },
    )


@pytest.fixture
def example_config_path() -> Path:
    return EXAMPLE_CONFIG
