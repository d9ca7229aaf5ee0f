"""
Systemd boot and unit timing collector.

Reads the manager's boot milestone timestamps and the activation
timestamps of units matching a set of glob patterns. All values are
monotonic microseconds; unit timestamps are reported relative to the
moment userspace started.

Collects:
- One record per non-zero boot milestone (tag SystemTimestamp)
- One record per unit that ran, and per target (tag UnitName)
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from ..config.schema import TimingsConfig
from ..const import (
    FIELD_ACTIVATED,
    FIELD_ACTIVATING,
    FIELD_DEACTIVATED,
    FIELD_DEACTIVATING,
    FIELD_RUN_DURATION,
    FIELD_SYSTEM_TIMESTAMP_VALUE,
    FINISH_TIMESTAMP,
    MANAGER_TIMESTAMPS,
    TAG_SYSTEM_TIMESTAMP,
    TAG_UNIT_NAME,
    TARGET_SUFFIX,
    UNIT_TIMESTAMPS,
    USERSPACE_TIMESTAMP,
)
from ..logging import get_logger
from ..utils.busctl import BusError, BusFactory, SystemdBus, open_system_bus
from ..utils.decode import UINT64_MAX, decode_uint64
from .base import Collector, CollectorResult


logger = get_logger("collectors.timings")

# Milestone name -> microseconds, None when it could not be read
ManagerTimestamps = dict[str, int | None]

# Failures that only affect a single property or unit
PROPERTY_ERRORS = (BusError, ValueError, IndexError)

UINT64_MODULUS = UINT64_MAX + 1


class MissingTimestampError(Exception):
    """Raised when a required manager milestone is unavailable."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name} not available, cannot compute unit timestamps")


# Failures that abort the rest of a pass
PASS_ERRORS = (BusError, MissingTimestampError)


def normalize_timestamp(value: int, reference: int) -> int:
    """
    Offset a timestamp by the userspace start reference.

    Zero means the phase never happened and stays zero. The subtraction is
    unsigned 64-bit: timestamps taken before userspace started (initrd
    units) wrap around to huge values, which yields a zero run duration.
    """
    if value == 0:
        return 0
    return (value - reference) % UINT64_MODULUS


def compute_run_duration(activating: int, activated: int, deactivated: int) -> int:
    """Time from activation start until the unit became active, or inactive again."""
    if activated >= activating:
        return activated - activating
    if deactivated >= activating:
        return deactivated - activating
    return 0


@dataclass
class UnitTiming:
    """Lifecycle timestamps of a unit relative to userspace start."""

    name: str
    activating: int
    activated: int
    deactivating: int
    deactivated: int
    run_duration: int

    @classmethod
    def from_raw(cls, name: str, raw: Sequence[int], userspace_start: int) -> "UnitTiming":
        """
        Build from raw monotonic timestamps.

        Args:
            name: Unit name
            raw: Timestamps in UNIT_TIMESTAMPS order
            userspace_start: UserspaceTimestampMonotonic of the manager
        """
        activating, activated, deactivating, deactivated = (
            normalize_timestamp(value, userspace_start) for value in raw
        )
        return cls(
            name=name,
            activating=activating,
            activated=activated,
            deactivating=deactivating,
            deactivated=deactivated,
            run_duration=compute_run_duration(activating, activated, deactivated),
        )

    @property
    def is_target(self) -> bool:
        return self.name.endswith(TARGET_SUFFIX)

    @property
    def should_report(self) -> bool:
        """Units that never ran are skipped; targets are synchronization points and always kept."""
        return self.run_duration != 0 or self.is_target

    def to_fields(self) -> dict[str, int]:
        return {
            FIELD_ACTIVATING: self.activating,
            FIELD_ACTIVATED: self.activated,
            FIELD_DEACTIVATING: self.deactivating,
            FIELD_DEACTIVATED: self.deactivated,
            FIELD_RUN_DURATION: self.run_duration,
        }


async def is_boot_finished(bus_factory: BusFactory = open_system_bus) -> bool:
    """
    Check whether systemd has finished starting up.

    FinishTimestampMonotonic stays zero until the boot transaction is
    complete. Any failure (no bus, unreadable or undecodable property)
    is treated as "not finished yet" and never raised: the caller simply
    tries again on its next tick.
    """
    try:
        async with bus_factory() as bus:
            raw = await bus.get_manager_property(FINISH_TIMESTAMP)
        return decode_uint64(raw) != 0
    except Exception as e:
        logger.debug(f"Boot readiness unknown: {e}")
        return False


async def collect_manager_timestamps(bus: SystemdBus, result: CollectorResult) -> ManagerTimestamps:
    """
    Read all manager milestones and record the non-zero ones.

    A property that cannot be read or decoded is reported on the result
    and kept as None; the remaining milestones are still collected.

    Returns:
        Every milestone in MANAGER_TIMESTAMPS mapped to its value or None
    """
    timestamps: ManagerTimestamps = {}

    for name in MANAGER_TIMESTAMPS:
        try:
            value = decode_uint64(await bus.get_manager_property(name))
        except PROPERTY_ERRORS as e:
            timestamps[name] = None
            result.add_error(f"Manager property {name}: {e}")
            continue

        timestamps[name] = value

        # Zero marks a boot phase that did not happen on this system
        if value:
            result.add_metric(
                tags={TAG_SYSTEM_TIMESTAMP: name},
                fields={FIELD_SYSTEM_TIMESTAMP_VALUE: value},
            )

    return timestamps


async def read_unit_timing(bus: SystemdBus, unit: str, userspace_start: int) -> UnitTiming:
    """
    Read the lifecycle timestamps of one unit.

    Raises:
        BusError: If a property cannot be read
        ValueError, IndexError: If a property cannot be decoded
    """
    raw = [decode_uint64(await bus.get_unit_property(unit, prop)) for prop in UNIT_TIMESTAMPS]
    return UnitTiming.from_raw(unit, raw, userspace_start)


async def collect_unit_timings(
    bus: SystemdBus,
    patterns: Sequence[str],
    timestamps: ManagerTimestamps,
    result: CollectorResult,
) -> list[UnitTiming]:
    """
    Collect timing records for every unit matching the patterns.

    Args:
        bus: Open bus connection
        patterns: Unit name globs
        timestamps: Milestones from collect_manager_timestamps() of this pass
        result: Result receiving metrics and per-unit errors

    Returns:
        Timings of the units that were recorded

    Raises:
        BusError: If units cannot be listed
        MissingTimestampError: If the userspace start reference is unknown
    """
    units = await bus.list_units_by_patterns(patterns)

    userspace_start = timestamps.get(USERSPACE_TIMESTAMP)
    if userspace_start is None:
        raise MissingTimestampError(USERSPACE_TIMESTAMP)

    recorded: list[UnitTiming] = []
    for unit in units:
        try:
            timing = await read_unit_timing(bus, unit, userspace_start)
        except PROPERTY_ERRORS as e:
            result.add_error(f"Unit {unit}: {e}")
            continue

        if not timing.should_report:
            continue

        result.add_metric(tags={TAG_UNIT_NAME: unit}, fields=timing.to_fields())
        recorded.append(timing)

    logger.debug(f"Recorded {len(recorded)} of {len(units)} units matching {list(patterns)}")
    return recorded


class SystemdTimingsCollector(Collector):
    """
    Collector for systemd boot and unit timings.

    Nothing is collected until boot has finished. Boot metrics do not
    change afterwards, so unless `periodic` is set, collection stops for
    good after the first fully successful pass.
    """

    def __init__(
        self,
        config: TimingsConfig,
        bus_factory: BusFactory = open_system_bus,
    ):
        """
        Initialize timings collector.

        Args:
            config: Timings configuration
            bus_factory: Opens a bus connection (async context manager)
        """
        super().__init__(name="timings", update_interval=config.interval)

        self.config = config
        self._bus_factory = bus_factory
        self._collection_done = False
        self._lock = asyncio.Lock()

    @property
    def collection_done(self) -> bool:
        """Whether a pass has completed successfully."""
        return self._collection_done

    async def collect(self) -> CollectorResult:
        """
        Run one pass: readiness check, manager milestones, unit timings.

        A bus or missing-reference failure marks the result as failed
        without losing the records read so far; the pass is then retried
        on the next tick.
        """
        async with self._lock:
            result = CollectorResult()

            if not await is_boot_finished(self._bus_factory):
                self.logger.debug("Boot not finished, will retry")
                result.set_state("waiting")
                return result

            if not self.config.periodic and self._collection_done:
                result.set_state("done")
                return result

            # Records gathered before a pass error are kept and published
            try:
                async with self._bus_factory() as bus:
                    timestamps = await collect_manager_timestamps(bus, result)
                    await collect_unit_timings(bus, self.config.patterns, timestamps, result)
            except PASS_ERRORS as e:
                self.logger.error(f"Collection pass failed, will retry: {e}")
                result.set_error(str(e))
                return result

            self._collection_done = True
            self.logger.info(
                f"Collected {len(result.metrics)} records ({len(result.errors)} errors)"
            )
            return result
