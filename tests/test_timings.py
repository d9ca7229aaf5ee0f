"""
Tests for manager milestone and unit timing collection.
"""

import asyncio

import pytest
from conftest import FakeBus, manager_properties, unit_properties

from systemd_timings.collectors.base import CollectorResult
from systemd_timings.collectors.timings import (
    MissingTimestampError,
    UnitTiming,
    collect_manager_timestamps,
    collect_unit_timings,
    compute_run_duration,
    is_boot_finished,
    normalize_timestamp,
)
from systemd_timings.const import MANAGER_TIMESTAMPS
from systemd_timings.utils.busctl import BusError
from systemd_timings.utils.decode import UINT64_MAX


def manager_records(result: CollectorResult) -> dict[str, int]:
    return {
        m.tags["SystemTimestamp"]: m.fields["SystemTimestampValue"]
        for m in result.metrics
        if "SystemTimestamp" in m.tags
    }


def unit_records(result: CollectorResult) -> dict[str, dict[str, int]]:
    return {m.tags["UnitName"]: m.fields for m in result.metrics if "UnitName" in m.tags}


# Run duration


@pytest.mark.parametrize(
    "activating, activated, deactivated, expected",
    [
        (500, 4500, 0, 4000),  # activated
        (100, 100, 0, 0),  # instant
        (3000, 0, 7000, 4000),  # failed before becoming active
        (3000, 0, 0, 0),  # still activating
        (0, 0, 0, 0),  # never ran
    ],
)
def test_compute_run_duration(activating: int, activated: int, deactivated: int, expected: int) -> None:
    assert compute_run_duration(activating, activated, deactivated) == expected


def test_normalize_keeps_zero() -> None:
    assert normalize_timestamp(0, 500) == 0
    assert normalize_timestamp(1000, 500) == 500


def test_normalize_wraps_before_userspace() -> None:
    assert normalize_timestamp(100, 500) == UINT64_MAX - 399
    assert normalize_timestamp(500, 500) == 0


def test_unit_activating_before_userspace_is_suppressed() -> None:
    bus = FakeBus(units={"initrd-thing.service": unit_properties(100, 600, 0, 0)})
    result = CollectorResult()

    recorded = asyncio.run(
        collect_unit_timings(bus, ["*.service"], {"UserspaceTimestampMonotonic": 500}, result)
    )

    assert recorded == []
    assert unit_records(result) == {}
    assert result.errors == []


def test_unit_timing_scenario() -> None:
    timing = UnitTiming.from_raw("ssh.service", [1000, 5000, 0, 0], userspace_start=500)

    assert timing.activating == 500
    assert timing.activated == 4500
    assert timing.deactivating == 0
    assert timing.deactivated == 0
    assert timing.run_duration == 4000
    assert timing.should_report


def test_idle_unit_not_reported_but_target_is() -> None:
    assert not UnitTiming.from_raw("idle.service", [0, 0, 0, 0], 500).should_report
    assert UnitTiming.from_raw("basic.target", [0, 0, 0, 0], 500).should_report


# Boot readiness


def test_boot_finished() -> None:
    bus = FakeBus(manager_properties(FinishTimestampMonotonic=9_000_000))

    assert asyncio.run(is_boot_finished(bus.connection)) is True
    assert bus.opened == bus.closed == 1


def test_boot_not_finished_when_finish_is_zero() -> None:
    bus = FakeBus(manager_properties(FinishTimestampMonotonic=0))

    assert asyncio.run(is_boot_finished(bus.connection)) is False
    assert bus.closed == 1


def test_boot_not_finished_on_any_failure() -> None:
    unreachable = FakeBus()
    unreachable.connect_error = BusError("no bus")
    assert asyncio.run(is_boot_finished(unreachable.connection)) is False

    unreadable = FakeBus(manager={})
    assert asyncio.run(is_boot_finished(unreadable.connection)) is False

    garbage = FakeBus({"FinishTimestampMonotonic": "t garbage"})
    assert asyncio.run(is_boot_finished(garbage.connection)) is False

    shapeless = FakeBus({"FinishTimestampMonotonic": "12"})
    assert asyncio.run(is_boot_finished(shapeless.connection)) is False


# Manager milestones


def test_manager_emits_only_non_zero(booted_bus: FakeBus) -> None:
    result = CollectorResult()
    timestamps = asyncio.run(collect_manager_timestamps(booted_bus, result))

    assert set(timestamps) == set(MANAGER_TIMESTAMPS)
    assert timestamps["FirmwareTimestampMonotonic"] == 0
    assert manager_records(result) == {
        "InitRDTimestampMonotonic": 1_200_000,
        "UserspaceTimestampMonotonic": 500,
        "FinishTimestampMonotonic": 9_000_000,
    }
    assert result.errors == []


def test_manager_partial_failure_is_tolerated() -> None:
    props = manager_properties(UserspaceTimestampMonotonic=500, FinishTimestampMonotonic=900)
    del props["LoaderTimestampMonotonic"]
    props["SecurityStartTimestampMonotonic"] = "t bogus"
    bus = FakeBus(props)

    result = CollectorResult()
    timestamps = asyncio.run(collect_manager_timestamps(bus, result))

    assert timestamps["LoaderTimestampMonotonic"] is None
    assert timestamps["SecurityStartTimestampMonotonic"] is None
    assert len(result.errors) == 2
    assert manager_records(result) == {
        "UserspaceTimestampMonotonic": 500,
        "FinishTimestampMonotonic": 900,
    }


def test_manager_collection_is_idempotent(booted_bus: FakeBus) -> None:
    first = asyncio.run(collect_manager_timestamps(booted_bus, CollectorResult()))
    second = asyncio.run(collect_manager_timestamps(booted_bus, CollectorResult()))

    assert first == second


# Unit timings


def test_unit_timings(booted_bus: FakeBus) -> None:
    result = CollectorResult()
    timestamps = asyncio.run(collect_manager_timestamps(booted_bus, CollectorResult()))
    recorded = asyncio.run(
        collect_unit_timings(booted_bus, ["*.service", "*.target"], timestamps, result)
    )

    assert [t.name for t in recorded] == ["ssh.service", "multi-user.target"]
    assert unit_records(result) == {
        "ssh.service": {
            "ActivatingTimestamp": 500,
            "ActivatedTimestamp": 4500,
            "DeactivatingTimestamp": 0,
            "DeactivatedTimestamp": 0,
            "RunDuration": 4000,
        },
        "multi-user.target": {
            "ActivatingTimestamp": 7500,
            "ActivatedTimestamp": 7500,
            "DeactivatingTimestamp": 0,
            "DeactivatedTimestamp": 0,
            "RunDuration": 0,
        },
    }


def test_unit_patterns_are_passed_through(booted_bus: FakeBus) -> None:
    timestamps = {"UserspaceTimestampMonotonic": 500}
    result = CollectorResult()
    asyncio.run(collect_unit_timings(booted_bus, ["ssh.*"], timestamps, result))

    assert booted_bus.listed_patterns == [["ssh.*"]]
    assert list(unit_records(result)) == ["ssh.service"]


def test_one_failing_unit_does_not_abort_batch() -> None:
    units = {f"unit{i}.service": unit_properties(1000 + i, 2000 + i) for i in range(10)}
    del units["unit3.service"]["ActiveExitTimestampMonotonic"]
    bus = FakeBus(units=units)

    result = CollectorResult()
    asyncio.run(
        collect_unit_timings(bus, ["*.service"], {"UserspaceTimestampMonotonic": 500}, result)
    )

    assert len(unit_records(result)) == 9
    assert "unit3.service" not in unit_records(result)
    assert len(result.errors) == 1
    assert "unit3.service" in result.errors[0]


def test_missing_userspace_reference_is_fatal(booted_bus: FakeBus) -> None:
    for timestamps in ({}, {"UserspaceTimestampMonotonic": None}):
        with pytest.raises(MissingTimestampError):
            asyncio.run(
                collect_unit_timings(booted_bus, ["*.service"], timestamps, CollectorResult())
            )


def test_enumeration_failure_is_fatal(booted_bus: FakeBus) -> None:
    booted_bus.list_error = BusError("access denied")

    with pytest.raises(BusError):
        asyncio.run(
            collect_unit_timings(
                booted_bus,
                ["*.service"],
                {"UserspaceTimestampMonotonic": 500},
                CollectorResult(),
            )
        )
