"""
Tests for the application tick and the command line entry point.
"""

import asyncio
import io
from pathlib import Path

from conftest import FakeBus

from systemd_timings.__main__ import main
from systemd_timings.app import Application
from systemd_timings.config.schema import Config, OutputConfig, TimingsConfig


def test_tick_writes_line_protocol(booted_bus: FakeBus) -> None:
    stream = io.StringIO()
    app = Application(Config(), bus_factory=booted_bus.connection, stream=stream)

    result = asyncio.run(app.tick())

    lines = stream.getvalue().splitlines()
    assert len(lines) == len(result.metrics) == 4
    assert all(line.startswith("systemd_timings,") for line in lines)
    assert any("UnitName=ssh.service" in line for line in lines)


def test_one_shot_tick_writes_nothing_second_time(booted_bus: FakeBus) -> None:
    stream = io.StringIO()
    app = Application(Config(), bus_factory=booted_bus.connection, stream=stream)

    asyncio.run(app.tick())
    written = stream.getvalue()
    asyncio.run(app.tick())

    assert stream.getvalue() == written


def test_stdout_output_disabled(booted_bus: FakeBus) -> None:
    stream = io.StringIO()
    config = Config(timings=TimingsConfig(periodic=True), output=OutputConfig(stdout=False))
    app = Application(config, bus_factory=booted_bus.connection, stream=stream)

    result = asyncio.run(app.run_once())

    assert result.metrics
    assert app.writer is None
    assert stream.getvalue() == ""


def test_main_missing_config_fails(tmp_path: Path) -> None:
    assert main([str(tmp_path / "missing.conf")]) == 1


def test_main_validate(example_config_path: Path, capsys) -> None:
    assert main([str(example_config_path), "--validate", "--no-color"]) == 0
    assert "Configuration is valid" in capsys.readouterr().out


def test_main_validate_bad_config(tmp_path: Path) -> None:
    config = tmp_path / "bad.conf"
    config.write_text("timings {\n")

    assert main([str(config), "--validate"]) == 1


def test_main_sample_config(capsys) -> None:
    assert main(["--sample-config"]) == 0
    assert 'unit_pattern "*.service";' in capsys.readouterr().out
