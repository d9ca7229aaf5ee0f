"""
Tests for MQTT configuration retain behavior.
"""

from systemd_timings.config.loader import ConfigLoader
from systemd_timings.config.schema import MQTTConfig, RetainMode


def test_retain_defaults_to_off() -> None:
    config = MQTTConfig()

    assert config.should_retain_data() is False
    assert config.should_retain_status() is False


def test_retain_full() -> None:
    config = MQTTConfig(retain=RetainMode.FULL)

    assert config.should_retain_data() is True
    assert config.should_retain_status() is True


def test_retain_online_only_retains_status() -> None:
    config = MQTTConfig(retain=RetainMode.ONLINE)

    assert config.should_retain_data() is False
    assert config.should_retain_status() is True


def test_retain_from_config() -> None:
    loader = ConfigLoader()

    assert loader.load_string("mqtt { retain on; }").mqtt.retain == RetainMode.FULL
    assert loader.load_string("mqtt { retain online; }").mqtt.retain == RetainMode.ONLINE
    assert loader.load_string('mqtt { retain "bogus"; }').mqtt.retain == RetainMode.OFF
