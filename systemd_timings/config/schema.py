"""
Configuration schema with dataclasses for validation and type safety.

Defines all configuration sections, their fields and defaults.
"""

from dataclasses import dataclass, field
from enum import Enum

from ..const import (
    DEFAULT_INTERVAL,
    DEFAULT_MQTT_KEEPALIVE,
    DEFAULT_MQTT_PORT,
    DEFAULT_PERIODIC,
    DEFAULT_TOPIC_PREFIX,
    DEFAULT_UNIT_PATTERN,
)
from .parser import Block, ConfigDocument


class RetainMode(Enum):
    """MQTT retain message modes."""

    OFF = "off"  # Don't retain any messages
    ONLINE = "online"  # Only retain availability (LWT) status
    FULL = "full"  # Retain all messages


def split_patterns(unit_pattern: str) -> list[str]:
    """Split a comma separated glob list, dropping blanks."""
    return [p.strip() for p in unit_pattern.split(",") if p.strip()]


@dataclass
class TimingsConfig:
    """Systemd timings collector configuration."""

    unit_pattern: str = DEFAULT_UNIT_PATTERN
    periodic: bool = DEFAULT_PERIODIC
    interval: float = DEFAULT_INTERVAL

    @property
    def patterns(self) -> list[str]:
        """
        Globs passed to the manager.

        An empty list would match every unit, so an empty setting becomes
        a single empty glob, which matches none.
        """
        return split_patterns(self.unit_pattern) or [""]

    @classmethod
    def from_block(cls, block: Block | None) -> "TimingsConfig":
        """Create TimingsConfig from a parsed 'timings' block."""
        if block is None:
            return cls()

        # Repeated unit_pattern directives are joined
        patterns = [str(v) for v in block.get_all_values("unit_pattern")]

        return cls(
            unit_pattern=",".join(patterns) if patterns else DEFAULT_UNIT_PATTERN,
            periodic=bool(block.get_value("periodic", DEFAULT_PERIODIC)),
            interval=float(block.get_value("interval", DEFAULT_INTERVAL)),
        )


@dataclass
class MQTTConfig:
    """MQTT connection configuration."""

    host: str = "localhost"
    port: int = DEFAULT_MQTT_PORT
    username: str | None = None
    password: str | None = None
    client_id: str | None = None
    topic_prefix: str = DEFAULT_TOPIC_PREFIX
    qos: int = 1
    retain: RetainMode = RetainMode.OFF
    keepalive: int = DEFAULT_MQTT_KEEPALIVE

    @classmethod
    def from_block(cls, block: Block | None) -> "MQTTConfig":
        """Create MQTTConfig from a parsed 'mqtt' block."""
        if block is None:
            return cls()

        retain_val = block.get_value("retain", "off")
        if isinstance(retain_val, bool):
            retain_mode = RetainMode.FULL if retain_val else RetainMode.OFF
        else:
            try:
                retain_mode = RetainMode(str(retain_val).lower())
            except ValueError:
                retain_mode = RetainMode.OFF

        return cls(
            host=block.get_value("host", "localhost"),
            port=int(block.get_value("port", DEFAULT_MQTT_PORT)),
            username=block.get_value("username"),
            password=block.get_value("password"),
            client_id=block.get_value("client_id"),
            topic_prefix=block.get_value("topic_prefix", DEFAULT_TOPIC_PREFIX),
            qos=int(block.get_value("qos", 1)),
            retain=retain_mode,
            keepalive=int(block.get_value("keepalive", DEFAULT_MQTT_KEEPALIVE)),
        )

    def should_retain_data(self) -> bool:
        return self.retain == RetainMode.FULL

    def should_retain_status(self) -> bool:
        return self.retain in (RetainMode.FULL, RetainMode.ONLINE)


@dataclass
class OutputConfig:
    """Where metric records are sent."""

    stdout: bool = True
    mqtt: bool = False

    @classmethod
    def from_block(cls, block: Block | None) -> "OutputConfig":
        if block is None:
            return cls()
        return cls(
            stdout=bool(block.get_value("stdout", True)),
            mqtt=bool(block.get_value("mqtt", False)),
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"  # debug, info, warning, error
    file: str | None = None
    file_level: str = "debug"
    file_max_size: int = 10  # MB
    file_keep: int = 5
    colors: bool = True
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    @classmethod
    def from_block(cls, block: Block | None) -> "LoggingConfig":
        """Create LoggingConfig from a parsed 'logging' block."""
        if block is None:
            return cls()

        return cls(
            level=str(block.get_value("level", "info")),
            file=block.get_value("file"),
            file_level=str(block.get_value("file_level", "debug")),
            file_max_size=int(block.get_value("file_max_size", 10)),
            file_keep=int(block.get_value("file_keep", 5)),
            colors=bool(block.get_value("colors", True)),
            format=block.get_value("format", cls.format),
        )


@dataclass
class Config:
    """Complete application configuration."""

    timings: TimingsConfig = field(default_factory=TimingsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    mqtt: MQTTConfig = field(default_factory=MQTTConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_document(cls, doc: ConfigDocument) -> "Config":
        """Create Config from a parsed ConfigDocument."""
        return cls(
            timings=TimingsConfig.from_block(doc.get_block("timings")),
            output=OutputConfig.from_block(doc.get_block("output")),
            mqtt=MQTTConfig.from_block(doc.get_block("mqtt")),
            logging=LoggingConfig.from_block(doc.get_block("logging")),
        )
