"""
Application constants and metadata.
"""

# Application info
APP_NAME = "Systemd Timings"
APP_VERSION = "0.1.0"
APP_DESCRIPTION = "Gather systemd boot and unit timing data"

# Measurement name for every emitted record
MEASUREMENT = "systemd_timings"

# Default values
DEFAULT_UNIT_PATTERN = "*.service"
DEFAULT_PERIODIC = False
DEFAULT_INTERVAL = 10.0
DEFAULT_MQTT_PORT = 1883
DEFAULT_MQTT_KEEPALIVE = 60
DEFAULT_TOPIC_PREFIX = "systemd_timings"
DEFAULT_CONFIG_PATH = "/etc/systemd-timings/config.conf"

# Manager milestones, see https://www.freedesktop.org/wiki/Software/systemd/dbus/
USERSPACE_TIMESTAMP = "UserspaceTimestampMonotonic"
FINISH_TIMESTAMP = "FinishTimestampMonotonic"

MANAGER_TIMESTAMPS = (
    "FirmwareTimestampMonotonic",
    "LoaderTimestampMonotonic",
    "InitRDTimestampMonotonic",
    USERSPACE_TIMESTAMP,
    FINISH_TIMESTAMP,
    "SecurityStartTimestampMonotonic",
    "SecurityFinishTimestampMonotonic",
    "GeneratorsStartTimestampMonotonic",
    "GeneratorsFinishTimestampMonotonic",
    "UnitsLoadStartTimestampMonotonic",
    "UnitsLoadFinishTimestampMonotonic",
    "InitRDSecurityStartTimestampMonotonic",
    "InitRDSecurityFinishTimestampMonotonic",
    "InitRDGeneratorsStartTimestampMonotonic",
    "InitRDGeneratorsFinishTimestampMonotonic",
    "InitRDUnitsLoadStartTimestampMonotonic",
    "InitRDUnitsLoadFinishTimestampMonotonic",
)

# Unit lifecycle properties, in activating/activated/deactivating/deactivated order
UNIT_TIMESTAMPS = (
    "InactiveExitTimestampMonotonic",
    "ActiveEnterTimestampMonotonic",
    "ActiveExitTimestampMonotonic",
    "InactiveEnterTimestampMonotonic",
)

# Target units mark synchronization points and are reported even when idle
TARGET_SUFFIX = ".target"

# Tag and field names
TAG_SYSTEM_TIMESTAMP = "SystemTimestamp"
FIELD_SYSTEM_TIMESTAMP_VALUE = "SystemTimestampValue"
TAG_UNIT_NAME = "UnitName"
FIELD_ACTIVATING = "ActivatingTimestamp"
FIELD_ACTIVATED = "ActivatedTimestamp"
FIELD_DEACTIVATING = "DeactivatingTimestamp"
FIELD_DEACTIVATED = "DeactivatedTimestamp"
FIELD_RUN_DURATION = "RunDuration"

SAMPLE_CONFIG = """\
timings {
    # Unit name glob, may be a comma separated list of patterns.
    unit_pattern "*.service";

    # Boot metrics do not change after boot, so they are collected once.
    # Turn this on to re-send the (potentially) same data every interval.
    periodic off;

    interval 10s;
}
"""
