"""
Main application orchestrator.

Handles:
- Configuration loading
- The collection schedule
- Output to stdout and MQTT
- Graceful shutdown
"""

import asyncio
import signal
from typing import TextIO

from .collectors.base import Collector, CollectorResult
from .collectors.timings import SystemdTimingsCollector
from .config.loader import ConfigLoader
from .config.schema import Config
from .const import APP_NAME
from .logging import LogConfig, get_logger, setup_logging
from .mqtt.client import MQTTClient
from .output.line_protocol import LineProtocolWriter
from .utils.busctl import BusFactory, open_system_bus


logger = get_logger("app")


class Application:
    """
    Main application class.

    Runs the timings collector on its interval and hands every record to
    the enabled outputs.
    """

    def __init__(
        self,
        config: Config,
        bus_factory: BusFactory = open_system_bus,
        stream: TextIO | None = None,
    ):
        """
        Initialize application.

        Args:
            config: Application configuration
            bus_factory: Opens systemd bus connections
            stream: Line protocol destination (stdout if None)
        """
        self.config = config
        self.collector: Collector = SystemdTimingsCollector(config.timings, bus_factory)

        self.writer = LineProtocolWriter(stream) if config.output.stdout else None
        self.mqtt = (
            MQTTClient(config.mqtt, availability_topic=f"{config.mqtt.topic_prefix}/status")
            if config.output.mqtt
            else None
        )

        self._shutdown_event = asyncio.Event()

    def publish(self, result: CollectorResult) -> None:
        """Hand a tick's records to the outputs."""
        if not result.metrics:
            return

        if self.writer:
            self.writer.write(result.metrics)

        if self.mqtt:
            for metric in result.metrics:
                self.mqtt.publish_metric(metric)

    async def tick(self) -> CollectorResult:
        """Run one collection and publish its records."""
        result = await self.collector.safe_collect()
        self.publish(result)
        return result

    async def run_once(self) -> CollectorResult:
        """Single collection, used by --once."""
        if self.mqtt is None:
            return await self.tick()

        async with self.mqtt.session():
            result = await self.tick()
            # Give the publisher a moment to drain before disconnecting
            for _ in range(50):
                if self.mqtt.pending == 0:
                    break
                await asyncio.sleep(0.1)
        return result

    def _setup_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._signal_handler)

    def _signal_handler(self) -> None:
        logger.info("Received shutdown signal")
        self._shutdown_event.set()

    def stop(self) -> None:
        self._shutdown_event.set()

    async def _run_schedule(self) -> None:
        interval = self.collector.update_interval
        logger.info(f"Collecting every {interval}s (periodic: {self.config.timings.periodic})")

        while not self._shutdown_event.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    async def run(self) -> None:
        """Run until a shutdown signal arrives."""
        logger.info(f"Starting {APP_NAME}")
        self._setup_signal_handlers()

        if self.mqtt:
            async with self.mqtt.session():
                await self._run_schedule()
        else:
            await self._run_schedule()

        logger.info(f"{APP_NAME} stopped")


def load_app_config(config_path: str | None, cli_log_config: LogConfig | None = None) -> Config:
    """
    Load configuration and apply its logging settings.

    Args:
        config_path: Configuration file (defaults are used if None)
        cli_log_config: Logging config from CLI args (overrides file config)
    """
    loader = ConfigLoader()
    config = loader.load_file(config_path) if config_path else Config()

    if cli_log_config is None:
        setup_logging(LogConfig.from_settings(config.logging))
    else:
        cli_log_config.merge_file_settings(config.logging)
        setup_logging(cli_log_config)

    if config_path:
        logger.info(f"Loaded configuration from {config_path}")
        for warning in loader.validate(config):
            logger.warning(f"Config warning: {warning}")

    return config


async def run_app(config_path: str, cli_log_config: LogConfig | None = None) -> None:
    """Load configuration and run the application until shutdown."""
    config = load_app_config(config_path, cli_log_config)
    await Application(config).run()
