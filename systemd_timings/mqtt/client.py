"""
MQTT client wrapper using aiomqtt.

Features:
- Background publisher with an offline message queue
- Reconnection with exponential backoff
- Last Will and Testament (LWT) for availability
- Metric records published as JSON, one topic per tag value
"""

import asyncio
import json
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiomqtt

from ..config.schema import MQTTConfig
from ..const import TAG_UNIT_NAME
from ..logging import get_logger
from ..models.metric import Metric


logger = get_logger("mqtt.client")


def metric_topic(metric: Metric, topic_prefix: str) -> str:
    """
    Topic for a metric record.

    Examples:
        prefix/system/FinishTimestampMonotonic
        prefix/unit/ssh.service
    """
    kind = "unit" if TAG_UNIT_NAME in metric.tags else "system"
    return f"{topic_prefix}/{kind}/{metric.tag_value}"


class MQTTClient:
    """
    Async MQTT client wrapper with reconnection support.

    Messages are queued by publish() and sent by a background task, so a
    broker outage never blocks collection.
    """

    def __init__(
        self,
        config: MQTTConfig,
        availability_topic: str | None = None,
        queue_size: int = 1000,
    ):
        """
        Initialize MQTT client.

        Args:
            config: MQTT configuration
            availability_topic: Topic for availability messages (LWT)
            queue_size: Maximum number of messages buffered while offline
        """
        self.config = config
        self.availability_topic = availability_topic or f"{config.topic_prefix}/status"

        self._client: aiomqtt.Client | None = None
        self._connected = False
        self._reconnect_interval = 5.0
        self._max_reconnect_interval = 60.0

        self._client_id = config.client_id or f"systemd_timings_{uuid.uuid4().hex[:8]}"

        # (topic, payload, qos, retain)
        self._queue: asyncio.Queue[tuple[str, str, int, bool]] = asyncio.Queue(maxsize=queue_size)

        self._publisher_task: asyncio.Task | None = None
        self._running = False

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def pending(self) -> int:
        """Number of queued messages not yet sent."""
        return self._queue.qsize()

    def _create_client(self) -> aiomqtt.Client:
        will = aiomqtt.Will(
            topic=self.availability_topic,
            payload="offline",
            qos=1,
            retain=self.config.should_retain_status(),
        )

        return aiomqtt.Client(
            hostname=self.config.host,
            port=self.config.port,
            username=self.config.username,
            password=self.config.password,
            identifier=self._client_id,
            keepalive=self.config.keepalive,
            will=will,
        )

    async def connect(self) -> None:
        """
        Connect to MQTT broker and announce availability.

        Raises:
            aiomqtt.MqttError: If connection fails
        """
        logger.debug(f"Connecting to MQTT broker {self.config.host}:{self.config.port}")

        self._client = self._create_client()
        await self._client.__aenter__()
        self._connected = True

        await self._client.publish(
            self.availability_topic,
            "online",
            qos=1,
            retain=self.config.should_retain_status(),
        )
        logger.info(f"Connected to MQTT broker at {self.config.host}:{self.config.port}")

    async def disconnect(self) -> None:
        """Announce offline status and disconnect."""
        if not (self._client and self._connected):
            return

        try:
            await self._client.publish(
                self.availability_topic,
                "offline",
                qos=1,
                retain=self.config.should_retain_status(),
            )
            await self._client.__aexit__(None, None, None)
        except aiomqtt.MqttError as e:
            logger.debug(f"Error while disconnecting: {e}")
        finally:
            self._connected = False
            self._client = None

        logger.info("Disconnected from MQTT broker")

    def publish(self, topic: str, payload: Any, qos: int | None = None) -> bool:
        """
        Queue a message for publishing.

        Args:
            topic: MQTT topic
            payload: Message payload (JSON encoded if not a string)
            qos: QoS level (default from config)

        Returns:
            False if the queue is full and the message was dropped
        """
        payload_str = payload if isinstance(payload, str) else json.dumps(payload)
        message = (
            topic,
            payload_str,
            self.config.qos if qos is None else qos,
            self.config.should_retain_data(),
        )

        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"Message queue full, dropping message for {topic}")
            return False
        return True

    def publish_metric(self, metric: Metric) -> bool:
        """Queue a metric record as a JSON object of its fields."""
        return self.publish(metric_topic(metric, self.config.topic_prefix), metric.to_json_dict())

    async def _publisher_loop(self) -> None:
        """Background task to publish queued messages."""
        reconnect_interval = self._reconnect_interval

        while self._running:
            if not self._connected:
                try:
                    await self.connect()
                    reconnect_interval = self._reconnect_interval
                except aiomqtt.MqttError as e:
                    logger.error(f"Failed to connect to MQTT: {e}")
                    await asyncio.sleep(reconnect_interval)
                    reconnect_interval = min(reconnect_interval * 2, self._max_reconnect_interval)
                    continue

            try:
                message = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            topic, payload, qos, retain = message
            try:
                await self._client.publish(  # type: ignore[union-attr]
                    topic, payload, qos=qos, retain=retain
                )
                logger.debug(f"Published to {topic}")
            except aiomqtt.MqttError as e:
                logger.error(f"MQTT error: {e}")
                self._connected = False
                try:
                    self._queue.put_nowait(message)
                except asyncio.QueueFull:
                    logger.warning(f"Message queue full, dropping message for {topic}")

    async def start(self) -> None:
        """Start the background publisher."""
        self._running = True
        self._publisher_task = asyncio.create_task(self._publisher_loop())
        logger.info("MQTT client started")

    async def stop(self) -> None:
        """Stop the publisher and disconnect."""
        self._running = False

        if self._publisher_task:
            self._publisher_task.cancel()
            try:
                await self._publisher_task
            except asyncio.CancelledError:
                pass
            self._publisher_task = None

        await self.disconnect()
        logger.info("MQTT client stopped")

    @asynccontextmanager
    async def session(self) -> AsyncIterator["MQTTClient"]:
        """Context manager for MQTT session."""
        await self.start()
        try:
            yield self
        finally:
            await self.stop()
