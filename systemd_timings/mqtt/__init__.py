"""
MQTT output for metric records.
"""

from .client import MQTTClient, metric_topic

__all__ = [
    "MQTTClient",
    "metric_topic",
]
