"""
Base MQTT Publisher
==================

Bounded Context: MQTT Infrastructure

This module provides the abstract base class for topic publishers.

Design:
- Publishes through a shared bus client (one broker connection per process)
- Structured logging integration
- Failures never propagate: publish() returns False

Architecture:
    BasePublisher (abstract)
        ↓
    ResponsePublisher (concrete)

Responsibilities:
- Message publication to one topic
- Publication statistics
- NOT responsible for: message formatting (delegated to subclasses),
  connection lifecycle (owned by the bus client)
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..logging import StructuredLogger, LogEvent


class BasePublisher(ABC):
    """
    Abstract base class for topic publishers.

    Attributes:
        bus: Object exposing publish(topic, payload, qos=..., retain=...) -> bool
        topic: MQTT topic to publish to
        qos: Quality of Service (None = bus default)
        logger: Structured logger instance

    Thread Safety:
        Counters guarded by a lock; the bus client is thread-safe.
    """

    def __init__(
        self,
        bus,  # MQTTBusClient or compatible
        topic: str,
        logger: StructuredLogger,
        qos: Optional[int] = None,
    ):
        self.bus = bus
        self.topic = topic
        self.logger = logger
        self.qos = qos

        self._message_count = 0
        self._failure_count = 0
        self._stats_lock = threading.Lock()

    @abstractmethod
    def format_message(self, *args, **kwargs) -> Dict[str, Any]:
        """
        Format message for publication.

        Returns:
            Dictionary ready for JSON serialization
        """
        raise NotImplementedError("Subclasses must implement format_message()")

    def publish(self, message_data: Dict[str, Any], retain: bool = False) -> bool:
        """
        Publish a pre-formatted message.

        Args:
            message_data: Message dictionary (already formatted)
            retain: MQTT retain flag

        Returns:
            True if published successfully, False otherwise
        """
        try:
            published = self.bus.publish(self.topic, message_data, qos=self.qos, retain=retain)
        except Exception as e:
            self.logger.error(
                event=LogEvent.MQTT_PUBLISH_ERROR,
                message="Error publishing message",
                exc_info=e,
                metadata={'topic': self.topic}
            )
            published = False

        with self._stats_lock:
            if published:
                self._message_count += 1
            else:
                self._failure_count += 1

        return published

    def get_stats(self) -> Dict[str, Any]:
        """Publisher statistics."""
        with self._stats_lock:
            return {
                'message_count': self._message_count,
                'failure_count': self._failure_count,
                'topic': self.topic,
            }
