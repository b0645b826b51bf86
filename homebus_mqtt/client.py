"""
MQTT Bus Client
==============

Bounded Context: MQTT Infrastructure

This module provides the message-bus client the device service runs on:
one paho-mqtt connection offering subscribe/publish keyed by topic.

Design:
- Topic-pattern subscriptions with MQTT wildcards (+, #)
- Every handler whose pattern matches a message is invoked
- Subscriptions are replayed on (re)connect; connect() fails if the broker
  refuses any of them (SUBACK reason codes)
- JSON payloads in and out
- publish() never raises: failures are logged and reported as False

Threading:
- paho-mqtt network loop runs in its own thread (loop_start/loop_stop)
- Handlers run in the MQTT thread (keep them fast!)

Example:
    >>> from homebus_mqtt import MQTTBusClient, create_logger
    >>>
    >>> bus = MQTTBusClient(
    ...     broker_host="localhost",
    ...     client_id="device_service",
    ...     logger=create_logger("bus"),
    ... )
    >>> bus.subscribe("homebus/devices/commands/+", on_command)
    >>> bus.connect()
    >>> bus.publish("homebus/devices/responses", {"success": True})
"""

import json
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import paho.mqtt.client as mqtt

from .logging import StructuredLogger, LogEvent, create_logger

MessageHandler = Callable[[str, Dict[str, Any]], None]


class MQTTBusClient:
    """
    paho-mqtt wrapper exposing subscribe/publish by topic.

    Attributes:
        broker_host: MQTT broker hostname
        broker_port: MQTT broker port
        client_id: MQTT client identifier
        qos: Default Quality of Service for subscriptions and publishes
        logger: Structured logger instance

    Thread Safety:
        Subscription list guarded by a lock; counters guarded by a lock.
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int = 1883,
        client_id: str = "homebus_device_service",
        logger: Optional[StructuredLogger] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1,
        keepalive: int = 60,
    ):
        """
        Initialize MQTT bus client.

        Args:
            broker_host: MQTT broker hostname
            broker_port: MQTT broker port (default: 1883)
            client_id: MQTT client ID
            logger: Structured logger (default: component "bus")
            username: MQTT auth username (optional)
            password: MQTT auth password (optional)
            qos: Default QoS (default: 1, commands are control messages)
            keepalive: MQTT keepalive in seconds
        """
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.client_id = client_id
        self.logger = logger or create_logger("bus")
        self.qos = qos
        self.keepalive = keepalive

        # MQTT client setup
        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        if username and password:
            self.client.username_pw_set(username, password)

        # Callbacks
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message
        self.client.on_subscribe = self._on_subscribe

        # State
        self._connected = threading.Event()
        self._running = False
        self._subscriptions: List[Tuple[str, int, MessageHandler]] = []
        self._subscriptions_lock = threading.Lock()
        self._pending_subacks: Dict[int, str] = {}
        self._subscription_failures: List[str] = []
        self._subscriptions_acked = threading.Event()
        self._stats_lock = threading.Lock()
        self._stats = {'received': 0, 'published': 0, 'publish_failures': 0}

    @property
    def broker(self) -> str:
        return f"{self.broker_host}:{self.broker_port}"

    # ===== Lifecycle =====

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Connect to MQTT broker and start the network loop.

        Subscriptions recorded before connecting are sent on CONNACK; the
        connection only counts as established once the broker has granted
        every one of them.

        Args:
            timeout: Seconds to wait for the broker to acknowledge

        Returns:
            True if connected and subscribed, False otherwise
        """
        deadline = time.monotonic() + timeout
        try:
            self.client.connect(self.broker_host, self.broker_port, keepalive=self.keepalive)
            self.client.loop_start()
            self._running = True

            if not self._connected.wait(timeout=timeout):
                self.logger.error(
                    event=LogEvent.MQTT_CONNECTION_ERROR,
                    message="Connection timeout",
                    metadata={'timeout': timeout, 'broker': self.broker}
                )
                return False

            remaining = max(0.0, deadline - time.monotonic())
            if not self._subscriptions_acked.wait(timeout=remaining):
                with self._subscriptions_lock:
                    pending = sorted(self._pending_subacks.values())
                self.logger.error(
                    event=LogEvent.MQTT_SUBSCRIPTION_ERROR,
                    message="Subscription acknowledgement timeout",
                    metadata={'timeout': timeout, 'pending': pending}
                )
                return False

            failures = self.subscription_failures
            if failures:
                self.logger.error(
                    event=LogEvent.MQTT_SUBSCRIPTION_ERROR,
                    message="Broker rejected subscriptions",
                    metadata={'topics': failures, 'broker': self.broker}
                )
                return False

            return True

        except Exception as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Failed to connect to broker",
                exc_info=e,
                metadata={'broker': self.broker}
            )
            return False

    def disconnect(self) -> None:
        """
        Disconnect from MQTT broker.

        Safe to call multiple times.
        """
        if not self._running:
            return

        try:
            self.client.loop_stop()
            self.client.disconnect()
        except Exception as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Error during disconnect",
                exc_info=e
            )
        finally:
            self._running = False
            self._connected.clear()

        self.logger.info(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from broker",
            metadata=self.get_stats()
        )

    def is_connected(self) -> bool:
        """Check if currently connected to broker."""
        return self._connected.is_set()

    # ===== Subscribe / Publish =====

    def subscribe(
        self,
        topic_pattern: str,
        handler: MessageHandler,
        qos: Optional[int] = None,
    ) -> None:
        """
        Subscribe a handler to a topic pattern.

        The subscription is remembered and (re)sent to the broker on every
        connect. If already connected, it is sent immediately.

        Args:
            topic_pattern: MQTT topic filter (wildcards allowed)
            handler: Called as handler(topic, payload_dict)
            qos: Subscription QoS (default: client qos)

        Raises:
            ValueError: If the topic filter is malformed
            RuntimeError: If the broker rejects the subscription request
        """
        if not topic_pattern or not _is_valid_filter(topic_pattern):
            raise ValueError(f"Invalid topic filter: {topic_pattern!r}")

        qos = self.qos if qos is None else qos

        if self._connected.is_set():
            result, _ = self.client.subscribe(topic_pattern, qos=qos)
            if result != mqtt.MQTT_ERR_SUCCESS:
                raise RuntimeError(
                    f"Failed to subscribe to {topic_pattern} (rc={result})"
                )

        with self._subscriptions_lock:
            self._subscriptions.append((topic_pattern, qos, handler))

        self.logger.info(
            event=LogEvent.MQTT_SUBSCRIBED,
            message=f"Subscribed to {topic_pattern}",
            metadata={'topic': topic_pattern, 'qos': qos, 'connected': self.is_connected()}
        )

    def publish(
        self,
        topic: str,
        payload: Dict[str, Any],
        qos: Optional[int] = None,
        retain: bool = False,
    ) -> bool:
        """
        Publish a JSON message (fire-and-forget).

        Args:
            topic: Destination topic
            payload: JSON-serializable dict
            qos: QoS (default: client qos)
            retain: MQTT retain flag

        Returns:
            True if handed to the broker connection, False otherwise
        """
        qos = self.qos if qos is None else qos

        if not self._connected.is_set():
            self._count('publish_failures')
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message="Cannot publish: not connected to broker",
                metadata={'topic': topic}
            )
            return False

        try:
            result = self.client.publish(
                topic=topic,
                payload=json.dumps(payload),
                qos=qos,
                retain=retain
            )

            if result.rc == mqtt.MQTT_ERR_SUCCESS:
                self._count('published')
                self.logger.debug(
                    event=LogEvent.MQTT_PUBLISH_SUCCESS,
                    message="Published message",
                    metadata={'topic': topic, 'qos': qos}
                )
                return True

            self._count('publish_failures')
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message=f"Publish failed (rc={result.rc})",
                metadata={'topic': topic}
            )
            return False

        except Exception as e:
            self._count('publish_failures')
            self.logger.error(
                event=LogEvent.MQTT_PUBLISH_ERROR,
                message="Error publishing message",
                exc_info=e,
                metadata={'topic': topic}
            )
            return False

    def dispatch(self, topic: str, payload: Dict[str, Any]) -> int:
        """
        Invoke every handler whose pattern matches the topic.

        A failing handler is logged and does not stop the others.

        Returns:
            Number of handlers invoked
        """
        with self._subscriptions_lock:
            handlers = [
                handler for pattern, _, handler in self._subscriptions
                if mqtt.topic_matches_sub(pattern, topic)
            ]

        for handler in handlers:
            try:
                handler(topic, payload)
            except Exception as e:
                self.logger.error(
                    event=LogEvent.HANDLER_ERROR,
                    message="Subscription handler failed",
                    exc_info=e,
                    metadata={'topic': topic}
                )
        return len(handlers)

    def get_stats(self) -> Dict[str, Any]:
        """Message counters and connection status."""
        with self._stats_lock:
            stats = dict(self._stats)
        with self._subscriptions_lock:
            stats['subscriptions'] = [pattern for pattern, _, _ in self._subscriptions]
        stats['connected'] = self._connected.is_set()
        stats['broker'] = self.broker
        return stats

    @property
    def subscription_failures(self) -> List[str]:
        """Topic filters refused since the last connect."""
        with self._subscriptions_lock:
            return list(self._subscription_failures)

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1

    # ===== MQTT Callbacks (run in MQTT thread) =====

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Failed to connect to broker (rc={reason_code})",
                metadata={'broker': self.broker}
            )
            self._connected.clear()
            return

        with self._subscriptions_lock:
            subscriptions = [(pattern, qos) for pattern, qos, _ in self._subscriptions]
            self._pending_subacks = {}
            self._subscription_failures = []
            self._subscriptions_acked.clear()

            for pattern, qos in subscriptions:
                result, mid = client.subscribe(pattern, qos=qos)
                if result == mqtt.MQTT_ERR_SUCCESS:
                    self._pending_subacks[mid] = pattern
                else:
                    self._subscription_failures.append(pattern)

            if not self._pending_subacks:
                self._subscriptions_acked.set()
            failures = list(self._subscription_failures)

        if failures:
            self.logger.error(
                event=LogEvent.MQTT_SUBSCRIPTION_ERROR,
                message="Failed to send subscriptions",
                metadata={'topics': failures, 'broker': self.broker}
            )

        self._connected.set()
        self.logger.info(
            event=LogEvent.MQTT_CONNECTED,
            message="Connected to MQTT broker",
            metadata={
                'broker': self.broker,
                'client_id': self.client_id,
                'subscriptions': [pattern for pattern, _ in subscriptions]
            }
        )

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties=None):
        failed = any(rc.is_failure for rc in reason_code_list)

        with self._subscriptions_lock:
            pattern = self._pending_subacks.pop(mid, None)
            if failed and pattern is not None:
                self._subscription_failures.append(pattern)
            if not self._pending_subacks:
                self._subscriptions_acked.set()

        if failed:
            self.logger.error(
                event=LogEvent.MQTT_SUBSCRIPTION_ERROR,
                message="Broker rejected subscription",
                metadata={'topic': pattern, 'mid': mid,
                          'reason_codes': [str(rc) for rc in reason_code_list]}
            )

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        self._connected.clear()
        self.logger.warning(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from MQTT broker",
            metadata={'broker': self.broker, 'reason_code': str(reason_code)}
        )

    def _on_message(self, client, userdata, msg):
        self._count('received')
        try:
            data = json.loads(msg.payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self.logger.error(
                event=LogEvent.DESERIALIZATION_ERROR,
                message="Error decoding JSON payload",
                exc_info=e,
                metadata={'topic': msg.topic}
            )
            return

        if not isinstance(data, dict):
            self.logger.error(
                event=LogEvent.SCHEMA_VALIDATION_ERROR,
                message="Payload is not a JSON object",
                metadata={'topic': msg.topic}
            )
            return

        self.dispatch(msg.topic, data)


def _is_valid_filter(topic_filter: str) -> bool:
    """MQTT filter rules: '#' only as the last level, wildcards fill a level."""
    levels = topic_filter.split('/')
    for i, level in enumerate(levels):
        if '#' in level and (level != '#' or i != len(levels) - 1):
            return False
        if '+' in level and level != '+':
            return False
    return True
