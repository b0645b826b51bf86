"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

This module defines typed event names for structured logging.

Event Naming Convention:
    <component>.<category>.<action>

    component: mqtt, command, error
    category: connected, publish, received
    action: success, failed

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.correlation_id
    | filter event = "command.response.sent"
    | stats count() by bin(5m)
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - mqtt.*: MQTT broker interactions
    - command.*: Device command handling
    - error.*: Error conditions
    """

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_SUBSCRIBED = "mqtt.subscribed"
    """Subscribed to a topic pattern."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    # ========== Command Events ==========
    COMMAND_RECEIVED = "command.received"
    """Device command received from the bus."""

    COMMAND_RESPONSE_SENT = "command.response.sent"
    """Correlated response published."""

    COMMAND_IGNORED = "command.ignored"
    """Command for a device type without a dedicated handler."""

    # ========== Error Events ==========
    DESERIALIZATION_ERROR = "error.deserialization"
    """Failed to deserialize message from JSON."""

    SCHEMA_VALIDATION_ERROR = "error.schema_validation"
    """Message failed schema validation."""

    HANDLER_ERROR = "error.handler"
    """Subscription handler raised."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Error during message publication."""

    MQTT_SUBSCRIPTION_ERROR = "error.mqtt_subscription"
    """Subscription not sent or rejected by the broker."""


# Event categories for filtering
MQTT_EVENTS = {
    LogEvent.MQTT_CONNECTED,
    LogEvent.MQTT_DISCONNECTED,
    LogEvent.MQTT_SUBSCRIBED,
    LogEvent.MQTT_PUBLISH_SUCCESS,
    LogEvent.MQTT_PUBLISH_FAILED,
}

COMMAND_EVENTS = {
    LogEvent.COMMAND_RECEIVED,
    LogEvent.COMMAND_RESPONSE_SENT,
    LogEvent.COMMAND_IGNORED,
}

ERROR_EVENTS = {
    LogEvent.DESERIALIZATION_ERROR,
    LogEvent.SCHEMA_VALIDATION_ERROR,
    LogEvent.HANDLER_ERROR,
    LogEvent.MQTT_CONNECTION_ERROR,
    LogEvent.MQTT_PUBLISH_ERROR,
    LogEvent.MQTT_SUBSCRIPTION_ERROR,
}
