"""
Homebus MQTT Communication Package
==================================

Bounded Context: Message bus for device control

This package provides the MQTT transport the device service runs on:
a bus client with topic-keyed subscribe/publish, the command/response
message schemas, and structured JSON logging.

Architecture:
- client: MQTTBusClient (paho-mqtt connection, subscribe/publish)
- schemas/: Immutable message structures (CommandRequest, CommandResponse)
- publishers/: Message producers (ResponsePublisher)
- logging/: Structured JSON logging for observability

Example:
    >>> from homebus_mqtt import MQTTBusClient, ResponsePublisher, create_logger
    >>>
    >>> logger = create_logger("device_service")
    >>> bus = MQTTBusClient(broker_host="localhost", logger=logger)
    >>> bus.connect()
    >>> publisher = ResponsePublisher(bus, "homebus/devices/responses", logger)
"""

__version__ = "1.0.0"

# Schemas
from .schemas import (
    Timestamp,
    CommandRequest,
    CommandResponse,
)

# Bus client
from .client import MQTTBusClient

# Publishers
from .publishers import (
    BasePublisher,
    ResponsePublisher,
)

# Logging
from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

__all__ = [
    '__version__',
    'Timestamp',
    'CommandRequest',
    'CommandResponse',
    'MQTTBusClient',
    'BasePublisher',
    'ResponsePublisher',
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
