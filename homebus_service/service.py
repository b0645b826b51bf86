"""
Device Control Service - Command pipeline orchestrator.

This module provides the DeviceControlService class which answers device
commands arriving on the message bus: it resolves the target device,
applies the action and publishes exactly one correlated response.

Pipeline (per inbound command):
    Received → Resolving → ResolutionFailed → ResponseSent
                         → Resolved → Executing → Succeeded/Failed → ResponseSent

Subscriptions:
- One command topic per device type in the capability table
- One catch-all topic (MQTT "+") whose handler is a no-op: commands for
  unsupported device types are acknowledged, never answered or rejected.
  It skips topics whose device-type level has a dedicated handler, so each
  message is decoded once

Threading Model:
- Handlers run in the bus client's MQTT thread and may overlap with any
  other caller of handle_command()
- Device state is protected by per-device locks (StateTransitionEngine)
- No global lock on the command path
"""

import functools
import logging
import threading
from typing import Any, Dict, Optional

from homebus_control import HandlerRegistry
from homebus_devices import (
    CommandResolver,
    DeviceRegistry,
    StateTransitionEngine,
    category_label,
    known_device_types,
)
from homebus_mqtt import CommandRequest, CommandResponse, LogEvent, ResponsePublisher, create_logger
from homebus_mqtt.logging import StructuredLogger
from homebus_service.config import ServiceConfig, WILDCARD_DEVICE_TYPE
from homebus_service.correlator import ResponseCorrelator

logger = logging.getLogger(__name__)


class DeviceControlService:
    """
    Device command responder.

    Usage:
        config = ServiceConfig.from_yaml("config/device_service.yaml")
        bus = MQTTBusClient(broker_host=config.mqtt_config.broker, ...)

        service = DeviceControlService(config=config, bus=bus)
        service.setup()

        if not bus.connect():
            raise RuntimeError("Broker unreachable")
        service.start()
        ...
        service.stop()
    """

    def __init__(
        self,
        config: ServiceConfig,
        bus,  # MQTTBusClient or compatible (subscribe/publish/disconnect)
        response_publisher: Optional[ResponsePublisher] = None,
        event_logger: Optional[StructuredLogger] = None,
    ):
        """
        Initialize device control service.

        Args:
            config: Service configuration (devices + MQTT topics)
            bus: Bus client providing subscribe(topic, handler) and publish
            response_publisher: Publisher for responses (default: built on bus)
            event_logger: Structured logger for command events
        """
        self.config = config
        self.bus = bus
        self.event_logger = event_logger or create_logger("device_service")

        # Core components
        self.registry = DeviceRegistry.from_configs(config.devices)
        self.resolver = CommandResolver(self.registry)
        self.engine = StateTransitionEngine()
        self.correlator = ResponseCorrelator()
        self.handlers = HandlerRegistry()

        self.response_publisher = response_publisher or ResponsePublisher(
            bus=bus,
            topic=config.mqtt_config.response_topic,
            logger=self.event_logger,
            qos=config.mqtt_config.qos,
        )

        # Lifecycle state
        self._setup_done = False
        self._running = False

        self._stats_lock = threading.Lock()
        self._stats = {
            'handled': 0,
            'succeeded': 0,
            'failed': 0,
            'ignored': 0,
            'invalid': 0,
            'publish_failures': 0,
        }

        logger.info(
            f"DeviceControlService initialized for service_id={config.service_id} "
            f"with {len(self.registry)} devices"
        )

    # ===== Lifecycle =====

    def setup(self) -> None:
        """
        Register one handler per known device type plus the catch-all.

        Safe to call multiple times.
        """
        if self._setup_done:
            return

        for device_type in sorted(known_device_types()):
            self.handlers.register(
                device_type,
                functools.partial(self.handle_command, device_type),
                f"{category_label(device_type)} commands",
            )

        self.handlers.register_fallback(
            self.handle_generic_command,
            "Commands for device types without a dedicated handler (no-op)",
        )

        self._setup_done = True
        logger.info(
            f"Handlers registered: {', '.join(sorted(self.handlers.available_device_types))} "
            f"(+ catch-all)"
        )

    def start(self) -> None:
        """
        Subscribe every registered handler to its command topic.

        Raises:
            RuntimeError: If a subscription cannot be registered
        """
        if self._running:
            logger.warning("Service already running")
            return

        self.setup()
        logger.info("🔌 Starting device command subscriptions")

        for device_type, _ in self.handlers.items():
            topic = self.config.mqtt_config.command_topic_for(device_type)
            try:
                self.bus.subscribe(topic, self._bus_handler(device_type))
            except Exception as e:
                raise RuntimeError(f"Failed to subscribe to {topic}: {e}") from e
            logger.info(f"📥 Subscribed {device_type} handler to {topic}")

        self._running = True
        logger.info(f"✅ Device service started with {len(self.registry)} devices")
        self.log_device_status()

    def stop(self) -> None:
        """Disconnect from the bus. Safe to call multiple times."""
        if not self._running:
            return

        self._running = False
        try:
            self.bus.disconnect()
        except Exception as e:
            logger.error(f"❌ Error disconnecting bus: {e}")

        logger.info(f"✅ Device service stopped ({self.get_stats()})")

    @property
    def is_running(self) -> bool:
        return self._running

    # ===== Command pipeline =====

    def handle_command(self, device_type: str, request: CommandRequest) -> CommandResponse:
        """
        Answer one command addressed to a device type.

        Always publishes exactly one response, whatever the outcome.

        Args:
            device_type: Device type the handler serves (resolution scope)
            request: Inbound command

        Returns:
            The response that was published (or attempted)
        """
        logger.info(
            f"📥 Processing {device_type} command - Action: {request.action}, "
            f"Location: {request.location or '-'}, Device: {request.device_id or '-'}"
        )

        device = self.resolver.resolve(device_type, request.location, request.device_id)

        if device is None:
            response = self.correlator.build_response(
                request,
                resolved_device_id=None,
                success=False,
                message=f"{category_label(device_type)} not found",
            )
        else:
            result = self.engine.apply(device, request.action)
            response = self.correlator.build_response(
                request,
                resolved_device_id=device.id,
                success=result.success,
                message=result.message,
                device_type=device_type,
            )

        self._send(response)
        return response

    def handle_generic_command(self, request: CommandRequest) -> None:
        """
        Catch-all handler: acknowledge, never answer.

        Only reached for command topics without a dedicated handler.
        """
        self._count('ignored')
        self.event_logger.debug(
            event=LogEvent.COMMAND_IGNORED,
            message=f"No handler for device type '{request.device_type}'",
            metadata={
                'correlation_id': request.correlation_id,
                'device_type': request.device_type,
                'action': request.action,
            }
        )

    def _bus_handler(self, device_type: str):
        """Bus callback for one subscription: decode, then dispatch."""

        def on_message(topic: str, payload: Dict[str, Any]) -> None:
            if device_type == WILDCARD_DEVICE_TYPE and self._served_by_dedicated_handler(topic):
                return

            try:
                request = CommandRequest.from_dict(payload)
            except ValueError as e:
                self._count('invalid')
                self.event_logger.error(
                    event=LogEvent.SCHEMA_VALIDATION_ERROR,
                    message="Command failed schema validation",
                    exc_info=e,
                    metadata={'topic': topic}
                )
                return

            self.event_logger.debug(
                event=LogEvent.COMMAND_RECEIVED,
                message=f"Command received on {topic}",
                metadata=request.to_dict()
            )
            self.handlers.dispatch(device_type, request)

        return on_message

    def _served_by_dedicated_handler(self, topic: str) -> bool:
        """True when the topic's device-type level has its own subscription."""
        topic_type = self.config.mqtt_config.device_type_from_topic(topic)
        return topic_type is not None and self.handlers.is_available(topic_type)

    def _send(self, response: CommandResponse) -> None:
        self._count('handled')
        self._count('succeeded' if response.success else 'failed')

        if not self.response_publisher.publish_response(response):
            self._count('publish_failures')
            logger.error(
                f"❌ Failed to publish device response "
                f"(correlation_id={response.correlation_id})"
            )

    # ===== Introspection =====

    def log_device_status(self) -> None:
        logger.info("📊 Device Status:")
        for line in self.registry.status_report():
            logger.info(f"  {line}")

    def get_stats(self) -> Dict[str, int]:
        with self._stats_lock:
            return dict(self._stats)

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1
