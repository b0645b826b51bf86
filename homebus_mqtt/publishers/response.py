"""
Response Publisher
=================

Bounded Context: Command Response Production

Publishes CommandResponse messages to the response topic.

Message Flow:
    DeviceControlService → CommandResponse → ResponsePublisher → MQTT Broker

Example:
    >>> publisher = ResponsePublisher(bus, topic="homebus/devices/responses",
    ...                               logger=create_logger("responses"))
    >>> publisher.publish_response(response)
"""

from typing import Any, Dict, Optional

from .base import BasePublisher
from ..schemas import CommandResponse
from ..logging import StructuredLogger, LogEvent


class ResponsePublisher(BasePublisher):
    """Publisher for correlated device command responses."""

    def __init__(
        self,
        bus,
        topic: str,
        logger: StructuredLogger,
        qos: Optional[int] = None,
    ):
        super().__init__(bus=bus, topic=topic, logger=logger, qos=qos)

    def format_message(self, response: CommandResponse) -> Dict[str, Any]:
        return response.to_dict()

    def publish_response(self, response: CommandResponse) -> bool:
        """
        Publish a response (fire-and-forget, no retry).

        Returns:
            True if published, False otherwise (already logged)
        """
        published = self.publish(self.format_message(response))

        metadata = {
            'correlation_id': response.correlation_id,
            'device_type': response.device_type,
            'device_id': response.device_id,
            'success': response.success,
        }
        if published:
            self.logger.info(
                event=LogEvent.COMMAND_RESPONSE_SENT,
                message=response.message,
                metadata=metadata
            )
        else:
            self.logger.error(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message="Failed to publish device response",
                metadata=metadata
            )
        return published
