from __future__ import annotations

import json
import logging

from homebus_mqtt.logging import LogEvent, StructuredLogger, create_logger
from homebus_mqtt.logging.events import COMMAND_EVENTS, ERROR_EVENTS, MQTT_EVENTS


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def _attach(logger: StructuredLogger) -> _ListHandler:
    handler = _ListHandler()
    logger.logger.addHandler(handler)
    return handler


def test_info_emits_json_line() -> None:
    logger = StructuredLogger(component="test_info")
    handler = _attach(logger)

    logger.info(
        event=LogEvent.COMMAND_RESPONSE_SENT,
        message="Kitchen Lights turned on",
        metadata={"correlation_id": "req-1"},
    )

    entry = json.loads(handler.records[-1].getMessage())
    assert entry["level"] == "INFO"
    assert entry["component"] == "test_info"
    assert entry["event"] == "command.response.sent"
    assert entry["metadata"] == {"correlation_id": "req-1"}


def test_error_includes_exception() -> None:
    logger = create_logger("test_error")
    handler = _attach(logger)

    logger.error(event=LogEvent.MQTT_PUBLISH_ERROR, message="failed", exc_info=ValueError("bad"))

    entry = json.loads(handler.records[-1].getMessage())
    assert entry["exception"] == {"type": "ValueError", "message": "bad"}


def test_debug_respects_level() -> None:
    logger = create_logger("test_debug", level=logging.INFO)
    handler = _attach(logger)

    logger.debug(event=LogEvent.COMMAND_RECEIVED, message="hidden")
    assert handler.records == []

    logger.set_level(logging.DEBUG)
    logger.debug(event=LogEvent.COMMAND_RECEIVED, message="shown")
    assert json.loads(handler.records[-1].getMessage())["message"] == "shown"


def test_event_categories_are_disjoint() -> None:
    assert not (MQTT_EVENTS & COMMAND_EVENTS)
    assert not (MQTT_EVENTS & ERROR_EVENTS)
    assert not (COMMAND_EVENTS & ERROR_EVENTS)
    assert all(event.value.startswith("error.") for event in ERROR_EVENTS)
