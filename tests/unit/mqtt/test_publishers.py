from __future__ import annotations

from homebus_mqtt import CommandResponse, ResponsePublisher, Timestamp, create_logger


class _Bus:
    def __init__(self, result: bool = True, error: Exception = None) -> None:
        self.result = result
        self.error = error
        self.calls = []

    def publish(self, topic, payload, qos=None, retain=False):
        if self.error:
            raise self.error
        self.calls.append((topic, payload, qos, retain))
        return self.result


def _response() -> CommandResponse:
    return CommandResponse(
        correlation_id="req-7",
        device_type="lights",
        device_id="kitchen-lights",
        success=True,
        message="Kitchen Lights turned on",
        timestamp=Timestamp(42),
    )


def test_publish_response_sends_dict_to_topic() -> None:
    bus = _Bus()
    publisher = ResponsePublisher(bus, "homebus/devices/responses", create_logger("test_responses"), qos=1)

    assert publisher.publish_response(_response()) is True

    topic, payload, qos, retain = bus.calls[0]
    assert topic == "homebus/devices/responses"
    assert payload["correlation_id"] == "req-7"
    assert payload["timestamp"] == 42
    assert qos == 1
    assert retain is False
    assert publisher.get_stats()["message_count"] == 1


def test_publish_failure_is_counted_not_raised() -> None:
    publisher = ResponsePublisher(_Bus(result=False), "r", create_logger("test_responses"))

    assert publisher.publish_response(_response()) is False
    assert publisher.get_stats() == {"message_count": 0, "failure_count": 1, "topic": "r"}


def test_bus_exception_is_swallowed() -> None:
    publisher = ResponsePublisher(_Bus(error=ConnectionError("gone")), "r", create_logger("test_responses"))

    assert publisher.publish_response(_response()) is False
    assert publisher.get_stats()["failure_count"] == 1
