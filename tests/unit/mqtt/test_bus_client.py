from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any, Dict, List, Tuple

import paho.mqtt.client as mqtt
import pytest

from homebus_mqtt import MQTTBusClient
from homebus_service import DeviceControlService, ServiceConfig


class _RecordingPahoClient:
    def __init__(self, subscribe_rc: int = mqtt.MQTT_ERR_SUCCESS, publish_rc: int = mqtt.MQTT_ERR_SUCCESS) -> None:
        self.subscribe_rc = subscribe_rc
        self.publish_rc = publish_rc
        self.subscribed: List[Tuple[str, int]] = []
        self.published: List[Dict[str, Any]] = []

    def subscribe(self, topic, qos=0):
        self.subscribed.append((topic, qos))
        return self.subscribe_rc, len(self.subscribed)

    def publish(self, topic, payload=None, qos=0, retain=False):
        self.published.append({"topic": topic, "payload": payload, "qos": qos, "retain": retain})
        return SimpleNamespace(rc=self.publish_rc)


class _BrokerSession(_RecordingPahoClient):
    """Answers connect() with CONNACK and one SUBACK per subscription, synchronously."""

    def __init__(self, bus: MQTTBusClient, refused: Tuple[str, ...] = (), **kwargs) -> None:
        super().__init__(**kwargs)
        self.bus = bus
        self.refused = refused

    def connect(self, host, port, keepalive=60):
        self.bus._on_connect(self, None, {}, SimpleNamespace(is_failure=False), None)
        for mid, (topic, _) in enumerate(list(self.subscribed), start=1):
            if self.subscribe_rc == mqtt.MQTT_ERR_SUCCESS:
                granted = SimpleNamespace(is_failure=topic in self.refused)
                self.bus._on_subscribe(self, None, mid, [granted], None)

    def loop_start(self):
        pass

    def loop_stop(self):
        pass

    def disconnect(self):
        pass


@pytest.fixture()
def bus() -> MQTTBusClient:
    return MQTTBusClient(broker_host="localhost", client_id="test_bus")


def _message(topic: str, payload: bytes) -> SimpleNamespace:
    return SimpleNamespace(topic=topic, payload=payload)


def test_dispatch_invokes_every_matching_handler(bus: MQTTBusClient) -> None:
    calls: List[Tuple[str, str]] = []
    bus.subscribe("homebus/devices/commands/lights", lambda t, p: calls.append(("lights", t)))
    bus.subscribe("homebus/devices/commands/+", lambda t, p: calls.append(("any", t)))

    assert bus.dispatch("homebus/devices/commands/lights", {}) == 2
    assert bus.dispatch("homebus/devices/commands/thermostat", {}) == 1
    assert bus.dispatch("other/topic", {}) == 0

    assert calls == [
        ("lights", "homebus/devices/commands/lights"),
        ("any", "homebus/devices/commands/lights"),
        ("any", "homebus/devices/commands/thermostat"),
    ]


def test_on_message_decodes_json(bus: MQTTBusClient) -> None:
    received: List[Dict[str, Any]] = []
    bus.subscribe("homebus/devices/commands/+", lambda t, p: received.append(p))

    bus._on_message(None, None, _message("homebus/devices/commands/audio", b'{"action": "play"}'))

    assert received == [{"action": "play"}]
    assert bus.get_stats()["received"] == 1


@pytest.mark.parametrize("payload", [b"not json", b"[1, 2]", b"\xff\xfe"])
def test_on_message_drops_invalid_payloads(bus: MQTTBusClient, payload: bytes) -> None:
    received: List[Dict[str, Any]] = []
    bus.subscribe("#", lambda t, p: received.append(p))

    bus._on_message(None, None, _message("homebus/devices/commands/lights", payload))

    assert received == []


def test_failing_handler_does_not_stop_others(bus: MQTTBusClient) -> None:
    received: List[str] = []

    def broken(topic, payload):
        raise RuntimeError("boom")

    bus.subscribe("a/+", broken)
    bus.subscribe("a/b", lambda t, p: received.append(t))

    assert bus.dispatch("a/b", {}) == 2
    assert received == ["a/b"]


@pytest.mark.parametrize("pattern", ["", "a/#/b", "a/b+", "a#"])
def test_invalid_filters_are_rejected(bus: MQTTBusClient, pattern: str) -> None:
    with pytest.raises(ValueError):
        bus.subscribe(pattern, lambda t, p: None)


def test_subscribe_while_disconnected_is_deferred(bus: MQTTBusClient) -> None:
    fake = _RecordingPahoClient()
    bus.client = fake

    bus.subscribe("homebus/devices/commands/lights", lambda t, p: None)

    assert fake.subscribed == []
    assert bus.get_stats()["subscriptions"] == ["homebus/devices/commands/lights"]


def test_on_connect_replays_subscriptions(bus: MQTTBusClient) -> None:
    fake = _RecordingPahoClient()
    bus.subscribe("homebus/devices/commands/lights", lambda t, p: None)
    bus.subscribe("homebus/devices/commands/+", lambda t, p: None, qos=0)

    bus._on_connect(fake, None, {}, SimpleNamespace(is_failure=False), None)

    assert bus.is_connected()
    assert fake.subscribed == [
        ("homebus/devices/commands/lights", 1),
        ("homebus/devices/commands/+", 0),
    ]


def test_failed_connack_leaves_client_disconnected(bus: MQTTBusClient) -> None:
    fake = _RecordingPahoClient()
    bus.subscribe("x/y", lambda t, p: None)

    bus._on_connect(fake, None, {}, SimpleNamespace(is_failure=True), None)

    assert not bus.is_connected()
    assert fake.subscribed == []


def test_subscribe_while_connected_is_immediate(bus: MQTTBusClient) -> None:
    fake = _RecordingPahoClient()
    bus.client = fake
    bus._connected.set()

    bus.subscribe("homebus/devices/commands/audio", lambda t, p: None)

    assert fake.subscribed == [("homebus/devices/commands/audio", 1)]


def test_rejected_subscription_raises(bus: MQTTBusClient) -> None:
    bus.client = _RecordingPahoClient(subscribe_rc=mqtt.MQTT_ERR_NO_CONN)
    bus._connected.set()

    with pytest.raises(RuntimeError):
        bus.subscribe("homebus/devices/commands/audio", lambda t, p: None)


def test_publish_requires_connection(bus: MQTTBusClient) -> None:
    assert bus.publish("homebus/devices/responses", {"success": True}) is False
    assert bus.get_stats()["publish_failures"] == 1


def test_publish_serializes_json(bus: MQTTBusClient) -> None:
    fake = _RecordingPahoClient()
    bus.client = fake
    bus._connected.set()

    assert bus.publish("homebus/devices/responses", {"success": True, "message": "ok"}) is True

    sent = fake.published[0]
    assert sent["topic"] == "homebus/devices/responses"
    assert json.loads(sent["payload"]) == {"success": True, "message": "ok"}
    assert sent["qos"] == 1
    assert bus.get_stats()["published"] == 1


def test_publish_error_code_returns_false(bus: MQTTBusClient) -> None:
    bus.client = _RecordingPahoClient(publish_rc=mqtt.MQTT_ERR_QUEUE_SIZE)
    bus._connected.set()

    assert bus.publish("t", {}) is False


def test_publish_exception_is_swallowed(bus: MQTTBusClient) -> None:
    bus._connected.set()

    assert bus.publish("t", {"not_serializable": object()}) is False


def test_on_disconnect_clears_connection(bus: MQTTBusClient) -> None:
    bus._connected.set()

    bus._on_disconnect(None, None, None, "Unspecified error", None)

    assert not bus.is_connected()


def test_disconnect_without_connect_is_noop(bus: MQTTBusClient) -> None:
    bus.disconnect()
    bus.disconnect()

    assert not bus.is_connected()


def test_connect_succeeds_when_every_subscription_is_granted(bus: MQTTBusClient) -> None:
    bus.client = _BrokerSession(bus)
    bus.subscribe("homebus/devices/commands/lights", lambda t, p: None)
    bus.subscribe("homebus/devices/commands/+", lambda t, p: None)

    assert bus.connect(timeout=0.5) is True
    assert bus.subscription_failures == []


def test_connect_fails_when_replayed_subscription_cannot_be_sent(bus: MQTTBusClient) -> None:
    bus.client = _BrokerSession(bus, subscribe_rc=mqtt.MQTT_ERR_NO_CONN)
    bus.subscribe("homebus/devices/commands/lights", lambda t, p: None)

    assert bus.connect(timeout=0.5) is False
    assert bus.subscription_failures == ["homebus/devices/commands/lights"]


def test_connect_fails_when_broker_refuses_subscription(bus: MQTTBusClient) -> None:
    bus.client = _BrokerSession(bus, refused=("homebus/devices/commands/+",))
    bus.subscribe("homebus/devices/commands/lights", lambda t, p: None)
    bus.subscribe("homebus/devices/commands/+", lambda t, p: None)

    assert bus.connect(timeout=0.5) is False
    assert bus.subscription_failures == ["homebus/devices/commands/+"]


def test_connect_fails_without_suback(bus: MQTTBusClient) -> None:
    fake = _BrokerSession(bus)
    fake.connect = lambda host, port, keepalive=60: bus._on_connect(
        fake, None, {}, SimpleNamespace(is_failure=False), None
    )
    bus.client = fake
    bus.subscribe("homebus/devices/commands/lights", lambda t, p: None)

    assert bus.connect(timeout=0.1) is False


def test_service_startup_fails_when_command_subscription_is_refused(bus: MQTTBusClient) -> None:
    bus.client = _BrokerSession(bus, subscribe_rc=mqtt.MQTT_ERR_NO_CONN)
    service = DeviceControlService(config=ServiceConfig(), bus=bus)
    service.start()

    assert bus.connect(timeout=0.5) is False
    assert bus.subscription_failures == [
        "homebus/devices/commands/audio",
        "homebus/devices/commands/lights",
        "homebus/devices/commands/+",
    ]


def test_rejected_subscription_is_not_remembered(bus: MQTTBusClient) -> None:
    bus.client = _RecordingPahoClient(subscribe_rc=mqtt.MQTT_ERR_NO_CONN)
    bus._connected.set()

    with pytest.raises(RuntimeError):
        bus.subscribe("homebus/devices/commands/audio", lambda t, p: None)

    assert bus.get_stats()["subscriptions"] == []
    assert bus.dispatch("homebus/devices/commands/audio", {}) == 0
