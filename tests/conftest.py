from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import paho.mqtt.client as mqtt
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from homebus_devices import Device, DeviceRegistry  # noqa: E402
from homebus_service import DeviceControlService, ServiceConfig  # noqa: E402


class FakeBus:
    """In-memory bus: records subscriptions and publishes, delivers by topic."""

    def __init__(self, publish_ok: bool = True) -> None:
        self.publish_ok = publish_ok
        self.subscriptions: List[Tuple[str, Callable[[str, Dict[str, Any]], None]]] = []
        self.published: List[Tuple[str, Dict[str, Any]]] = []
        self.disconnected = False

    def subscribe(self, topic_pattern, handler, qos=None) -> None:
        self.subscriptions.append((topic_pattern, handler))

    def publish(self, topic, payload, qos=None, retain=False) -> bool:
        if not self.publish_ok:
            return False
        self.published.append((topic, payload))
        return True

    def disconnect(self) -> None:
        self.disconnected = True

    def deliver(self, topic: str, payload: Dict[str, Any]) -> int:
        handlers = [h for pattern, h in self.subscriptions if mqtt.topic_matches_sub(pattern, topic)]
        for handler in handlers:
            handler(topic, payload)
        return len(handlers)

    @property
    def responses(self) -> List[Dict[str, Any]]:
        return [payload for _, payload in self.published]


@pytest.fixture()
def seed_devices() -> List[Device]:
    return [
        Device(id="living-room-lights", type="lights", name="Living Room Lights", location="living room"),
        Device(id="bedroom-lights", type="lights", name="Bedroom Lights", location="bedroom"),
        Device(id="kitchen-lights", type="lights", name="Kitchen Lights", location="kitchen"),
        Device(id="living-room-audio", type="audio", name="Living Room Audio", location="living room"),
    ]


@pytest.fixture()
def registry(seed_devices: List[Device]) -> DeviceRegistry:
    return DeviceRegistry(seed_devices)


@pytest.fixture()
def fake_bus() -> FakeBus:
    return FakeBus()


@pytest.fixture()
def service(fake_bus: FakeBus) -> DeviceControlService:
    svc = DeviceControlService(config=ServiceConfig(), bus=fake_bus)
    svc.start()
    return svc
