"""
Configuration schema for the device control service.

This module defines the configuration structure for the service: MQTT
connection and topics, plus the seed devices the registry is populated
with at startup.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import yaml

from homebus_devices.capabilities import get_capabilities, known_device_types

WILDCARD_DEVICE_TYPE = "*"


@dataclass(frozen=True)
class DeviceConfig:
    """Seed device definition."""

    id: str
    type: str
    name: str
    location: str = ""
    state: str = "off"
    online: bool = True

    def __post_init__(self):
        """Validate device configuration."""
        if not self.id:
            raise ValueError("Device id cannot be empty")

        if not self.name:
            raise ValueError(f"Device '{self.id}' must have a name")

        if not isinstance(self.online, bool):
            raise ValueError(
                f"online for device '{self.id}' must be true or false, got {self.online!r}"
            )

        capabilities = get_capabilities(self.type)
        if capabilities is None:
            raise ValueError(
                f"Invalid type for device '{self.id}': {self.type}. "
                f"Must be one of {sorted(known_device_types())}"
            )

        if not capabilities.is_legal_state(self.state):
            raise ValueError(
                f"Invalid state for device '{self.id}': {self.state}. "
                f"Must be one of {sorted(capabilities.states)}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeviceConfig":
        try:
            return cls(
                id=data["id"],
                type=data["type"],
                name=data.get("name") or data["id"],
                location=data.get("location") or "",
                state=data.get("state", "off"),
                online=data.get("online", True),
            )
        except KeyError as e:
            raise ValueError(f"Missing required device field: {e}")


DEFAULT_DEVICES: Tuple[DeviceConfig, ...] = (
    DeviceConfig(
        id="living-room-lights",
        type="lights",
        name="Living Room Lights",
        location="living room",
    ),
    DeviceConfig(
        id="bedroom-lights",
        type="lights",
        name="Bedroom Lights",
        location="bedroom",
    ),
    DeviceConfig(
        id="kitchen-lights",
        type="lights",
        name="Kitchen Lights",
        location="kitchen",
    ),
    DeviceConfig(
        id="living-room-audio",
        type="audio",
        name="Living Room Audio",
        location="living room",
    ),
)


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 1  # Control plane QoS (at-least-once)
    client_id: Optional[str] = None

    command_topic: str = "homebus/devices/commands/{device_type}"
    response_topic: str = "homebus/devices/responses"

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not self.broker:
            raise ValueError("MQTT broker cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

        if "{device_type}" not in self.command_topic.split("/"):
            raise ValueError(
                f"command_topic must contain '{{device_type}}' as a whole level, "
                f"got {self.command_topic}"
            )

        if not self.response_topic or any(c in self.response_topic for c in "+#"):
            raise ValueError(
                f"response_topic must be a concrete topic, got {self.response_topic!r}"
            )

    def command_topic_for(self, device_type: str) -> str:
        """
        Command topic for a device type.

        The catch-all device type "*" maps to the MQTT single-level
        wildcard "+".
        """
        level = "+" if device_type == WILDCARD_DEVICE_TYPE else device_type
        return self.command_topic.format(device_type=level)

    def device_type_from_topic(self, topic: str) -> Optional[str]:
        """Device-type level of a concrete command topic, or None if it does not match."""
        expected = self.command_topic.split("/")
        levels = topic.split("/")
        if len(expected) != len(levels):
            return None

        device_type = None
        for pattern_level, level in zip(expected, levels):
            if pattern_level == "{device_type}":
                device_type = level
            elif pattern_level != level:
                return None
        return device_type


@dataclass(frozen=True)
class ServiceConfig:
    """
    Main configuration for the device control service.

    Loaded from YAML and validated at startup.
    Immutable after construction (frozen dataclass).
    """

    service_id: str = "device_service"
    mqtt_config: MQTTConfig = field(default_factory=MQTTConfig)
    devices: Tuple[DeviceConfig, ...] = DEFAULT_DEVICES

    def __post_init__(self):
        """Validate service configuration."""
        if not self.service_id:
            raise ValueError("service_id cannot be empty")

        seen = set()
        for device in self.devices:
            if device.id in seen:
                raise ValueError(f"Duplicate device id in configuration: {device.id}")
            seen.add(device.id)

    @property
    def client_id(self) -> str:
        return self.mqtt_config.client_id or f"homebus_{self.service_id}"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ServiceConfig":
        data = data or {}

        mqtt_config = MQTTConfig(**(data.get("mqtt_config") or {}))

        devices_data = data.get("devices")
        if devices_data is None:
            devices = DEFAULT_DEVICES
        else:
            devices = tuple(DeviceConfig.from_dict(d) for d in devices_data)

        return cls(
            service_id=data.get("service_id", "device_service"),
            mqtt_config=mqtt_config,
            devices=devices,
        )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "ServiceConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            service_id: "device_service"

            mqtt_config:
              broker: "localhost"
              port: 1883
              qos: 1
              command_topic: "homebus/devices/commands/{device_type}"
              response_topic: "homebus/devices/responses"

            devices:
              - id: "kitchen-lights"
                type: "lights"
                name: "Kitchen Lights"
                location: "kitchen"
                state: "off"
                online: true

        Omitting ``devices`` seeds the default device set.
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data)
