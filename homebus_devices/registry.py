"""
Device Registry - In-memory set of known devices.

This module provides the DeviceRegistry class which owns the devices the
service can control. The registry is populated once at startup and never
grows or shrinks afterwards.

Lookup Policy:
- get(): exact id match
- find_by_type_and_location(): first device of the type (in registration
  order) whose location matches exactly; an empty location matches any

Thread Safety:
- The device map is built in __init__ and never mutated, so lookups are
  lock-free
- Devices are returned by reference; their state is guarded by the
  per-device lock (see StateTransitionEngine)
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from homebus_devices.device import Device

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """
    Registry of controllable devices.

    Usage:
        registry = DeviceRegistry([
            Device(id="kitchen-lights", type="lights",
                   name="Kitchen Lights", location="kitchen"),
        ])

        registry.get("kitchen-lights")
        registry.find_by_type_and_location("lights", "kitchen")
    """

    def __init__(self, devices: Iterable[Device] = ()):
        """
        Initialize registry with a fixed device set.

        Args:
            devices: Devices to register (registration order is the
                tie-break order for find_by_type_and_location)

        Raises:
            ValueError: If two devices share the same id
        """
        self._devices: Dict[str, Device] = {}
        for device in devices:
            if device.id in self._devices:
                raise ValueError(f"Device '{device.id}' already registered")
            self._devices[device.id] = device

        logger.debug(f"DeviceRegistry initialized with {len(self._devices)} devices")

    @classmethod
    def from_configs(cls, device_configs: Iterable) -> "DeviceRegistry":
        """
        Build registry from DeviceConfig entries.

        Args:
            device_configs: Objects exposing id, type, name, location,
                state and online attributes
        """
        return cls(
            Device(
                id=cfg.id,
                type=cfg.type,
                name=cfg.name,
                location=cfg.location,
                state=cfg.state,
                online=cfg.online,
            )
            for cfg in device_configs
        )

    def get(self, device_id: str) -> Optional[Device]:
        """Device with this id, or None."""
        return self._devices.get(device_id)

    def all(self) -> List[Device]:
        """Snapshot list of all devices (registration order)."""
        return list(self._devices.values())

    def find_by_type_and_location(
        self,
        device_type: str,
        location: str = "",
    ) -> Optional[Device]:
        """
        Find first device of a type, optionally restricted to a location.

        Args:
            device_type: Required device type
            location: Exact location to match; empty string matches any

        Returns:
            First matching device in registration order, or None
        """
        for device in self._devices.values():
            if device.type != device_type:
                continue
            if not location or device.location == location:
                return device
        return None

    def status_report(self) -> List[str]:
        """
        One human-readable status line per device.

        Example:
            ['Kitchen Lights (lights in kitchen): 🟡 off']
        """
        lines = []
        for device in self._devices.values():
            if not device.online:
                status = "🔴 offline"
            elif device.is_active:
                status = f"🟢 {device.state}"
            else:
                status = f"🟡 {device.state}"
            lines.append(f"{device.name} ({device.type} in {device.location}): {status}")
        return lines

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices

    def __iter__(self) -> Iterator[Device]:
        return iter(self.all())
