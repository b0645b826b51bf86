"""
CommandResolver - Map a command's target description to one device.

Resolution Policy:
  1. Explicit device_id: the device must exist AND have the requested type.
     A type mismatch is treated as not-found, not an error.
  2. No device_id: first device of the type at the location (any location
     when location is empty).
  3. Nothing found: None. The caller answers with a failure response.
"""

import logging
from typing import Optional

from homebus_devices.device import Device
from homebus_devices.registry import DeviceRegistry

logger = logging.getLogger(__name__)


class CommandResolver:
    """Resolves (device_type, location, device_id) against a DeviceRegistry."""

    def __init__(self, registry: DeviceRegistry):
        self.registry = registry

    def resolve(
        self,
        device_type: str,
        location: str = "",
        device_id: str = "",
    ) -> Optional[Device]:
        """
        Resolve a command target.

        Args:
            device_type: Type the command is addressed to
            location: Optional location filter (empty = any)
            device_id: Optional explicit device id (empty = unspecified)

        Returns:
            The target device, or None if resolution failed
        """
        if device_id:
            device = self.registry.get(device_id)
            if device is not None and device.type == device_type:
                return device

            logger.debug(
                f"No {device_type} device with id '{device_id}'"
                + (f" (found type {device.type})" if device is not None else "")
            )
            return None

        return self.registry.find_by_type_and_location(device_type, location or "")
