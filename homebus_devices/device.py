"""
Device - Controllable endpoint with mutable operational state.

Thread Safety:
- Each Device owns its own lock (per-device mutual exclusion)
- state/online are only mutated by StateTransitionEngine under that lock
- type is fixed at construction; state writes are checked against the type
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict

from homebus_devices.capabilities import DeviceCapabilities, get_capabilities


@dataclass(eq=False)
class Device:
    """
    Simulated smart home device.

    Attributes:
        id: Unique identifier within the registry
        type: Device category (e.g. "lights", "audio"), fixed after creation
        name: Display label
        location: Room/zone label used for resolution
        state: Current operational state (legal for type)
        online: Availability flag (offline devices reject all actions)

    Invariants:
        - type has an entry in the capability table
        - state is a legal state for type

    Example:
        >>> device = Device(id="kitchen-lights", type="lights",
        ...                 name="Kitchen Lights", location="kitchen")
        >>> device.state
        'off'
    """
    id: str
    type: str
    name: str
    location: str = ""
    state: str = "off"
    online: bool = True
    lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def __post_init__(self):
        """Validate invariants."""
        if not self.id:
            raise ValueError("Device id cannot be empty")

        capabilities = get_capabilities(self.type)
        if capabilities is None:
            raise ValueError(
                f"Unknown device type '{self.type}' for device '{self.id}'"
            )

        if not capabilities.is_legal_state(self.state):
            raise ValueError(
                f"Invalid state '{self.state}' for {self.type} device '{self.id}'. "
                f"Must be one of {sorted(capabilities.states)}"
            )

        # Freeze type and guard state after validation
        object.__setattr__(self, "_initialized", True)

    def __setattr__(self, name, value):
        if getattr(self, "_initialized", False):
            if name == "type":
                raise AttributeError(f"Device type is immutable (device '{self.id}')")
            if name == "state" and not self.capabilities.is_legal_state(value):
                raise ValueError(
                    f"Invalid state '{value}' for {self.type} device '{self.id}'. "
                    f"Must be one of {sorted(self.capabilities.states)}"
                )
        super().__setattr__(name, value)

    @property
    def capabilities(self) -> DeviceCapabilities:
        return get_capabilities(self.type)

    @property
    def is_active(self) -> bool:
        """True when online and on or playing."""
        return self.online and self.state in ("on", "playing")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize public fields to JSON-compatible dict."""
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "location": self.location,
            "state": self.state,
            "online": self.online,
        }
