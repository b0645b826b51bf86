"""
homebus_devices - Device command resolution and state transitions

Bounded Context: Device control core (no bus, no I/O)
Responsibilities:
  - Device model and per-type capability table
  - In-memory device registry (seeded once, volatile)
  - Command target resolution (by id or by type + location)
  - State transitions with per-device locking

Architecture:
  - DeviceRegistry: owns devices, lookup only
  - CommandResolver: (type, location, id) -> Device
  - StateTransitionEngine: (Device, action) -> TransitionResult

Thread Safety:
  - Registry is immutable after construction
  - Device state guarded by a per-device lock
"""

from .capabilities import (
    ActionSpec,
    DeviceCapabilities,
    CAPABILITIES,
    get_capabilities,
    known_actions,
    known_device_types,
    category_label,
)
from .device import Device
from .registry import DeviceRegistry
from .resolver import CommandResolver
from .transitions import StateTransitionEngine, TransitionOutcome, TransitionResult

__all__ = [
    "ActionSpec",
    "DeviceCapabilities",
    "CAPABILITIES",
    "get_capabilities",
    "known_actions",
    "known_device_types",
    "category_label",
    "Device",
    "DeviceRegistry",
    "CommandResolver",
    "StateTransitionEngine",
    "TransitionOutcome",
    "TransitionResult",
]
