"""
Device Capabilities - Per-type action table.

Bounded Context: Device-type legality
Responsibilities:
  - Declare legal states for each device type
  - Declare legal actions and the state each one leads to
  - Provide the category label used in "not found" messages

Design:
  - Frozen dataclasses (table is immutable after import)
  - Adding a device type is one new entry in CAPABILITIES
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional, Set


@dataclass(frozen=True)
class ActionSpec:
    """
    One legal action for a device type.

    Attributes:
        target_state: State the device is in after the action
        done_message: Message template when the state was applied
        idempotent: If True, re-applying at target_state is a no-op success
        already_message: Message template for the idempotent no-op case

    Templates are formatted with ``name`` (device display name).
    """
    target_state: str
    done_message: str
    idempotent: bool = False
    already_message: Optional[str] = None

    def __post_init__(self):
        if self.idempotent and not self.already_message:
            raise ValueError(
                f"Idempotent action to '{self.target_state}' needs already_message"
            )


@dataclass(frozen=True)
class DeviceCapabilities:
    """
    Capability set of a device type.

    Attributes:
        device_type: Type string used on the bus (e.g. "lights")
        label: Category used for messages (e.g. "Light")
        states: Legal states for devices of this type
        actions: Action name -> ActionSpec

    Invariants:
        - every action's target_state is a member of states
    """
    device_type: str
    label: str
    states: FrozenSet[str]
    actions: Mapping[str, ActionSpec] = field(default_factory=dict)

    def __post_init__(self):
        for action, spec in self.actions.items():
            if spec.target_state not in self.states:
                raise ValueError(
                    f"Action '{action}' of '{self.device_type}' targets "
                    f"unknown state '{spec.target_state}'"
                )

    def supports(self, action: str) -> bool:
        return action in self.actions

    def is_legal_state(self, state: str) -> bool:
        return state in self.states


_POWER_ACTIONS: Dict[str, ActionSpec] = {
    "on": ActionSpec(
        target_state="on",
        done_message="{name} turned on",
        idempotent=True,
        already_message="{name} is already on",
    ),
    "off": ActionSpec(
        target_state="off",
        done_message="{name} turned off",
        idempotent=True,
        already_message="{name} is already off",
    ),
}

_PLAYBACK_ACTIONS: Dict[str, ActionSpec] = {
    "play": ActionSpec(target_state="playing", done_message="{name} started playing"),
    "stop": ActionSpec(target_state="stopped", done_message="{name} stopped"),
    "pause": ActionSpec(target_state="paused", done_message="{name} paused"),
}


CAPABILITIES: Dict[str, DeviceCapabilities] = {
    "lights": DeviceCapabilities(
        device_type="lights",
        label="Light",
        states=frozenset({"on", "off"}),
        actions=dict(_POWER_ACTIONS),
    ),
    "audio": DeviceCapabilities(
        device_type="audio",
        label="Audio device",
        states=frozenset({"on", "off", "playing", "stopped", "paused"}),
        actions={**_POWER_ACTIONS, **_PLAYBACK_ACTIONS},
    ),
}

GENERIC_LABEL = "Device"


def get_capabilities(device_type: str) -> Optional[DeviceCapabilities]:
    """Capabilities for a device type, or None if the type is unknown."""
    return CAPABILITIES.get(device_type)


def known_device_types() -> Set[str]:
    return set(CAPABILITIES.keys())


def known_actions() -> Set[str]:
    """Union of every action legal on at least one device type."""
    actions: Set[str] = set()
    for capabilities in CAPABILITIES.values():
        actions.update(capabilities.actions.keys())
    return actions


def category_label(device_type: str) -> str:
    """Category label for messages ("Light", "Audio device", "Device")."""
    capabilities = CAPABILITIES.get(device_type)
    return capabilities.label if capabilities else GENERIC_LABEL
