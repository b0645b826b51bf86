"""
StateTransitionEngine - Apply actions to devices.

Bounded Context: Per-device-type state machine
Responsibilities:
  - Reject every action on offline devices
  - Look up the action in the device type's capability table
  - Apply the resulting state (idempotent for on/off)
  - Produce a human-readable outcome message

Threading:
  - Read-check-write of state runs under the device's own lock
  - Unrelated devices never contend (no global lock)

The engine never touches the bus; its only side effect is mutating the
device it was handed.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from homebus_devices.capabilities import known_actions
from homebus_devices.device import Device

logger = logging.getLogger(__name__)


class TransitionOutcome(str, Enum):
    """Outcome category of a single apply() call."""
    CHANGED = "changed"
    UNCHANGED = "unchanged"              # idempotent no-op (already on/off)
    OFFLINE = "offline"
    ILLEGAL_ACTION = "illegal_action"    # known action, wrong device type
    UNKNOWN_ACTION = "unknown_action"

    @property
    def success(self) -> bool:
        return self in (TransitionOutcome.CHANGED, TransitionOutcome.UNCHANGED)


@dataclass(frozen=True)
class TransitionResult:
    """
    Result of applying an action to a device.

    Attributes:
        outcome: Outcome category
        message: Human-readable message (sent back in the response)
        previous_state: Device state before the action
        state: Device state after the action
    """
    outcome: TransitionOutcome
    message: str
    previous_state: str
    state: str

    @property
    def success(self) -> bool:
        return self.outcome.success

    @property
    def changed(self) -> bool:
        return self.outcome is TransitionOutcome.CHANGED

    def __iter__(self):
        """Allow ``success, message = engine.apply(...)``."""
        return iter((self.success, self.message))


class StateTransitionEngine:
    """
    Executes actions against devices using the capability table.

    Example:
        engine = StateTransitionEngine()
        success, message = engine.apply(device, "on")
        # (True, "Kitchen Lights turned on")
    """

    def apply(self, device: Device, action: str) -> TransitionResult:
        """
        Apply an action to a device.

        Args:
            device: Registry-owned device (mutated in place)
            action: Action name ("on", "off", "play", "stop", "pause")

        Returns:
            TransitionResult (never raises for domain failures)
        """
        with device.lock:
            previous = device.state

            if not device.online:
                return self._result(
                    TransitionOutcome.OFFLINE, f"{device.name} is offline", previous, previous
                )

            rule = device.capabilities.actions.get(action)
            if rule is None:
                if action in known_actions():
                    return self._result(
                        TransitionOutcome.ILLEGAL_ACTION,
                        f"Cannot {action} on {device.name}",
                        previous,
                        previous,
                    )
                return self._result(
                    TransitionOutcome.UNKNOWN_ACTION,
                    f"Unknown action: {action}",
                    previous,
                    previous,
                )

            if rule.idempotent and previous == rule.target_state:
                return self._result(
                    TransitionOutcome.UNCHANGED,
                    rule.already_message.format(name=device.name),
                    previous,
                    previous,
                )

            device.state = rule.target_state

        logger.info(f"🔄 {device.id}: {previous} -> {rule.target_state}")
        return self._result(
            TransitionOutcome.CHANGED,
            rule.done_message.format(name=device.name),
            previous,
            rule.target_state,
        )

    def set_availability(self, device: Device, online: bool) -> bool:
        """
        Mark a device online or offline.

        Going offline leaves state untouched; it only blocks transitions.

        Returns:
            True if the flag changed
        """
        with device.lock:
            if device.online == online:
                return False
            device.online = online

        logger.info(f"📶 {device.id} is now {'online' if online else 'offline'}")
        return True

    @staticmethod
    def _result(
        outcome: TransitionOutcome,
        message: str,
        previous_state: str,
        state: str,
    ) -> TransitionResult:
        return TransitionResult(
            outcome=outcome,
            message=message,
            previous_state=previous_state,
            state=state,
        )
