"""
Device Command Message Schemas
==============================

Bounded Context: Command/Response Data Structures

Message Flow:
    Voice/CLI → CommandRequest → MQTT → DeviceControlService
    DeviceControlService → CommandResponse → MQTT → Requester

Correlation:
    Every CommandResponse carries the correlation_id of the CommandRequest
    it answers. The id is opaque and passed through untouched.

Wire format (JSON, snake_case keys):
    request:  {"correlation_id", "device_type", "location", "device_id", "action"}
    response: {"correlation_id", "device_type", "device_id", "success",
               "message", "timestamp"}
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from .common import Timestamp


def _require_str(data: Dict[str, Any], key: str) -> str:
    if key not in data or data[key] is None:
        raise ValueError(f"Missing required field: '{key}'")
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"Field '{key}' must be a string, got {type(value).__name__}")
    return value


def _optional_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"Field '{key}' must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class CommandRequest:
    """
    Inbound device command.

    Attributes:
        correlation_id: Opaque token echoed back in the response
        device_type: Targeted device category ("lights", "audio", ...)
        action: Requested action ("on", "off", "play", ...)
        location: Optional location ("" = any)
        device_id: Optional explicit device id ("" = unspecified)

    Example:
        >>> req = CommandRequest(
        ...     correlation_id="req-1",
        ...     device_type="lights",
        ...     action="on",
        ...     location="kitchen",
        ... )
    """
    correlation_id: str
    device_type: str
    action: str
    location: str = ""
    device_id: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            'correlation_id': self.correlation_id,
            'device_type': self.device_type,
            'location': self.location,
            'device_id': self.device_id,
            'action': self.action,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CommandRequest':
        """Deserialize from dict.

        ``request_id`` is accepted as an alias of ``correlation_id``.

        Raises:
            ValueError: If required keys are missing or have the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Command payload must be an object, got {type(data).__name__}")

        if 'correlation_id' in data:
            correlation_id = _optional_str(data, 'correlation_id')
        else:
            correlation_id = _optional_str(data, 'request_id')

        return cls(
            correlation_id=correlation_id,
            device_type=_require_str(data, 'device_type'),
            action=_require_str(data, 'action'),
            location=_optional_str(data, 'location'),
            device_id=_optional_str(data, 'device_id'),
        )


@dataclass(frozen=True)
class CommandResponse:
    """
    Outbound response to exactly one CommandRequest.

    Attributes:
        correlation_id: Copied from the request
        device_type: Device category the command was handled as
        device_id: Resolved device id (request's value when unresolved)
        success: Outcome flag
        message: Human-readable outcome
        timestamp: Emission time (nanosecond epoch)
    """
    correlation_id: str
    device_type: str
    device_id: str
    success: bool
    message: str
    timestamp: Timestamp = field(default_factory=Timestamp.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'correlation_id': self.correlation_id,
            'device_type': self.device_type,
            'device_id': self.device_id,
            'success': self.success,
            'message': self.message,
            'timestamp': self.timestamp.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CommandResponse':
        """Deserialize from dict.

        Raises:
            ValueError: If required keys missing or invalid values
        """
        try:
            return cls(
                correlation_id=str(data['correlation_id']),
                device_type=str(data['device_type']),
                device_id=str(data.get('device_id') or ""),
                success=bool(data['success']),
                message=str(data['message']),
                timestamp=Timestamp(int(data['timestamp'])),
            )
        except KeyError as e:
            raise ValueError(f"Missing required CommandResponse field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid CommandResponse data: {e}")
