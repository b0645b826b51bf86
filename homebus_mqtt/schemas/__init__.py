"""
Homebus MQTT Schemas
===================

Bounded Context: Data Structures

Immutable, typed data structures for MQTT messages.

Design:
- Frozen dataclasses (immutability)
- to_dict() for JSON serialization
- from_dict() for deserialization with validation

Public API
----------
    Timestamp: Nanosecond epoch wrapper
    CommandRequest: Inbound device command
    CommandResponse: Correlated outbound response
"""

from .common import Timestamp
from .command import CommandRequest, CommandResponse

__all__ = [
    'Timestamp',
    'CommandRequest',
    'CommandResponse',
]
