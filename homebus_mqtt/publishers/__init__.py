"""
MQTT Publishers
==============

Bounded Context: Message Production

Public API
----------
    BasePublisher: Abstract publisher (for custom publishers)
    ResponsePublisher: Device command response publisher
"""

from .base import BasePublisher
from .response import ResponsePublisher

__all__ = [
    'BasePublisher',
    'ResponsePublisher',
]
