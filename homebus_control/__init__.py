"""
homebus_control - Command routing for the device service

Bounded Context: Device-type handler registration
Responsibilities:
  - Handler registration per device type
  - Catch-all handler for unrecognized device types
  - Dispatch with clear errors (lists available device types)

Design Philosophy:
  - Explicit registration (fail-fast, no runtime surprises)
  - Thread-safe (registry uses locks)
"""

from .registry import HandlerRegistry, HandlerNotAvailableError, FALLBACK

__all__ = [
    "HandlerRegistry",
    "HandlerNotAvailableError",
    "FALLBACK",
]
