"""
homebus_service - Device control responder service

This package wires the device core to the message bus: it subscribes to
device command topics, runs each command through resolution and state
transition, and publishes one correlated response per command.

Architecture:
- DeviceControlService: Main orchestrator
- ResponseCorrelator: Response assembly
- ServiceConfig: Configuration management (YAML)
"""

from homebus_service.config import DeviceConfig, MQTTConfig, ServiceConfig, DEFAULT_DEVICES
from homebus_service.correlator import ResponseCorrelator
from homebus_service.service import DeviceControlService

__all__ = [
    "DeviceConfig",
    "MQTTConfig",
    "ServiceConfig",
    "DEFAULT_DEVICES",
    "ResponseCorrelator",
    "DeviceControlService",
]
