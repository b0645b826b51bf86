"""
Homebus CLI - Command-line interface for device control.

This package provides a CLI for sending device commands to the device
service over MQTT without manually writing JSON.

Usage:
    homebus-cli send lights on --location kitchen
    homebus-cli send audio play --device-id living-room-audio
    homebus-cli send-file config/commands/kitchen_on.yaml
"""

__version__ = "1.0.0"
