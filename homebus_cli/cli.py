"""
Homebus CLI - Main entry point.

Provides command-line interface for sending device commands over MQTT.
"""

import argparse
import sys
import uuid
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from homebus_mqtt.schemas import CommandRequest
from .mqtt_client import MQTTCommandClient

DEFAULT_TOPIC_TEMPLATE = "homebus/devices/commands/{device_type}"


def load_yaml_config(config_path: str) -> Dict[str, Any]:
    """
    Load YAML command file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If YAML is invalid
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"Command file {config_path} must contain a mapping")
    return config


def build_command(
    device_type: str,
    action: str,
    location: str = "",
    device_id: str = "",
    correlation_id: Optional[str] = None,
) -> CommandRequest:
    """Build a CommandRequest, generating a correlation id when none is given."""
    return CommandRequest(
        correlation_id=correlation_id or str(uuid.uuid4()),
        device_type=device_type,
        action=action,
        location=location or "",
        device_id=device_id or "",
    )


def send_command(
    request: CommandRequest,
    broker: str = "localhost",
    port: int = 1883,
    topic_template: str = DEFAULT_TOPIC_TEMPLATE,
) -> None:
    """Send command to the device service via MQTT."""
    topic = topic_template.format(device_type=request.device_type)

    client = MQTTCommandClient(broker=broker, port=port)
    client.send_command(topic, request.to_dict(), qos=1)
    print(f"   correlation_id: {request.correlation_id}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Homebus CLI - Send device commands over MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Turn on the kitchen lights
  homebus-cli send lights on --location kitchen

  # Play on a specific audio device
  homebus-cli send audio play --device-id living-room-audio

  # Send a command defined in YAML
  homebus-cli send-file config/commands/kitchen_on.yaml
"""
    )

    # Global arguments
    parser.add_argument(
        "--broker",
        default="localhost",
        help="MQTT broker host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=1883,
        help="MQTT broker port (default: 1883)"
    )
    parser.add_argument(
        "--topic-template",
        default=DEFAULT_TOPIC_TEMPLATE,
        help=f"Command topic template (default: {DEFAULT_TOPIC_TEMPLATE})"
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # send command
    send = subparsers.add_parser('send', help='Send a device command')
    send.add_argument('device_type', help='Device type (e.g. lights, audio)')
    send.add_argument('action', help='Action (on, off, play, stop, pause)')
    send.add_argument('--location', default="", help='Device location (e.g. kitchen)')
    send.add_argument('--device-id', default="", help='Explicit device id')
    send.add_argument('--correlation-id', default=None, help='Correlation id (default: uuid4)')

    # send-file command
    send_file = subparsers.add_parser('send-file', help='Send a command defined in YAML')
    send_file.add_argument('config', help='Path to command YAML')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == 'send':
            request = build_command(
                args.device_type,
                args.action,
                location=args.location,
                device_id=args.device_id,
                correlation_id=args.correlation_id,
            )

        elif args.command == 'send-file':
            data = load_yaml_config(args.config)
            data.setdefault('correlation_id', str(uuid.uuid4()))
            request = CommandRequest.from_dict(data)

        send_command(request, args.broker, args.port, args.topic_template)

    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
