#!/usr/bin/env python3
"""
Device Control Service - Entry Point
====================================

This script starts the Homebus device service, which:
- Seeds the in-memory device registry from configuration
- Subscribes to device command topics on the MQTT broker
- Applies each command to the resolved device
- Publishes one correlated response per command

Usage:
    python run_device_service.py --config config/device_service.yaml

Lifecycle:
    1. Load configuration from YAML
    2. Setup logging (console + file)
    3. Create bus client and DeviceControlService
    4. Start service (records command subscriptions)
    5. Connect to broker (fatal unless every subscription is granted)
    6. Wait for stop signal (Ctrl+C or SIGTERM)
    7. Graceful shutdown

Signals:
    - SIGTERM: Graceful shutdown
    - SIGINT (Ctrl+C): Graceful shutdown
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from homebus_mqtt import MQTTBusClient, create_logger
from homebus_service import DeviceControlService, ServiceConfig


# ─────────────────────────────────────────────────────────────────────────────
# Logging Setup
# ─────────────────────────────────────────────────────────────────────────────

def setup_logging(log_file: Optional[Path] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Setup logging for the device service.

    Args:
        log_file: Optional path to log file
        level: Root log level

    Returns:
        Logger instance for the entry point
    """
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )

    return logging.getLogger("run_device_service")


# ─────────────────────────────────────────────────────────────────────────────
# Main Service
# ─────────────────────────────────────────────────────────────────────────────

class DeviceServiceApp:
    """
    Main application wrapper for DeviceControlService.

    Handles:
    - Configuration loading
    - Component initialization (bus client, service)
    - Signal handling (SIGTERM, SIGINT)
    - Graceful shutdown
    """

    def __init__(
        self,
        config_path: Optional[Path],
        log_file: Optional[Path] = None,
        connect_timeout: float = 10.0,
        log_level: int = logging.INFO,
    ):
        self.config_path = config_path
        self.connect_timeout = connect_timeout
        self.logger = setup_logging(log_file, log_level)

        # Components (initialized in setup())
        self.config: Optional[ServiceConfig] = None
        self.bus: Optional[MQTTBusClient] = None
        self.service: Optional[DeviceControlService] = None

        self._stop_event = threading.Event()
        self._shutdown_requested = False

    def setup(self) -> None:
        """
        Setup all components.

        Raises:
            RuntimeError: If the broker is unreachable or subscriptions fail
        """
        self.logger.info("🏠 Starting Homebus Device Service")

        if self.config_path:
            self.logger.info(f"📄 Loading configuration: {self.config_path}")
            self.config = ServiceConfig.from_yaml(self.config_path)
        else:
            self.logger.info("📄 No configuration file, using defaults")
            self.config = ServiceConfig()
        self.logger.info(f"✅ Configuration loaded (service_id={self.config.service_id})")

        mqtt_config = self.config.mqtt_config
        self.bus = MQTTBusClient(
            broker_host=mqtt_config.broker,
            broker_port=mqtt_config.port,
            client_id=self.config.client_id,
            logger=create_logger("bus"),
            username=mqtt_config.username,
            password=mqtt_config.password,
            qos=mqtt_config.qos,
        )

        self.service = DeviceControlService(config=self.config, bus=self.bus)
        self.service.setup()

        # Subscriptions are recorded before connecting; connect() fails unless all are granted
        self.service.start()

        self.logger.info(f"🔌 Connecting to MQTT broker {mqtt_config.broker}:{mqtt_config.port}")
        if not self.bus.connect(timeout=self.connect_timeout):
            failures = self.bus.subscription_failures
            if failures:
                raise RuntimeError(f"Broker refused command subscriptions: {', '.join(failures)}")
            raise RuntimeError(
                f"Failed to connect to MQTT broker at {mqtt_config.broker}:{mqtt_config.port}"
            )
        self.logger.info("✅ Connected to MQTT broker, command subscriptions granted")

    def run(self) -> None:
        """Block until shutdown is requested."""
        if not self.service:
            raise RuntimeError("Service not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        self.logger.info("🏠 Device service is running. Press Ctrl+C to stop.")
        try:
            while not self._stop_event.wait(timeout=1.0):
                pass
        except KeyboardInterrupt:
            self.logger.info("⚠️  KeyboardInterrupt received")
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Graceful shutdown of all components."""
        if self._shutdown_requested:
            return
        self._shutdown_requested = True

        self.logger.info("🛑 Shutting down device service...")

        if self.service:
            self.service.stop()
        elif self.bus:
            self.bus.disconnect()

        self.logger.info("👋 Device service stopped")

    def _signal_handler(self, signum, frame):
        signal_name = signal.Signals(signum).name
        self.logger.info(f"⚠️  Received signal {signal_name} ({signum})")
        self._stop_event.set()


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Homebus Device Service - MQTT device command responder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start with config file
  python run_device_service.py --config config/device_service.yaml

  # Start with default devices and a local broker, console logging only
  python run_device_service.py --no-log-file
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='Path to service configuration YAML file (default: built-in defaults)'
    )
    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/device_service.log'),
        help='Path to log file (default: logs/device_service.log)'
    )
    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )
    parser.add_argument(
        '--connect-timeout',
        type=float,
        default=10.0,
        help='Seconds to wait for the broker (default: 10)'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable DEBUG logging'
    )

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    if args.config is not None and not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    app = DeviceServiceApp(
        config_path=args.config,
        log_file=None if args.no_log_file else args.log_file,
        connect_timeout=args.connect_timeout,
        log_level=logging.DEBUG if args.debug else logging.INFO,
    )

    try:
        app.setup()
    except Exception as e:
        print(f"❌ Failed to start device service: {e}", file=sys.stderr)
        app.shutdown()
        sys.exit(1)

    app.run()


if __name__ == '__main__':
    main()
