"""
HandlerRegistry - Explicit device-type handler registration

Bounded Context: Command routing
Responsibilities:
  - Register one handler per device type
  - Register the catch-all handler for unrecognized device types
  - Route a command to its handler (falling back to the catch-all)
  - Provide introspection (available_device_types, get_help)

Design Motivation:
  Problem: Implicit callbacks make unclear which device types are served
  Solution: Explicit registration; the service subscribes exactly what is
  registered here

Threading: Thread-safe (uses lock for write operations)
"""

from typing import Any, Callable, Dict, Optional, Set
import threading

FALLBACK = "*"


class HandlerNotAvailableError(Exception):
    """Raised when no handler (and no fallback) serves a device type"""
    pass


class HandlerRegistry:
    """
    Registry of device command handlers keyed by device type.

    Thread Safety:
      - Uses lock for write operations (register)
      - Read operations are lock-free (dict reads)

    Example:
        registry = HandlerRegistry()
        registry.register('lights', service.handle_lights, "Light commands")
        registry.register_fallback(service.handle_generic, "Unsupported types")

        registry.dispatch('lights', request)
        registry.dispatch('thermostat', request)  # -> fallback
    """

    def __init__(self):
        self._handlers: Dict[str, Callable] = {}
        self._descriptions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, device_type: str, handler: Callable, description: str) -> None:
        """
        Register a handler for a device type.

        Args:
            device_type: Device type (e.g. "lights"), or "*" for the fallback
            handler: Callable taking the command request
            description: Human-readable description for help text

        Raises:
            ValueError: If device type already registered or empty
        """
        if not device_type:
            raise ValueError("device_type cannot be empty")

        with self._lock:
            if device_type in self._handlers:
                raise ValueError(f"Handler for '{device_type}' already registered")

            self._handlers[device_type] = handler
            self._descriptions[device_type] = description

    def register_fallback(self, handler: Callable, description: str) -> None:
        """Register the catch-all handler for unrecognized device types."""
        self.register(FALLBACK, handler, description)

    def resolve(self, device_type: str) -> Optional[Callable]:
        """Handler for device type, the fallback, or None."""
        handler = self._handlers.get(device_type)
        if handler is None:
            handler = self._handlers.get(FALLBACK)
        return handler

    def dispatch(self, device_type: str, request: Any) -> Any:
        """
        Route a request to its handler.

        Args:
            device_type: Device type of the command
            request: Command request passed to the handler

        Returns:
            Whatever the handler returns

        Raises:
            HandlerNotAvailableError: If neither a handler nor a fallback exists
        """
        handler = self.resolve(device_type)
        if handler is None:
            raise HandlerNotAvailableError(
                f"No handler for device type '{device_type}'. "
                f"Available: {', '.join(sorted(self.available_device_types))}"
            )
        return handler(request)

    def is_available(self, device_type: str) -> bool:
        """True if a dedicated (non-fallback) handler exists."""
        return device_type != FALLBACK and device_type in self._handlers

    def has_fallback(self) -> bool:
        return FALLBACK in self._handlers

    @property
    def available_device_types(self) -> Set[str]:
        """Device types with dedicated handlers (fallback excluded)."""
        return {t for t in self._handlers if t != FALLBACK}

    def items(self):
        """Snapshot of (device_type, handler) pairs, fallback included."""
        return list(self._handlers.items())

    def get_help(self) -> Dict[str, str]:
        return dict(self._descriptions)

    def count(self) -> int:
        return len(self._handlers)
