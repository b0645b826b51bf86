from __future__ import annotations

import pytest

from homebus_control import FALLBACK, HandlerNotAvailableError, HandlerRegistry


def test_dispatch_routes_to_registered_handler() -> None:
    registry = HandlerRegistry()
    registry.register("lights", lambda req: ("lights", req), "Light commands")

    assert registry.dispatch("lights", "r1") == ("lights", "r1")


def test_dispatch_falls_back_for_unknown_types() -> None:
    registry = HandlerRegistry()
    registry.register("lights", lambda req: "lights", "Light commands")
    registry.register_fallback(lambda req: "fallback", "Catch-all")

    assert registry.dispatch("thermostat", None) == "fallback"
    assert registry.dispatch(FALLBACK, None) == "fallback"


def test_dispatch_without_handler_or_fallback_raises() -> None:
    registry = HandlerRegistry()
    registry.register("audio", lambda req: None, "Audio commands")

    with pytest.raises(HandlerNotAvailableError, match="audio"):
        registry.dispatch("lights", None)


def test_double_registration_is_rejected() -> None:
    registry = HandlerRegistry()
    registry.register("lights", lambda req: None, "Light commands")

    with pytest.raises(ValueError, match="already registered"):
        registry.register("lights", lambda req: None, "Again")

    with pytest.raises(ValueError):
        registry.register("", lambda req: None, "Empty")


def test_introspection_excludes_fallback() -> None:
    registry = HandlerRegistry()
    registry.register("lights", lambda req: None, "Light commands")
    registry.register("audio", lambda req: None, "Audio commands")
    registry.register_fallback(lambda req: None, "Catch-all")

    assert registry.available_device_types == {"lights", "audio"}
    assert registry.is_available("lights")
    assert not registry.is_available(FALLBACK)
    assert registry.has_fallback()
    assert registry.count() == 3
    assert registry.get_help()[FALLBACK] == "Catch-all"
    assert [t for t, _ in registry.items()] == ["lights", "audio", FALLBACK]
