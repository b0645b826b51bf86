from __future__ import annotations

from homebus_devices import CommandResolver, DeviceRegistry


def test_resolves_by_explicit_id(registry: DeviceRegistry) -> None:
    resolver = CommandResolver(registry)

    device = resolver.resolve("lights", device_id="bedroom-lights")

    assert device is registry.get("bedroom-lights")


def test_explicit_id_wins_over_location(registry: DeviceRegistry) -> None:
    resolver = CommandResolver(registry)

    device = resolver.resolve("lights", location="kitchen", device_id="bedroom-lights")

    assert device.id == "bedroom-lights"


def test_type_mismatch_on_explicit_id_is_not_found(registry: DeviceRegistry) -> None:
    resolver = CommandResolver(registry)

    assert resolver.resolve("audio", device_id="bedroom-lights") is None


def test_unknown_explicit_id_is_not_found(registry: DeviceRegistry) -> None:
    resolver = CommandResolver(registry)

    assert resolver.resolve("lights", location="kitchen", device_id="nope") is None


def test_resolves_by_type_and_location(registry: DeviceRegistry) -> None:
    resolver = CommandResolver(registry)

    device = resolver.resolve("lights", location="kitchen")

    assert device.id == "kitchen-lights"


def test_empty_location_matches_any(registry: DeviceRegistry) -> None:
    resolver = CommandResolver(registry)

    device = resolver.resolve("audio", location="", device_id="")

    assert device.id == "living-room-audio"


def test_no_match_returns_none(registry: DeviceRegistry) -> None:
    resolver = CommandResolver(registry)

    assert resolver.resolve("lights", location="garage") is None
    assert resolver.resolve("thermostat") is None
