"""Test fixtures for the ubisys setup integration tests.

Fixtures are organized by what they stand in for:
- the attribute transport (recording fake used by calibration and setup tests)
- timing (calibration delays patched to zero)
- zigpy clusters and devices (for the zigpy transport adapter)
- Home Assistant (a lightweight hass for service handler tests)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from custom_components.ubisys_setup import const
from custom_components.ubisys_setup.errors import TransportError

# =============================================================================
# TRANSPORT FIXTURES
# =============================================================================


class FakeTransport:
    """AttributeTransport that records every call.

    Reads return ``values[name]`` (0 when unset). Reads of operational_status
    pop from ``status_sequence`` first, so a test can script a moving motor.
    Any (operation, name) pair in ``fail_on`` raises TransportError.
    """

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        status_sequence: Iterable[int] | None = None,
    ) -> None:
        self.calls: list[tuple] = []
        self.values: dict[str, Any] = dict(values or {})
        self.status_sequence: list[int] = list(status_sequence or [])
        self.fail_on: set[tuple[str, str]] = set()

    def _maybe_fail(self, operation: str, names: Iterable[str]) -> None:
        for name in names:
            if (operation, name) in self.fail_on:
                raise TransportError(f"{operation} {name} failed")

    async def read(
        self,
        cluster: str,
        attributes: Sequence[str],
        *,
        manufacturer: int | None = None,
    ) -> dict[str, Any]:
        self.calls.append(("read", cluster, list(attributes), manufacturer))
        self._maybe_fail("read", attributes)
        result: dict[str, Any] = {}
        for name in attributes:
            if name == const.ATTR_OPERATIONAL_STATUS and self.status_sequence:
                result[name] = self.status_sequence.pop(0)
            else:
                result[name] = self.values.get(name, 0)
        return result

    async def write(
        self,
        cluster: str,
        values: Mapping[str, Any],
        *,
        manufacturer: int | None = None,
    ) -> None:
        self.calls.append(("write", cluster, dict(values), manufacturer))
        self._maybe_fail("write", values)

    async def command(self, cluster: str, command: str) -> None:
        self.calls.append(("command", cluster, command))
        self._maybe_fail("command", [command])

    async def write_structured(
        self,
        cluster: str,
        records: Sequence[Any],
        *,
        manufacturer: int | None = None,
    ) -> None:
        self.calls.append(("write_structured", cluster, list(records), manufacturer))

    # Convenience views -----------------------------------------------------

    def writes(self) -> list[tuple[dict[str, Any], int | None]]:
        return [(call[2], call[3]) for call in self.calls if call[0] == "write"]

    def commands(self) -> list[str]:
        return [call[2] for call in self.calls if call[0] == "command"]

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Recording transport with every attribute reading 0."""
    return FakeTransport()


@pytest.fixture
def make_transport():
    """Factory for FakeTransport with preset values or a status sequence."""
    return FakeTransport


# =============================================================================
# TIMING FIXTURES
# =============================================================================


@pytest.fixture
def no_delays(monkeypatch):
    """Patch calibration delays to zero so sequences run instantly."""
    monkeypatch.setattr(const, "SETTLE_TIME", 0)
    monkeypatch.setattr(const, "TRAVEL_SAMPLE_TIME", 0)
    monkeypatch.setattr(const, "MOTOR_STATUS_POLL_INTERVAL", 0)


# =============================================================================
# ZIGBEE MOCK FIXTURES
# =============================================================================


@pytest.fixture
def mock_window_covering_cluster():
    """Mock WindowCovering cluster (0x0102) with async zigpy methods."""
    cluster = MagicMock()
    cluster.cluster_id = 0x0102
    cluster.read_attributes = AsyncMock(return_value=({}, {}))
    cluster.write_attributes = AsyncMock(return_value=[[]])
    cluster.general_command = AsyncMock(return_value=[[]])
    cluster.up_open = AsyncMock()
    cluster.down_close = AsyncMock()
    cluster.stop = AsyncMock()
    return cluster


@pytest.fixture
def mock_device_setup_cluster():
    """Mock DeviceSetup cluster (0xFC00)."""
    cluster = MagicMock()
    cluster.cluster_id = 0xFC00
    cluster.read_attributes = AsyncMock(return_value=({}, {}))
    cluster.write_attributes = AsyncMock(return_value=[[]])
    cluster.general_command = AsyncMock(return_value=[[]])
    return cluster


@pytest.fixture
def mock_zigpy_device(mock_window_covering_cluster, mock_device_setup_cluster):
    """zigpy-like J1 device exposing EP1 Basic, EP2 WindowCovering, EP232 DeviceSetup.

    Built from SimpleNamespace so attribute lookups that are not set fail
    like on a real device.
    """
    basic = MagicMock()
    basic.cluster_id = 0x0000
    basic.read_attributes = AsyncMock(return_value=({"sw_build_id": "1.9.2"}, {}))

    return SimpleNamespace(
        ieee="00:1f:ee:00:00:00:12:34",
        model="J1 (5502)",
        endpoints={
            1: SimpleNamespace(in_clusters={0x0000: basic}),
            2: SimpleNamespace(in_clusters={0x0102: mock_window_covering_cluster}),
            232: SimpleNamespace(in_clusters={0xFC00: mock_device_setup_cluster}),
        },
    )


# =============================================================================
# HOME ASSISTANT FIXTURES
# =============================================================================


class FakeServices:
    """Collects handlers passed to hass.services.async_register."""

    def __init__(self) -> None:
        self.handlers: dict[tuple[str, str], Any] = {}
        self.schemas: dict[tuple[str, str], Any] = {}
        self.supports_response: dict[tuple[str, str], Any] = {}

    def async_register(
        self, domain, service, handler, schema=None, supports_response=None
    ) -> None:
        self.handlers[(domain, service)] = handler
        self.schemas[(domain, service)] = schema
        self.supports_response[(domain, service)] = supports_response

    def has_service(self, domain: str, service: str) -> bool:
        return (domain, service) in self.handlers

    async def async_call(self, domain: str, service: str, data: dict[str, Any]):
        """Validate ``data`` with the registered schema and run the handler."""
        schema = self.schemas[(domain, service)]
        call = SimpleNamespace(data=schema(data) if schema else data)
        return await self.handlers[(domain, service)](call)


@pytest.fixture
def hass():
    """Minimal Home Assistant stand-in for service handler tests.

    Provides hass.data, a recording event bus and a service registry whose
    async_call applies the registered voluptuous schema.
    """
    return SimpleNamespace(
        data={},
        services=FakeServices(),
        bus=SimpleNamespace(async_fire=MagicMock()),
    )
