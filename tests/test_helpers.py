"""Tests for shared helper utilities."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from homeassistant.exceptions import HomeAssistantError
from zigpy.types import EUI64

from custom_components.ubisys_setup.const import DOMAIN
from custom_components.ubisys_setup.errors import ValidationError
from custom_components.ubisys_setup.helpers import (
    async_read_sw_build_id,
    extract_model,
    get_device_lock,
    get_zigpy_device,
    is_verbose_info_logging,
    resolve_zha_gateway,
)

IEEE = "00:1f:ee:00:00:00:12:34"

# =============================================================================
# ZHA gateway and device resolution
# =============================================================================


def _legacy_hass(devices):
    gateway = SimpleNamespace(application_controller=SimpleNamespace(devices=devices))
    return SimpleNamespace(data={"zha": SimpleNamespace(gateway=gateway)})


def test_resolve_gateway_from_entry_mapping():
    proxy = SimpleNamespace(gateway=SimpleNamespace(devices={}))
    zha_data = {"entry_id": SimpleNamespace(gateway_proxy=proxy)}
    assert resolve_zha_gateway(zha_data) is proxy


def test_resolve_gateway_from_plain_dict():
    gateway = SimpleNamespace()
    assert resolve_zha_gateway({"gateway": gateway}) is gateway


def test_resolve_gateway_missing():
    assert resolve_zha_gateway(None) is None
    assert resolve_zha_gateway({"entry_id": SimpleNamespace()}) is None


def test_get_zigpy_device_from_application_controller():
    device = SimpleNamespace(ieee=IEEE)
    hass = _legacy_hass({EUI64.convert(IEEE): device})
    assert get_zigpy_device(hass, IEEE) is device


def test_get_zigpy_device_unwraps_zha_device():
    zigpy_device = SimpleNamespace(ieee=IEEE)
    zha_device = SimpleNamespace(device=zigpy_device)
    proxy = SimpleNamespace(gateway=SimpleNamespace(devices={EUI64.convert(IEEE): zha_device}))
    hass = SimpleNamespace(data={"zha": {"entry_id": SimpleNamespace(gateway_proxy=proxy)}})

    assert get_zigpy_device(hass, IEEE) is zigpy_device


def test_get_zigpy_device_unknown_device():
    hass = _legacy_hass({})
    with pytest.raises(HomeAssistantError, match="Device not found"):
        get_zigpy_device(hass, IEEE)


def test_get_zigpy_device_without_zha():
    hass = SimpleNamespace(data={})
    with pytest.raises(HomeAssistantError, match="ZHA integration is not loaded"):
        get_zigpy_device(hass, IEEE)


@pytest.mark.parametrize("ieee", ["zz:zz:zz:zz:zz:zz:zz:zz", "00:11"])
def test_get_zigpy_device_invalid_ieee(ieee):
    hass = _legacy_hass({})
    with pytest.raises(ValidationError):
        get_zigpy_device(hass, ieee)


# =============================================================================
# Model and firmware helpers
# =============================================================================


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("J1 (5502)", "J1"),
        ("S1-R (5601)", "S1-R"),
        ("C4", "C4"),
        ("", None),
        (None, None),
    ],
)
def test_extract_model(raw, expected):
    assert extract_model(raw) == expected


@pytest.mark.asyncio
async def test_read_sw_build_id(make_transport):
    transport = make_transport(values={"sw_build_id": "1.10.2"})
    assert await async_read_sw_build_id(transport) == "1.10.2"
    assert transport.calls == [("read", "basic", ["sw_build_id"], None)]


@pytest.mark.asyncio
async def test_read_sw_build_id_failure_returns_none(fake_transport):
    fake_transport.fail_on.add(("read", "sw_build_id"))
    assert await async_read_sw_build_id(fake_transport) is None


@pytest.mark.asyncio
async def test_read_sw_build_id_empty_returns_none(make_transport):
    transport = make_transport(values={"sw_build_id": ""})
    assert await async_read_sw_build_id(transport) is None


# =============================================================================
# Locks and logging flags
# =============================================================================


def test_device_lock_is_shared_per_kind_and_device(hass):
    lock = get_device_lock(hass, "calibration", IEEE)
    assert get_device_lock(hass, "calibration", IEEE) is lock
    assert get_device_lock(hass, "device_setup", IEEE) is not lock
    assert get_device_lock(hass, "calibration", "00:11:22:33:44:55:66:77") is not lock
    assert IEEE in hass.data[DOMAIN]["calibration_locks"]


def test_verbose_info_logging_flag(hass):
    assert is_verbose_info_logging(None) is False
    assert is_verbose_info_logging(hass) is False
    hass.data[DOMAIN] = {"verbose_info_logging": True}
    assert is_verbose_info_logging(hass) is True
