"""Shared helper utilities for the ubisys setup integration.

Functions here resolve a device IEEE address into a zigpy device through the
ZHA gateway, derive the short model name, read the firmware build ID, and
manage the per-device locks used by the services.

This is a leaf module: it imports only Home Assistant, zigpy and the
integration's const/errors/transport modules.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from zigpy.types import EUI64

from .const import CLUSTER_BASIC, DOMAIN, VERBOSE_INFO_LOGGING
from .errors import TransportError, ValidationError
from .transport import AttributeTransport

if TYPE_CHECKING:
    from zigpy.device import Device

_LOGGER = logging.getLogger(__name__)


def resolve_zha_gateway(zha_data: Any) -> Any | None:
    """Extract the ZHA gateway object from hass.data["zha"].

    Home Assistant has changed how it stores ZHA runtime data over time:
    - Older versions exposed a HAZHAData object directly at hass.data["zha"]
    - Transitional versions stored {"gateway": gateway}
    - Current versions store {entry_id: HAZHAData}

    The layouts are checked in order and the first gateway found is returned.
    """
    if not zha_data:
        return None

    candidates: list[Any] = [zha_data]
    if isinstance(zha_data, dict):
        candidates.extend(zha_data.values())

    for candidate in candidates:
        if not candidate:
            continue
        # Newer HA wraps the gateway in a proxy
        for attr_name in ("gateway_proxy", "gateway"):
            gateway = getattr(candidate, attr_name, None)
            if gateway:
                return gateway
        if isinstance(candidate, dict) and candidate.get("gateway"):
            return candidate["gateway"]

    _LOGGER.warning(
        "No ZHA gateway found after checking %d candidates. "
        "ZHA data structure may have changed.",
        len(candidates),
    )
    return None


def get_zigpy_device(hass: HomeAssistant, device_ieee: str) -> Device:
    """Return the zigpy device for ``device_ieee``.

    Raises:
        ValidationError: If the IEEE address is malformed.
        HomeAssistantError: If ZHA is not loaded or the device is unknown.
    """
    try:
        device_eui64 = EUI64.convert(device_ieee)
    except (ValueError, TypeError, AssertionError) as err:
        raise ValidationError(f"Invalid device IEEE address: {device_ieee}") from err

    gateway = resolve_zha_gateway(hass.data.get("zha"))
    if gateway is None:
        raise HomeAssistantError("ZHA integration is not loaded")

    # Old API: gateway.application_controller; new API: proxy.gateway
    if hasattr(gateway, "application_controller"):
        devices = gateway.application_controller.devices
    elif hasattr(gateway, "gateway"):
        devices = gateway.gateway.devices
    else:
        raise HomeAssistantError(
            f"ZHA gateway {type(gateway).__name__} exposes no device table"
        )

    device = devices.get(device_eui64)
    if device is None:
        raise HomeAssistantError(f"Device not found in ZHA: {device_ieee}")
    # ZHA device wrappers expose the zigpy device as .device
    return getattr(device, "device", device)


def extract_model(model: str | None) -> str | None:
    """Return the short model name from a Zigbee model string.

    Example:
        >>> extract_model("J1 (5502)")
        "J1"
        >>> extract_model("S1-R (5601)")
        "S1-R"
    """
    if not model:
        return None
    short = model.split("(")[0].strip()
    return short or None


async def async_read_sw_build_id(transport: AttributeTransport) -> str | None:
    """Read the Basic cluster software build ID, or None if unavailable.

    Devices that do not answer fall back to the legacy DeviceSetup write.
    """
    try:
        values = await transport.read(CLUSTER_BASIC, ["sw_build_id"])
    except TransportError as err:
        _LOGGER.warning("Could not read firmware build ID: %s", err)
        return None
    build_id = values.get("sw_build_id")
    return str(build_id) if build_id else None


def get_device_lock(hass: HomeAssistant, kind: str, device_ieee: str) -> asyncio.Lock:
    """Return the asyncio.Lock guarding ``kind`` operations on one device.

    Locks live in ``hass.data[DOMAIN]["<kind>_locks"]`` keyed by IEEE, so
    each kind ("calibration", "device_setup", "dimmer_setup") serializes
    independently.

    Args:
        hass: Home Assistant instance
        kind: Operation family sharing the lock
        device_ieee: Normalized (lower case) IEEE address
    """
    hass.data.setdefault(DOMAIN, {})
    locks: dict[str, asyncio.Lock] = hass.data[DOMAIN].setdefault(f"{kind}_locks", {})
    return locks.setdefault(device_ieee, asyncio.Lock())


def is_verbose_info_logging(hass: HomeAssistant | None) -> bool:
    """Return whether phase logs are promoted to INFO."""
    if hass is None:
        return VERBOSE_INFO_LOGGING
    domain_data = hass.data.get(DOMAIN, {})
    return bool(domain_data.get("verbose_info_logging", VERBOSE_INFO_LOGGING))
