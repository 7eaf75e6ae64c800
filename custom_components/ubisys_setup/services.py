"""Service registration for the ubisys setup integration.

Services:
- configure_j1: apply J1 window covering settings, optionally calibrating
- get_j1_configuration: read the J1 calibration report
- configure_device_setup: write DeviceSetup input configurations and actions
- get_device_setup: read DeviceSetup input configurations and actions
- configure_d1: set the D1 phase control mode and minimum on level
- get_d1_configuration: read the D1 dimmer capabilities, status and settings
"""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv

from .const import (
    BASE_CONFIG_ATTRS,
    CONF_CALIBRATE,
    CONF_DEVICE_IEEE,
    CONF_INPUT_ACTION_TEMPLATES,
    CONF_INPUT_ACTIONS,
    CONF_INPUT_CONFIGURATIONS,
    CONF_MINIMUM_ON_LEVEL,
    CONF_MODEL,
    CONF_PHASE_CONTROL_MODE,
    CONF_STEPS_PER_SECOND,
    CONVERTED_OVERRIDES,
    D1_MODELS,
    DEFAULT_STEPS_PER_SECOND,
    DOMAIN,
    EVENT_CALIBRATION_COMPLETE,
    EVENT_CALIBRATION_FAILED,
    OVERRIDE_ATTRS,
    PHASE_CONTROL_MODES,
    SERVICE_CONFIGURE_D1,
    SERVICE_CONFIGURE_DEVICE_SETUP,
    SERVICE_CONFIGURE_J1,
    SERVICE_GET_D1_CONFIGURATION,
    SERVICE_GET_DEVICE_SETUP,
    SERVICE_GET_J1_CONFIGURATION,
    UINT16_MAX,
)
from .device_setup import async_configure_device_setup, async_read_device_setup
from .dimmer_setup import async_configure_dimmer_setup, async_read_dimmer_setup
from .errors import ValidationError
from .helpers import (
    extract_model,
    get_device_lock,
    get_zigpy_device,
    is_verbose_info_logging,
)
from .j1_calibration import (
    async_read_calibration_report,
    async_run_calibration,
    validate_calibration_options,
)
from .logtools import Stopwatch, phase_level
from .transport import ZigpyAttributeTransport

_LOGGER = logging.getLogger(__name__)

_UINT8 = vol.All(vol.Coerce(int), vol.Range(min=0, max=0xFF))
_UINT16 = vol.All(vol.Coerce(int), vol.Range(min=0, max=UINT16_MAX))
_NON_NEGATIVE = vol.All(vol.Coerce(float), vol.Range(min=0))

DEVICE_SCHEMA = vol.Schema({vol.Required(CONF_DEVICE_IEEE): cv.string})

CONFIGURE_J1_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_DEVICE_IEEE): cv.string,
        vol.Optional(CONF_CALIBRATE, default=False): cv.boolean,
        vol.Optional(CONF_STEPS_PER_SECOND, default=DEFAULT_STEPS_PER_SECOND): vol.All(
            vol.Coerce(float), vol.Range(min=0, min_included=False)
        ),
        **{vol.Optional(attribute): _UINT8 for attribute in BASE_CONFIG_ATTRS},
        **{vol.Optional(attribute): _UINT16 for attribute in OVERRIDE_ATTRS},
        **{vol.Optional(source): _NON_NEGATIVE for _, source, _ in CONVERTED_OVERRIDES},
    }
)

CONFIGURE_DEVICE_SETUP_SCHEMA = vol.All(
    vol.Schema(
        {
            vol.Required(CONF_DEVICE_IEEE): cv.string,
            vol.Optional(CONF_MODEL): cv.string,
            vol.Optional(CONF_INPUT_CONFIGURATIONS): vol.All(cv.ensure_list, [_UINT8]),
            vol.Optional(CONF_INPUT_ACTIONS): vol.All(
                cv.ensure_list, [vol.All(cv.ensure_list, [_UINT8])]
            ),
            vol.Optional(CONF_INPUT_ACTION_TEMPLATES): vol.Any(dict, [dict]),
        }
    ),
    cv.has_at_least_one_key(
        CONF_INPUT_CONFIGURATIONS, CONF_INPUT_ACTIONS, CONF_INPUT_ACTION_TEMPLATES
    ),
)

CONFIGURE_D1_SCHEMA = vol.All(
    vol.Schema(
        {
            vol.Required(CONF_DEVICE_IEEE): cv.string,
            vol.Optional(CONF_PHASE_CONTROL_MODE): vol.All(
                cv.string, vol.Lower, vol.In(list(PHASE_CONTROL_MODES))
            ),
            vol.Optional(CONF_MINIMUM_ON_LEVEL): _UINT8,
        }
    ),
    cv.has_at_least_one_key(CONF_PHASE_CONTROL_MODE, CONF_MINIMUM_ON_LEVEL),
)


def _normalize_ieee(raw: Any) -> str:
    device_ieee = str(raw).strip().lower()
    if not device_ieee:
        raise HomeAssistantError("Missing required parameter: device_ieee")
    return device_ieee


def _require_d1(device: Any, device_ieee: str) -> None:
    model = extract_model(getattr(device, "model", None))
    if model not in D1_MODELS:
        raise ValidationError(
            f"Device {device_ieee} is not a D1 dimmer (model: {model}). "
            f"D1 configuration only applies to {', '.join(D1_MODELS)}."
        )


def async_setup_services(hass: HomeAssistant) -> None:
    """Register all ubisys setup services."""

    # -------------------------------------------------------------------------
    # J1 configuration and calibration
    # -------------------------------------------------------------------------
    async def _configure_j1_handler(call: ServiceCall) -> ServiceResponse:
        data = dict(call.data)
        device_ieee = _normalize_ieee(data.pop(CONF_DEVICE_IEEE, None))
        options = validate_calibration_options(data)

        transport = ZigpyAttributeTransport(get_zigpy_device(hass, device_ieee))
        lock = get_device_lock(hass, "calibration", device_ieee)
        if lock.locked():
            raise HomeAssistantError(
                f"Calibration already in progress for device {device_ieee}. "
                "Please wait for the current calibration to complete."
            )

        async with lock:
            sw = Stopwatch()
            try:
                report = await async_run_calibration(
                    transport, options, verbose=is_verbose_info_logging(hass)
                )
            except Exception as err:
                _LOGGER.error("J1 configuration failed for %s: %s", device_ieee, err)
                hass.bus.async_fire(
                    EVENT_CALIBRATION_FAILED,
                    {
                        "device_ieee": device_ieee,
                        "calibrate": options.calibrate,
                        "error": str(err),
                        "error_type": type(err).__name__,
                    },
                )
                raise

            hass.bus.async_fire(
                EVENT_CALIBRATION_COMPLETE,
                {
                    "device_ieee": device_ieee,
                    "calibrate": options.calibrate,
                    "duration_s": round(sw.elapsed, 1),
                    "total_steps": report.get("total_steps"),
                },
            )
        return report

    hass.services.async_register(
        DOMAIN,
        SERVICE_CONFIGURE_J1,
        _configure_j1_handler,
        schema=CONFIGURE_J1_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    async def _get_j1_configuration_handler(call: ServiceCall) -> ServiceResponse:
        device_ieee = _normalize_ieee(call.data.get(CONF_DEVICE_IEEE))
        transport = ZigpyAttributeTransport(get_zigpy_device(hass, device_ieee))
        return await async_read_calibration_report(transport)

    hass.services.async_register(
        DOMAIN,
        SERVICE_GET_J1_CONFIGURATION,
        _get_j1_configuration_handler,
        schema=DEVICE_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )

    # -------------------------------------------------------------------------
    # DeviceSetup input configuration
    # -------------------------------------------------------------------------
    async def _configure_device_setup_handler(call: ServiceCall) -> ServiceResponse:
        device_ieee = _normalize_ieee(call.data.get(CONF_DEVICE_IEEE))
        device = get_zigpy_device(hass, device_ieee)
        model = call.data.get(CONF_MODEL) or extract_model(getattr(device, "model", None))
        transport = ZigpyAttributeTransport(device)

        lock = get_device_lock(hass, "device_setup", device_ieee)
        if lock.locked():
            raise HomeAssistantError(
                f"DeviceSetup write already in progress for device {device_ieee}"
            )

        async with lock:
            try:
                return await async_configure_device_setup(
                    transport,
                    model=model,
                    input_configurations=call.data.get(CONF_INPUT_CONFIGURATIONS),
                    input_actions=call.data.get(CONF_INPUT_ACTIONS),
                    input_action_templates=call.data.get(CONF_INPUT_ACTION_TEMPLATES),
                    verbose=is_verbose_info_logging(hass),
                )
            except Exception as err:
                _LOGGER.error(
                    "DeviceSetup configuration failed for %s (%s): %s",
                    device_ieee,
                    model,
                    err,
                )
                raise

    hass.services.async_register(
        DOMAIN,
        SERVICE_CONFIGURE_DEVICE_SETUP,
        _configure_device_setup_handler,
        schema=CONFIGURE_DEVICE_SETUP_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    async def _get_device_setup_handler(call: ServiceCall) -> ServiceResponse:
        device_ieee = _normalize_ieee(call.data.get(CONF_DEVICE_IEEE))
        transport = ZigpyAttributeTransport(get_zigpy_device(hass, device_ieee))
        return await async_read_device_setup(transport)

    hass.services.async_register(
        DOMAIN,
        SERVICE_GET_DEVICE_SETUP,
        _get_device_setup_handler,
        schema=DEVICE_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )

    # -------------------------------------------------------------------------
    # D1 dimmer setup
    # -------------------------------------------------------------------------
    async def _configure_d1_handler(call: ServiceCall) -> ServiceResponse:
        device_ieee = _normalize_ieee(call.data.get(CONF_DEVICE_IEEE))
        device = get_zigpy_device(hass, device_ieee)
        _require_d1(device, device_ieee)
        transport = ZigpyAttributeTransport(device)

        lock = get_device_lock(hass, "dimmer_setup", device_ieee)
        if lock.locked():
            raise HomeAssistantError(
                f"D1 configuration already in progress for device {device_ieee}"
            )

        async with lock:
            try:
                return await async_configure_dimmer_setup(
                    transport,
                    phase_control_mode=call.data.get(CONF_PHASE_CONTROL_MODE),
                    minimum_on_level=call.data.get(CONF_MINIMUM_ON_LEVEL),
                    verbose=is_verbose_info_logging(hass),
                )
            except Exception as err:
                _LOGGER.error("D1 configuration failed for %s: %s", device_ieee, err)
                raise

    hass.services.async_register(
        DOMAIN,
        SERVICE_CONFIGURE_D1,
        _configure_d1_handler,
        schema=CONFIGURE_D1_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    async def _get_d1_configuration_handler(call: ServiceCall) -> ServiceResponse:
        device_ieee = _normalize_ieee(call.data.get(CONF_DEVICE_IEEE))
        device = get_zigpy_device(hass, device_ieee)
        _require_d1(device, device_ieee)
        return await async_read_dimmer_setup(ZigpyAttributeTransport(device))

    hass.services.async_register(
        DOMAIN,
        SERVICE_GET_D1_CONFIGURATION,
        _get_d1_configuration_handler,
        schema=DEVICE_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )

    _LOGGER.log(
        phase_level(is_verbose_info_logging(hass)),
        "Registered %s services",
        DOMAIN,
    )
