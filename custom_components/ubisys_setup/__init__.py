"""Ubisys device setup for Home Assistant.

Configures ubisys Zigbee devices paired with ZHA through services:

    - J1/J1-R: window covering settings and limit calibration
      (configure_j1, get_j1_configuration)
    - S1, S2, D1, J1, C4: DeviceSetup input configurations and input actions,
      raw or compiled from templates
      (configure_device_setup, get_device_setup)
    - D1/D1-R: phase control mode and minimum on level
      (configure_d1, get_d1_configuration)

The integration has no entities and no config entries. It talks to the
devices through the zigpy clusters owned by ZHA; the custom ZHA quirks in
custom_zha_quirks/ must be installed so the manufacturer attributes are
addressable by name.

See Also:
    - j1_calibration.py: J1 calibration sequence
    - input_actions.py: input action template compiler
    - device_setup.py: DeviceSetup cluster writes and read-back
    - dimmer_setup.py: D1 DimmerSetup and minimum on level
"""

from __future__ import annotations

import logging

from homeassistant.core import HomeAssistant
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.typing import ConfigType

from .const import DOMAIN
from .services import async_setup_services

_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = cv.empty_config_schema(DOMAIN)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up the ubisys setup integration."""
    hass.data.setdefault(DOMAIN, {})
    async_setup_services(hass)
    _LOGGER.debug("%s set up", DOMAIN)
    return True
