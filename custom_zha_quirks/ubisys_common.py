"""Shared Ubisys ZHA quirk components.

This module holds the DeviceSetup cluster (0xFC00) definition shared by every
ubisys model that has physical inputs, plus the constants the device quirks
need.

DeviceSetup lives on endpoint 232 on all models. Its two attributes are ZCL
arrays:

    0x0000 input_configurations   array of data8 (one flag byte per input)
    0x0001 input_actions          array of octet strings (one row per binding)

Unlike the other ubisys extensions, DeviceSetup requests are sent without a
manufacturer code even though the cluster ID is in the manufacturer range.
The attribute definitions are marked non manufacturer-specific so zigpy does
not add one.

Usage:
    ```python
    from custom_zha_quirks.ubisys_common import (
        UBISYS_DEVICE_SETUP_ENDPOINT,
        UbisysDeviceSetup,
    )
    ```
"""

from __future__ import annotations

import logging
from typing import Final

from zigpy.quirks import CustomCluster
from zigpy.zcl import foundation
from zigpy.zcl.foundation import ZCLAttributeDef

_LOGGER = logging.getLogger(__name__)

# ============================================================================
# COMMON CONSTANTS
# ============================================================================

UBISYS_MANUFACTURER: Final[str] = "ubisys"
UBISYS_MANUFACTURER_CODE: Final[int] = 0x10F2

UBISYS_DEVICE_SETUP_CLUSTER_ID: Final[int] = 0xFC00
UBISYS_DEVICE_SETUP_ENDPOINT: Final[int] = 232

UBISYS_ATTR_INPUT_CONFIGS: Final[int] = 0x0000
UBISYS_ATTR_INPUT_ACTIONS: Final[int] = 0x0001


# ============================================================================
# SHARED CLUSTER DEFINITIONS
# ============================================================================


class UbisysDeviceSetup(CustomCluster):
    """Ubisys DeviceSetup cluster (0xFC00) for physical input configuration.

    Devices using this cluster:
        - S1/S1-R, S2/S2-R (power switches)
        - D1/D1-R (dimmer)
        - J1/J1-R (window covering)
        - C4 (control unit)

    The attributes are only read and written as whole arrays. zigpy wraps
    them in ``foundation.Array`` values whose ``type`` is the element type.
    """

    cluster_id = UBISYS_DEVICE_SETUP_CLUSTER_ID
    ep_attribute = "ubisys_device_setup"

    attributes = {
        UBISYS_ATTR_INPUT_CONFIGS: ZCLAttributeDef(
            id=UBISYS_ATTR_INPUT_CONFIGS,
            name="input_configurations",
            type=foundation.Array,
            is_manufacturer_specific=False,
        ),
        UBISYS_ATTR_INPUT_ACTIONS: ZCLAttributeDef(
            id=UBISYS_ATTR_INPUT_ACTIONS,
            name="input_actions",
            type=foundation.Array,
            is_manufacturer_specific=False,
        ),
    }


_LOGGER.debug("Loaded shared Ubisys DeviceSetup cluster definition")
