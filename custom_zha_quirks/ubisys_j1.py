"""Ubisys J1 Window Covering Controller Quirk.

Extends the WindowCovering cluster with the attributes the ubisys setup
integration reads and writes during calibration.

Manufacturer: Ubisys Technologies GmbH
Models: J1, J1-R
Device Type: Window Covering Controller (0x0202)

Endpoints:
    1: Basic, Identify, Groups, Scenes, OnOff, LevelControl
    2: Window covering control (WindowCovering 0x0102)
    232: Device management (DeviceSetup 0xFC00)

Added to cluster 0x0102 on endpoint 2:

    - 0x000A: operational_status (bitmap8, standard ZCL but missing from
      zigpy). Bit 0 lift motor running, bit 1 tilt motor running.

    Manufacturer-specific (mfg code 0x10F2), all uint16:
    - 0x1000: turnaround_guard_time
    - 0x1001: lift_to_tilt_transition_steps
    - 0x1002: total_steps
    - 0x1003: lift_to_tilt_transition_steps2
    - 0x1004: total_steps2
    - 0x1005: additional_steps
    - 0x1006: inactive_power_threshold
    - 0x1007: startup_steps

WindowCoveringType (0x0000) keeps its standard, non manufacturer-specific
definition from zigpy.
"""

from __future__ import annotations

import logging
from typing import Final

import zigpy.types as t
from zigpy.quirks import CustomCluster
from zigpy.quirks.v2 import QuirkBuilder
from zigpy.zcl.clusters.closures import WindowCovering
from zigpy.zcl.foundation import ZCLAttributeDef

from custom_zha_quirks.ubisys_common import (
    UBISYS_DEVICE_SETUP_ENDPOINT,
    UBISYS_MANUFACTURER,
    UBISYS_MANUFACTURER_CODE,
    UbisysDeviceSetup,
)

_LOGGER = logging.getLogger(__name__)

J1_MODELS: Final[tuple[str, ...]] = ("J1", "J1-R")
J1_WINDOW_COVERING_ENDPOINT: Final[int] = 2

ATTR_OPERATIONAL_STATUS: Final[int] = 0x000A

# Ubisys manufacturer-specific attribute IDs
UBISYS_ATTR_TURNAROUND_GUARD_TIME: Final[int] = 0x1000
UBISYS_ATTR_LIFT_TO_TILT_TRANSITION_STEPS: Final[int] = 0x1001
UBISYS_ATTR_TOTAL_STEPS: Final[int] = 0x1002
UBISYS_ATTR_LIFT_TO_TILT_TRANSITION_STEPS2: Final[int] = 0x1003
UBISYS_ATTR_TOTAL_STEPS2: Final[int] = 0x1004
UBISYS_ATTR_ADDITIONAL_STEPS: Final[int] = 0x1005
UBISYS_ATTR_INACTIVE_POWER_THRESHOLD: Final[int] = 0x1006
UBISYS_ATTR_STARTUP_STEPS: Final[int] = 0x1007

_MANUFACTURER_ATTRIBUTE_NAMES: Final[dict[int, str]] = {
    UBISYS_ATTR_TURNAROUND_GUARD_TIME: "turnaround_guard_time",
    UBISYS_ATTR_LIFT_TO_TILT_TRANSITION_STEPS: "lift_to_tilt_transition_steps",
    UBISYS_ATTR_TOTAL_STEPS: "total_steps",
    UBISYS_ATTR_LIFT_TO_TILT_TRANSITION_STEPS2: "lift_to_tilt_transition_steps2",
    UBISYS_ATTR_TOTAL_STEPS2: "total_steps2",
    UBISYS_ATTR_ADDITIONAL_STEPS: "additional_steps",
    UBISYS_ATTR_INACTIVE_POWER_THRESHOLD: "inactive_power_threshold",
    UBISYS_ATTR_STARTUP_STEPS: "startup_steps",
}


class UbisysWindowCovering(CustomCluster, WindowCovering):
    """Ubisys Window Covering cluster with manufacturer-specific attributes.

    The manufacturer attributes carry an explicit manufacturer code, so zigpy
    adds 0x10F2 to any request that touches them and splits mixed requests
    into standard and manufacturer-specific frames.
    """

    cluster_id = WindowCovering.cluster_id

    manufacturer_attributes = {
        attr_id: ZCLAttributeDef(
            id=attr_id,
            name=name,
            type=t.uint16_t,
            manufacturer_code=UBISYS_MANUFACTURER_CODE,
        )
        for attr_id, name in _MANUFACTURER_ATTRIBUTE_NAMES.items()
    }

    attributes = {
        **WindowCovering.attributes,
        ATTR_OPERATIONAL_STATUS: ZCLAttributeDef(
            id=ATTR_OPERATIONAL_STATUS,
            name="operational_status",
            type=t.bitmap8,
            access="rp",
            is_manufacturer_specific=False,
        ),
        **manufacturer_attributes,
    }


# V2 QuirkBuilder registration: window covering on EP2, DeviceSetup on EP232
for _model in J1_MODELS:
    (
        QuirkBuilder(UBISYS_MANUFACTURER, _model)
        .replaces(UbisysWindowCovering, endpoint_id=J1_WINDOW_COVERING_ENDPOINT)
        .adds(UbisysDeviceSetup, endpoint_id=UBISYS_DEVICE_SETUP_ENDPOINT)
        .add_to_registry()
    )

_LOGGER.info("Registered Ubisys J1/J1-R quirks")
