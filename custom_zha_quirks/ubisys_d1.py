"""Ubisys D1 Universal Dimmer Quirk.

Exposes the D1 configuration attributes the ubisys setup integration reads
and writes.

Manufacturer: Ubisys Technologies GmbH
Models: D1, D1-R (DIN rail variant)
Device Type: Dimmable Light (0x0101)

Endpoints:
    1: Dimmable Light (Basic, Identify, Groups, Scenes, OnOff, LevelControl,
       Ballast, DimmerSetup)
    4: Metering and electrical measurement
    232: Device management (DeviceSetup 0xFC00)

1. DimmerSetup cluster (0xFC01, endpoint 1), no manufacturer code:
   - 0x0000: capabilities (bitmap8, read only)
     bit 0 forward phase, bit 1 reverse phase, bit 5 reactance discriminator,
     bit 6 configurable curve, bit 7 overload detection
   - 0x0001: status (bitmap8, read only)
     bit 0 forward phase, bit 1 reverse phase, bit 3 overload,
     bit 6 capacitive load, bit 7 inductive load
   - 0x0002: mode (bitmap8)
     bits [1:0]: 0 automatic, 1 forward phase, 2 reverse phase, 3 reserved.
     Only writable while the output is off.

2. LevelControl cluster (0x0008, endpoint 1):
   - 0x0000 with mfg code 0x10F2: minimum_on_level (uint8). Shares its ID
     with the standard current_level and is told apart by the code.

Debugging:
    logger:
      logs:
        custom_zha_quirks.ubisys_d1: debug
"""

from __future__ import annotations

import logging
from typing import Final

import zigpy.types as t
from zigpy.quirks import CustomCluster
from zigpy.quirks.v2 import QuirkBuilder
from zigpy.zcl.clusters.general import LevelControl
from zigpy.zcl.foundation import ZCLAttributeDef

from custom_zha_quirks.ubisys_common import (
    UBISYS_DEVICE_SETUP_ENDPOINT,
    UBISYS_MANUFACTURER,
    UBISYS_MANUFACTURER_CODE,
    UbisysDeviceSetup,
)

_LOGGER = logging.getLogger(__name__)

D1_MODELS: Final[tuple[str, ...]] = ("D1", "D1-R")
D1_DIMMABLE_LIGHT_ENDPOINT: Final[int] = 1

UBISYS_DIMMER_SETUP_CLUSTER_ID: Final[int] = 0xFC01

# DimmerSetup cluster attribute IDs
UBISYS_ATTR_DIMMER_CAPABILITIES: Final[int] = 0x0000
UBISYS_ATTR_DIMMER_STATUS: Final[int] = 0x0001
UBISYS_ATTR_DIMMER_MODE: Final[int] = 0x0002

UBISYS_ATTR_MINIMUM_ON_LEVEL: Final[int] = 0x0000


class UbisysDimmerSetup(CustomCluster):
    """Ubisys DimmerSetup cluster (0xFC01) for phase control configuration.

    The cluster ID is in the manufacturer range, but the D1 expects its
    requests without a manufacturer code, so the attributes are marked non
    manufacturer-specific.

    Attributes:
        - capabilities (0x0000): dimming techniques and detectors supported
        - status (0x0001): technique in use and detected load type
        - mode (0x0002): requested phase control technique
    """

    cluster_id = UBISYS_DIMMER_SETUP_CLUSTER_ID
    ep_attribute = "ubisys_dimmer_setup"

    attributes = {
        UBISYS_ATTR_DIMMER_CAPABILITIES: ZCLAttributeDef(
            id=UBISYS_ATTR_DIMMER_CAPABILITIES,
            name="capabilities",
            type=t.bitmap8,
            access="r",
            is_manufacturer_specific=False,
        ),
        UBISYS_ATTR_DIMMER_STATUS: ZCLAttributeDef(
            id=UBISYS_ATTR_DIMMER_STATUS,
            name="status",
            type=t.bitmap8,
            access="rp",
            is_manufacturer_specific=False,
        ),
        UBISYS_ATTR_DIMMER_MODE: ZCLAttributeDef(
            id=UBISYS_ATTR_DIMMER_MODE,
            name="mode",
            type=t.bitmap8,
            access="rw",
            is_manufacturer_specific=False,
        ),
    }


class UbisysLevelControl(CustomCluster, LevelControl):
    """LevelControl with the ubisys minimum_on_level attribute.

    A plain ``attributes`` dict is keyed by ID and cannot hold both 0x0000
    definitions, so the attribute is added to a subclass of the standard
    definitions instead.
    """

    class AttributeDefs(LevelControl.AttributeDefs):
        minimum_on_level: Final = ZCLAttributeDef(
            id=UBISYS_ATTR_MINIMUM_ON_LEVEL,
            type=t.uint8_t,
            access="rw",
            manufacturer_code=UBISYS_MANUFACTURER_CODE,
        )


# V2 QuirkBuilder registration: DimmerSetup and LevelControl on EP1,
# DeviceSetup on EP232
for _model in D1_MODELS:
    (
        QuirkBuilder(UBISYS_MANUFACTURER, _model)
        .adds(UbisysDimmerSetup, endpoint_id=D1_DIMMABLE_LIGHT_ENDPOINT)
        .replaces(UbisysLevelControl, endpoint_id=D1_DIMMABLE_LIGHT_ENDPOINT)
        .adds(UbisysDeviceSetup, endpoint_id=UBISYS_DEVICE_SETUP_ENDPOINT)
        .add_to_registry()
    )

_LOGGER.info("Registered Ubisys D1/D1-R quirks")
