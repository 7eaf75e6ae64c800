"""DeviceSetup quirks for ubisys switches and control units.

These models only need the DeviceSetup cluster (0xFC00, endpoint 232) so the
integration can address input_configurations and input_actions by name.
On/off, level control and metering are handled natively by ZHA.

The J1/J1-R registration lives in ubisys_j1 because it also replaces the
WindowCovering cluster. D1/D1-R live in ubisys_d1, which adds DimmerSetup
and the ubisys LevelControl attributes.
"""

from __future__ import annotations

import logging
from typing import Final

from zigpy.quirks.v2 import QuirkBuilder

from custom_zha_quirks.ubisys_common import (
    UBISYS_DEVICE_SETUP_ENDPOINT,
    UBISYS_MANUFACTURER,
    UbisysDeviceSetup,
)

_LOGGER = logging.getLogger(__name__)

DEVICE_SETUP_MODELS: Final[tuple[str, ...]] = (
    "S1",
    "S1-R",
    "S2",
    "S2-R",
    "C4",
)

for _model in DEVICE_SETUP_MODELS:
    (
        QuirkBuilder(UBISYS_MANUFACTURER, _model)
        .adds(UbisysDeviceSetup, endpoint_id=UBISYS_DEVICE_SETUP_ENDPOINT)
        .add_to_registry()
    )

_LOGGER.info(
    "Registered Ubisys DeviceSetup quirks for %s", ", ".join(DEVICE_SETUP_MODELS)
)
