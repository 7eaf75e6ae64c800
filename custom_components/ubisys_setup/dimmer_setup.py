"""Configure the ubisys D1 universal dimmer.

Two D1 features are not reachable through the standard ZHA light:

- DimmerSetup (0xFC01, endpoint 1): read-only capability and status bitmaps,
  plus the phase control mode (automatic, forward or reverse phase). Requests
  to this cluster carry no manufacturer code.
- MinimumOnLevel: a ubisys attribute on LevelControl (endpoint 1) that shares
  ID 0x0000 with CurrentLevel and is told apart by manufacturer code 0x10F2.

The device only accepts a mode write while its output is off; a rejected
write surfaces as TransportError like any other failed write.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .const import (
    ATTR_DIMMER_CAPABILITIES,
    ATTR_DIMMER_MODE,
    ATTR_DIMMER_STATUS,
    ATTR_MINIMUM_ON_LEVEL,
    CLUSTER_DIMMER_SETUP,
    CLUSTER_LEVEL_CONTROL,
    CONF_MINIMUM_ON_LEVEL,
    CONF_PHASE_CONTROL_MODE,
    DIMMER_CAPABILITY_BITS,
    DIMMER_STATUS_BITS,
    PHASE_CONTROL_MASK,
    PHASE_CONTROL_MODES,
    PHASE_CONTROL_RESERVED,
    UBISYS_MANUFACTURER_CODE,
)
from .errors import ValidationError
from .logtools import Stopwatch, kv, phase_level
from .transport import AttributeTransport

_LOGGER = logging.getLogger(__name__)


def _decode_bits(value: int, bits: Mapping[str, int]) -> dict[str, bool]:
    return {name: bool(value & mask) for name, mask in bits.items()}


def decode_capabilities(value: int) -> dict[str, bool]:
    """Decode the DimmerSetup Capabilities bitmap into named flags."""
    return _decode_bits(value, DIMMER_CAPABILITY_BITS)


def decode_status(value: int) -> dict[str, bool]:
    """Decode the DimmerSetup Status bitmap.

    The phase control bits report the technique in use, which can differ from
    the configured mode while the mode is automatic.
    """
    return _decode_bits(value, DIMMER_STATUS_BITS)


def decode_phase_control_mode(value: int) -> str:
    """Return the phase control name for a Mode value.

    Only bits 0-1 are significant. The unassigned value 3 decodes to
    "reserved" instead of raising, so a read-back never fails on it.
    """
    phase = value & PHASE_CONTROL_MASK
    for name, code in PHASE_CONTROL_MODES.items():
        if code == phase:
            return name
    return PHASE_CONTROL_RESERVED


def validate_dimmer_options(
    phase_control_mode: Any = None,
    minimum_on_level: Any = None,
) -> tuple[int | None, int | None]:
    """Check the requested D1 settings and return their raw values.

    Args:
        phase_control_mode: "automatic", "forward" or "reverse", any case
        minimum_on_level: Level from 0 to 255

    Returns:
        (mode value, minimum on level), with None for settings not requested.

    Raises:
        ValidationError: If a value is unknown or out of range, or if neither
            setting is given.
    """
    if phase_control_mode is None and minimum_on_level is None:
        raise ValidationError(
            f"At least one of {CONF_PHASE_CONTROL_MODE} or {CONF_MINIMUM_ON_LEVEL} "
            "is required"
        )

    mode_value: int | None = None
    if phase_control_mode is not None:
        key = str(phase_control_mode).strip().lower()
        if key not in PHASE_CONTROL_MODES:
            raise ValidationError(
                f"Invalid {CONF_PHASE_CONTROL_MODE} '{phase_control_mode}'. "
                f"Valid modes: {', '.join(PHASE_CONTROL_MODES)}"
            )
        mode_value = PHASE_CONTROL_MODES[key]

    if minimum_on_level is not None and (
        isinstance(minimum_on_level, bool)
        or not isinstance(minimum_on_level, int)
        or not 0 <= minimum_on_level <= 0xFF
    ):
        raise ValidationError(
            f"{CONF_MINIMUM_ON_LEVEL} must be an integer from 0 to 255, "
            f"got {minimum_on_level!r}"
        )

    return mode_value, minimum_on_level


async def async_read_dimmer_setup(transport: AttributeTransport) -> dict[str, Any]:
    """Read the D1 DimmerSetup attributes and MinimumOnLevel.

    Each DimmerSetup attribute is read in its own request, without a
    manufacturer code. MinimumOnLevel is read with the ubisys code.
    """
    values: dict[str, Any] = {}
    for attribute in (ATTR_DIMMER_CAPABILITIES, ATTR_DIMMER_STATUS, ATTR_DIMMER_MODE):
        values.update(await transport.read(CLUSTER_DIMMER_SETUP, [attribute]))
    level = await transport.read(
        CLUSTER_LEVEL_CONTROL,
        [ATTR_MINIMUM_ON_LEVEL],
        manufacturer=UBISYS_MANUFACTURER_CODE,
    )

    capabilities = int(values[ATTR_DIMMER_CAPABILITIES] or 0)
    status = int(values[ATTR_DIMMER_STATUS] or 0)
    mode = int(values[ATTR_DIMMER_MODE] or 0)
    return {
        ATTR_DIMMER_CAPABILITIES: capabilities,
        "decoded_capabilities": decode_capabilities(capabilities),
        ATTR_DIMMER_STATUS: status,
        "decoded_status": decode_status(status),
        ATTR_DIMMER_MODE: mode,
        CONF_PHASE_CONTROL_MODE: decode_phase_control_mode(mode),
        ATTR_MINIMUM_ON_LEVEL: level[ATTR_MINIMUM_ON_LEVEL],
    }


async def async_configure_dimmer_setup(
    transport: AttributeTransport,
    *,
    phase_control_mode: str | None = None,
    minimum_on_level: int | None = None,
    verbose: bool = False,
) -> dict[str, Any]:
    """Write the D1 phase control mode and/or minimum on level.

    The mode is written before the level. Both settings are validated before
    anything is sent, and the full dimmer configuration is read back at the
    end.

    Raises:
        ValidationError: If the settings are invalid. Nothing is written.
        TransportError: If a write or the read-back fails.
    """
    mode_value, level_value = validate_dimmer_options(phase_control_mode, minimum_on_level)
    level = phase_level(verbose)
    sw = Stopwatch()

    if mode_value is not None:
        await transport.write(CLUSTER_DIMMER_SETUP, {ATTR_DIMMER_MODE: mode_value})
        kv(
            _LOGGER,
            level,
            "Phase control mode set",
            phase_control_mode=decode_phase_control_mode(mode_value),
            mode=mode_value,
        )

    if level_value is not None:
        await transport.write(
            CLUSTER_LEVEL_CONTROL,
            {ATTR_MINIMUM_ON_LEVEL: level_value},
            manufacturer=UBISYS_MANUFACTURER_CODE,
        )
        kv(_LOGGER, level, "Minimum on level set", minimum_on_level=level_value)

    result = await async_read_dimmer_setup(transport)
    kv(
        _LOGGER,
        level,
        "D1 configuration read back",
        phase_control_mode=result[CONF_PHASE_CONTROL_MODE],
        minimum_on_level=result[ATTR_MINIMUM_ON_LEVEL],
        elapsed_s=round(sw.elapsed, 1),
    )
    return result
