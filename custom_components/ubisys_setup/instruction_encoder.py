"""Encode DeviceSetup array attributes for the target firmware generation.

Newer ubisys firmware (1.9.0 and up) accepts Write Attributes Structured,
addressing the attribute by numeric ID with an explicit array element type.
Older firmware takes a conventional attribute write whose value carries the
same elements inside an {element_type, elements} envelope. Both forms encode
the same payload; only the request shape differs.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from awesomeversion import (
    AwesomeVersion,
    AwesomeVersionStrategy,
    AwesomeVersionStrategyException,
)

from .const import (
    CLUSTER_DEVICE_SETUP,
    DEVICE_SETUP_ATTRIBUTE_IDS,
    DEVICE_SETUP_ELEMENT_TYPES,
    STRUCTURED_WRITE_MIN_VERSION,
    ZCL_TYPE_ARRAY,
)
from .transport import AttributeTransport, StructuredRecord

_LOGGER = logging.getLogger(__name__)


def parse_build_version(sw_build_id: str | None) -> AwesomeVersion | None:
    """Parse a firmware build string as a semantic version.

    Surrounding whitespace and leading "v" or "=" characters are ignored, so
    "v1.10.2" and "=2.0.1" parse. The rest must be a complete semantic
    version: "1.9", "1.9.0.4" and "1.9.0 garbage" are rejected. Build
    metadata ("+build5") is accepted and dropped, since it carries no
    precedence. A prerelease tag is kept, which makes "1.9.0-beta" order
    below "1.9.0".

    Args:
        sw_build_id: The Basic cluster sw_build_id as reported by the device

    Returns:
        The parsed version, or None when the string is missing or unparsable.
    """
    if not sw_build_id:
        return None
    candidate = str(sw_build_id).strip().lstrip("vV= \t")
    try:
        version = AwesomeVersion(
            candidate, ensure_strategy=AwesomeVersionStrategy.SEMVER
        )
    except AwesomeVersionStrategyException:
        _LOGGER.debug("Unparsable firmware build id: %r", sw_build_id)
        return None
    return AwesomeVersion(
        version.string.split("+", 1)[0],
        ensure_strategy=AwesomeVersionStrategy.SEMVER,
    )


def supports_structured_write(sw_build_id: str | None) -> bool:
    """Return True when the firmware accepts Write Attributes Structured.

    Missing or unparsable build strings select the legacy write, as does a
    prerelease of the minimum version.
    """
    version = parse_build_version(sw_build_id)
    if version is None:
        return False
    return version >= STRUCTURED_WRITE_MIN_VERSION


@dataclass(frozen=True)
class DeviceSetupWrite:
    """One DeviceSetup array attribute write, in either request shape."""

    attribute: str
    attribute_id: int
    element_type: int
    elements: list[Any]
    structured: bool

    def as_structured_record(self) -> StructuredRecord:
        return StructuredRecord(
            attr_id=self.attribute_id,
            data_type=ZCL_TYPE_ARRAY,
            element_type=self.element_type,
            elements=self.elements,
        )

    def as_attribute_values(self) -> dict[str, dict[str, Any]]:
        return {
            self.attribute: {
                "element_type": self.element_type,
                "elements": self.elements,
            }
        }


def build_device_setup_write(
    attribute: str,
    elements: Sequence[Any],
    supports_structured: bool,
) -> DeviceSetupWrite:
    """Build the write request for a DeviceSetup array attribute.

    Args:
        attribute: "input_configurations" or "input_actions"
        elements: Array elements (bytes for configurations, rows for actions)
        supports_structured: Result of the firmware version gate
    """
    try:
        attribute_id = DEVICE_SETUP_ATTRIBUTE_IDS[attribute]
        element_type = DEVICE_SETUP_ELEMENT_TYPES[attribute]
    except KeyError:
        raise ValueError(f"Not a DeviceSetup array attribute: {attribute}") from None

    return DeviceSetupWrite(
        attribute=attribute,
        attribute_id=attribute_id,
        element_type=element_type,
        elements=[list(e) if isinstance(e, (list, tuple, bytes)) else e for e in elements],
        structured=supports_structured,
    )


async def async_write_device_setup_attribute(
    transport: AttributeTransport, write: DeviceSetupWrite
) -> None:
    """Send ``write`` to the DeviceSetup cluster without a manufacturer code."""
    _LOGGER.debug(
        "DeviceSetup write: %s (%d elements, %s)",
        write.attribute,
        len(write.elements),
        "structured" if write.structured else "legacy",
    )
    if write.structured:
        await transport.write_structured(
            CLUSTER_DEVICE_SETUP, [write.as_structured_record()]
        )
    else:
        await transport.write(CLUSTER_DEVICE_SETUP, write.as_attribute_values())
