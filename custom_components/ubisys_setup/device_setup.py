"""Configure the ubisys DeviceSetup cluster (0xFC00, endpoint 232).

DeviceSetup holds two array attributes that control how physical inputs
behave:

- InputConfigurations (0x0000): one data8 flag byte per physical input
  (enable/disable, invert, ...)
- InputActions (0x0001): one octet string per binding from an input
  transition to a command sent from a source endpoint

Callers can write raw InputConfigurations, raw InputActions rows and
InputActions compiled from templates. The three payloads are applied
independently in that order, so compiled templates replace raw rows when
both are given. Templates are compiled before anything is written.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from .const import ATTR_INPUT_ACTIONS, ATTR_INPUT_CONFIGURATIONS, CLUSTER_DEVICE_SETUP
from .errors import ValidationError
from .helpers import async_read_sw_build_id
from .input_actions import compile_input_action_templates
from .input_parser import MIN_ROW_LENGTH, InputActionsParser
from .instruction_encoder import (
    async_write_device_setup_attribute,
    build_device_setup_write,
    supports_structured_write,
)
from .logtools import Stopwatch, kv, phase_level
from .transport import AttributeTransport

_LOGGER = logging.getLogger(__name__)


def _is_byte(value: Any) -> bool:
    return not isinstance(value, bool) and isinstance(value, int) and 0 <= value <= 0xFF


def validate_raw_payloads(
    input_configurations: Sequence[int] | None,
    input_actions: Sequence[Sequence[int]] | None,
) -> None:
    """Check raw InputConfigurations bytes and InputActions rows.

    Raises:
        ValidationError: If a configuration entry or row byte is not an
            integer from 0 to 255, or a row is shorter than its fixed header.
    """
    for position, value in enumerate(input_configurations or ()):
        if not _is_byte(value):
            raise ValidationError(
                f"input_configurations[{position}] must be an integer from 0 to 255, "
                f"got {value!r}"
            )
    for position, row in enumerate(input_actions or ()):
        values = list(row)
        if len(values) < MIN_ROW_LENGTH or not all(_is_byte(value) for value in values):
            raise ValidationError(
                f"input_actions[{position}] must be at least {MIN_ROW_LENGTH} integers "
                f"from 0 to 255, got {values!r}"
            )


async def async_read_device_setup(transport: AttributeTransport) -> dict[str, Any]:
    """Read both DeviceSetup arrays and decode the InputActions rows."""
    configurations = await transport.read(CLUSTER_DEVICE_SETUP, [ATTR_INPUT_CONFIGURATIONS])
    actions = await transport.read(CLUSTER_DEVICE_SETUP, [ATTR_INPUT_ACTIONS])

    rows = [list(row) for row in actions.get(ATTR_INPUT_ACTIONS) or []]
    return {
        ATTR_INPUT_CONFIGURATIONS: list(configurations.get(ATTR_INPUT_CONFIGURATIONS) or []),
        ATTR_INPUT_ACTIONS: rows,
        "decoded_input_actions": [
            action.as_dict() for action in InputActionsParser.parse_rows(rows)
        ],
    }


async def async_configure_device_setup(
    transport: AttributeTransport,
    *,
    model: str | None,
    sw_build_id: str | None = None,
    input_configurations: Sequence[int] | None = None,
    input_actions: Sequence[Sequence[int]] | None = None,
    input_action_templates: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None = None,
    verbose: bool = False,
) -> dict[str, Any]:
    """Write DeviceSetup payloads and return the effective settings.

    The firmware build ID selects structured or legacy writes. When it is
    None it is read from the Basic cluster once the templates have compiled.

    Raises:
        ValidationError: If a raw configuration byte or row is out of range.
        ConfigurationError: If the templates cannot be compiled for ``model``.
            Nothing has been written in either case.
        TransportError: If a write or the read-back fails.
    """
    level = phase_level(verbose)
    sw = Stopwatch()

    validate_raw_payloads(input_configurations, input_actions)

    compiled: list[list[int]] | None = None
    if input_action_templates is not None:
        compiled = compile_input_action_templates(input_action_templates, model)

    if sw_build_id is None:
        sw_build_id = await async_read_sw_build_id(transport)

    structured = supports_structured_write(sw_build_id)
    kv(
        _LOGGER,
        level,
        "DeviceSetup configuration",
        model=model,
        sw_build_id=sw_build_id,
        structured_write=structured,
    )

    payloads: list[tuple[str, Sequence[Any] | None]] = [
        (ATTR_INPUT_CONFIGURATIONS, input_configurations),
        (ATTR_INPUT_ACTIONS, input_actions),
        (ATTR_INPUT_ACTIONS, compiled),
    ]
    for attribute, elements in payloads:
        if elements is None:
            continue
        write = build_device_setup_write(attribute, elements, structured)
        await async_write_device_setup_attribute(transport, write)
        kv(_LOGGER, level, "DeviceSetup written", attribute=attribute, elements=len(elements))

    result = await async_read_device_setup(transport)
    kv(
        _LOGGER,
        level,
        "DeviceSetup read back",
        input_actions=len(result[ATTR_INPUT_ACTIONS]),
        elapsed_s=round(sw.elapsed, 1),
    )
    return result
