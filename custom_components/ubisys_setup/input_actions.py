"""Compile input action templates into DeviceSetup InputActions rows.

The DeviceSetup cluster (0xFC00) stores one row per physical-input binding.
Writing those rows by hand means knowing transition bitmaps, cluster IDs and
command payloads. This module lets a user describe behavior instead:

    [{"type": "toggle_switch"}, {"type": "dimmer_double", "rate": 80}]

and expands each template into rows in the device's wire layout.

Row layout (one octet string per row):

    Byte 0: InputAndOptions (input index 0-15)
    Byte 1: Transition
        Bit 7: has alternate, bit 6: is alternate
        Bits 2-3: initial state, bits 0-1: final state
        States: 0 ignore, 1 pressed, 2 kept pressed, 3 released
    Byte 2: Source endpoint
    Bytes 3-4: Target cluster ID (little-endian)
    Byte 5: Command ID
    Bytes 6+: Command payload

Cursor policy:
    Input and endpoint start at 0 and the model's first client endpoint.
    After each template the input moves one past the highest input used and
    the endpoint moves up by one, so later templates may omit both.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .const import (
    C4_COVER_ENDPOINT_OFFSET,
    C4_FIRST_COVER_ENDPOINT,
    C4_MODEL,
    CLUSTER_ID_LEVEL_CONTROL,
    CLUSTER_ID_ON_OFF,
    CLUSTER_ID_SCENES,
    CMD_COVER_STOP,
    CMD_DOWN_CLOSE,
    CMD_LEVEL_STOP,
    CMD_MOVE,
    CMD_MOVE_WITH_ON_OFF,
    CMD_OFF,
    CMD_ON,
    CMD_RECALL_SCENE,
    CMD_TOGGLE,
    CMD_UP_OPEN,
    DEFAULT_MOVE_RATE,
    MODEL_STARTING_ENDPOINT,
    MOVE_DOWN,
    MOVE_UP,
    TRANSITION_ANY_TO_RELEASED,
    TRANSITION_KEPT_PRESSED_ALTERNATE,
    TRANSITION_KEPT_PRESSED_IS_ALTERNATE,
    TRANSITION_KEPT_PRESSED_TO_RELEASED,
    TRANSITION_PRESSED_TO_KEPT_PRESSED,
    TRANSITION_PRESSED_TO_RELEASED,
    TRANSITION_RELEASED_TO_PRESSED,
    WINDOW_COVERING_CLUSTER_ID,
)
from .errors import ConfigurationError

_LOGGER = logging.getLogger(__name__)


class InputActionTemplateType(StrEnum):
    """Template families understood by the compiler."""

    TOGGLE = "toggle"
    TOGGLE_SWITCH = "toggle_switch"
    ON_OFF_SWITCH = "on_off_switch"
    ON = "on"
    OFF = "off"
    DIMMER_SINGLE = "dimmer_single"
    DIMMER_DOUBLE = "dimmer_double"
    COVER = "cover"
    COVER_SWITCH = "cover_switch"
    COVER_UP = "cover_up"
    COVER_DOWN = "cover_down"
    SCENE = "scene"
    SCENE_SWITCH = "scene_switch"


@dataclass(frozen=True)
class InputAction:
    """A single InputActions row."""

    input_number: int
    transition: int
    source_endpoint: int
    cluster_id: int
    command_id: int
    payload: tuple[int, ...] = ()

    def to_list(self) -> list[int]:
        """Return the row as a list of byte values."""
        return [
            self.input_number,
            self.transition,
            self.source_endpoint,
            self.cluster_id & 0xFF,
            (self.cluster_id >> 8) & 0xFF,
            self.command_id,
            *self.payload,
        ]

    def to_bytes(self) -> bytes:
        """Return the row as the octet string written to the device."""
        return bytes(self.to_list())


def _on_off(input_number: int, transition: int, endpoint: int, command: int) -> InputAction:
    return InputAction(input_number, transition, endpoint, CLUSTER_ID_ON_OFF, command)


def _level(
    input_number: int,
    transition: int,
    endpoint: int,
    command: int,
    payload: tuple[int, ...] = (),
) -> InputAction:
    return InputAction(
        input_number, transition, endpoint, CLUSTER_ID_LEVEL_CONTROL, command, payload
    )


def _cover(input_number: int, transition: int, endpoint: int, command: int) -> InputAction:
    return InputAction(
        input_number, transition, endpoint, WINDOW_COVERING_CLUSTER_ID, command
    )


def _recall_scene(
    input_number: int, transition: int, endpoint: int, group_id: int, scene_id: int
) -> InputAction:
    return InputAction(
        input_number,
        transition,
        endpoint,
        CLUSTER_ID_SCENES,
        CMD_RECALL_SCENE,
        (group_id & 0xFF, group_id >> 8, scene_id),
    )


def _move_commands(template: Mapping[str, Any]) -> tuple[int, int, int]:
    """Return (move up command, move down command, rate) for dimmer templates."""
    no_onoff = bool(template.get("no_onoff"))
    up = CMD_MOVE if no_onoff or template.get("no_onoff_up") else CMD_MOVE_WITH_ON_OFF
    down = CMD_MOVE if no_onoff or template.get("no_onoff_down") else CMD_MOVE_WITH_ON_OFF
    return up, down, template.get("rate") or DEFAULT_MOVE_RATE


# ---------------------------------------------------------------------------
# Family expansions
# ---------------------------------------------------------------------------


def _toggle(i: int, ep: int, template: Mapping[str, Any]) -> list[InputAction]:
    return [_on_off(i, TRANSITION_RELEASED_TO_PRESSED, ep, CMD_TOGGLE)]


def _toggle_switch(i: int, ep: int, template: Mapping[str, Any]) -> list[InputAction]:
    # A rocker changes state on both edges
    return [
        _on_off(i, TRANSITION_RELEASED_TO_PRESSED, ep, CMD_TOGGLE),
        _on_off(i, TRANSITION_ANY_TO_RELEASED, ep, CMD_TOGGLE),
    ]


def _on_off_switch(i: int, ep: int, template: Mapping[str, Any]) -> list[InputAction]:
    return [
        _on_off(i, TRANSITION_RELEASED_TO_PRESSED, ep, CMD_ON),
        _on_off(i, TRANSITION_ANY_TO_RELEASED, ep, CMD_OFF),
    ]


def _on(i: int, ep: int, template: Mapping[str, Any]) -> list[InputAction]:
    return [_on_off(i, TRANSITION_RELEASED_TO_PRESSED, ep, CMD_ON)]


def _off(i: int, ep: int, template: Mapping[str, Any]) -> list[InputAction]:
    return [_on_off(i, TRANSITION_RELEASED_TO_PRESSED, ep, CMD_OFF)]


def _dimmer_single(i: int, ep: int, template: Mapping[str, Any]) -> list[InputAction]:
    up, down, rate = _move_commands(template)
    return [
        _on_off(i, TRANSITION_PRESSED_TO_RELEASED, ep, CMD_TOGGLE),
        _level(i, TRANSITION_KEPT_PRESSED_ALTERNATE, ep, up, (MOVE_UP, rate)),
        _level(i, TRANSITION_KEPT_PRESSED_IS_ALTERNATE, ep, down, (MOVE_DOWN, rate)),
        _level(i, TRANSITION_KEPT_PRESSED_TO_RELEASED, ep, CMD_LEVEL_STOP),
    ]


def _dimmer_double(
    inputs: Sequence[int], ep: int, template: Mapping[str, Any]
) -> list[InputAction]:
    up, down, rate = _move_commands(template)
    first, second = inputs[0], inputs[1]
    return [
        _on_off(first, TRANSITION_PRESSED_TO_RELEASED, ep, CMD_ON),
        _level(first, TRANSITION_PRESSED_TO_KEPT_PRESSED, ep, up, (MOVE_UP, rate)),
        _level(first, TRANSITION_KEPT_PRESSED_TO_RELEASED, ep, CMD_LEVEL_STOP),
        _on_off(second, TRANSITION_PRESSED_TO_RELEASED, ep, CMD_OFF),
        _level(second, TRANSITION_PRESSED_TO_KEPT_PRESSED, ep, down, (MOVE_DOWN, rate)),
        _level(second, TRANSITION_KEPT_PRESSED_TO_RELEASED, ep, CMD_LEVEL_STOP),
    ]


def _cover_pair(stop_transition: int) -> Callable[..., list[InputAction]]:
    def expand(
        inputs: Sequence[int], ep: int, template: Mapping[str, Any]
    ) -> list[InputAction]:
        up_input, down_input = inputs[0], inputs[1]
        return [
            _cover(up_input, TRANSITION_RELEASED_TO_PRESSED, ep, CMD_UP_OPEN),
            _cover(up_input, stop_transition, ep, CMD_COVER_STOP),
            _cover(down_input, TRANSITION_RELEASED_TO_PRESSED, ep, CMD_DOWN_CLOSE),
            _cover(down_input, stop_transition, ep, CMD_COVER_STOP),
        ]

    return expand


def _cover_up(i: int, ep: int, template: Mapping[str, Any]) -> list[InputAction]:
    return [_cover(i, TRANSITION_RELEASED_TO_PRESSED, ep, CMD_UP_OPEN)]


def _cover_down(i: int, ep: int, template: Mapping[str, Any]) -> list[InputAction]:
    return [_cover(i, TRANSITION_RELEASED_TO_PRESSED, ep, CMD_DOWN_CLOSE)]


def _scene_binding(transition: int) -> Callable[..., list[InputAction]]:
    def expand(i: int, ep: int, group_id: int, scene_id: int) -> list[InputAction]:
        return [_recall_scene(i, transition, ep, group_id, scene_id)]

    return expand


@dataclass(frozen=True)
class TemplateFamily:
    """Capability flags and expansion functions of one template type.

    Scene families take (input, endpoint, group_id, scene_id) and provide a
    secondary expansion for ``scene_id_2``. Double-input families take an
    input pair. All others take (input, endpoint, template).
    """

    expand: Callable[..., list[InputAction]]
    double_inputs: bool = False
    cover: bool = False
    scene: bool = False
    expand_secondary: Callable[..., list[InputAction]] | None = field(default=None)


TEMPLATE_FAMILIES: dict[InputActionTemplateType, TemplateFamily] = {
    InputActionTemplateType.TOGGLE: TemplateFamily(_toggle),
    InputActionTemplateType.TOGGLE_SWITCH: TemplateFamily(_toggle_switch),
    InputActionTemplateType.ON_OFF_SWITCH: TemplateFamily(_on_off_switch),
    InputActionTemplateType.ON: TemplateFamily(_on),
    InputActionTemplateType.OFF: TemplateFamily(_off),
    InputActionTemplateType.DIMMER_SINGLE: TemplateFamily(_dimmer_single),
    InputActionTemplateType.DIMMER_DOUBLE: TemplateFamily(
        _dimmer_double, double_inputs=True
    ),
    InputActionTemplateType.COVER: TemplateFamily(
        _cover_pair(TRANSITION_PRESSED_TO_RELEASED), double_inputs=True, cover=True
    ),
    InputActionTemplateType.COVER_SWITCH: TemplateFamily(
        _cover_pair(TRANSITION_ANY_TO_RELEASED), double_inputs=True, cover=True
    ),
    InputActionTemplateType.COVER_UP: TemplateFamily(_cover_up, cover=True),
    InputActionTemplateType.COVER_DOWN: TemplateFamily(_cover_down, cover=True),
    InputActionTemplateType.SCENE: TemplateFamily(
        _scene_binding(TRANSITION_PRESSED_TO_RELEASED),
        scene=True,
        expand_secondary=_scene_binding(TRANSITION_PRESSED_TO_KEPT_PRESSED),
    ),
    InputActionTemplateType.SCENE_SWITCH: TemplateFamily(
        _scene_binding(TRANSITION_RELEASED_TO_PRESSED),
        scene=True,
        expand_secondary=_scene_binding(TRANSITION_ANY_TO_RELEASED),
    ),
}


@dataclass
class CompilerCursor:
    """Running defaults carried from one template to the next."""

    current_input: int | list[int]
    current_endpoint: int
    current_group_id: int = 0

    @property
    def first_input(self) -> int:
        if isinstance(self.current_input, list):
            return self.current_input[0]
        return self.current_input

    def advance(self) -> None:
        """Move past the inputs and endpoint used by the last template."""
        if isinstance(self.current_input, list):
            self.current_input = max(self.current_input) + 1
        else:
            self.current_input += 1
        self.current_endpoint += 1


def starting_endpoint(model: str) -> int:
    """Return the first client endpoint used for templates on ``model``.

    Client endpoints follow the server endpoints on every model, so the
    first free one differs: S1/D1/J1 start at 2, S2 at 3 and C4 at 1.

    Args:
        model: Short model name as returned by ``extract_model``

    Raises:
        ConfigurationError: If ``model`` has no known endpoint layout.

    Example:
        >>> starting_endpoint("S2-R")
        3
    """
    try:
        return MODEL_STARTING_ENDPOINT[model]
    except KeyError:
        raise ConfigurationError(
            f"input_action_templates: Model '{model}' is not supported "
            f"(supported models: {', '.join(MODEL_STARTING_ENDPOINT)})"
        ) from None


# Template keys that end up in a single row byte or a little-endian uint16
_UINT8_KEYS = ("input", "endpoint", "rate", "scene_id", "scene_id_2")
_UINT16_KEYS = ("group_id", "group_id_2")


def _check_value(
    index: int, template: Mapping[str, Any], key: str, value: Any, maximum: int
) -> None:
    # bool is an int subclass but never a valid byte value here
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= maximum:
        raise ConfigurationError(
            f"input_action_templates: '{key}' of '{template.get('type')}' at index "
            f"{index} must be an integer from 0 to {maximum}, got {value!r}"
        )


def _validate_template_values(index: int, template: Mapping[str, Any]) -> None:
    """Range-check every numeric template field.

    Args:
        index: Position of the template, used in the error message
        template: The template mapping as given by the caller

    Raises:
        ConfigurationError: If a field is not an integer or does not fit the
            row byte (or uint16 group ID) it is encoded into.
    """
    for key in _UINT8_KEYS:
        if template.get(key) is not None:
            _check_value(index, template, key, template[key], 0xFF)
    for key in _UINT16_KEYS:
        if template.get(key) is not None:
            _check_value(index, template, key, template[key], 0xFFFF)

    inputs = template.get("inputs")
    if inputs is None:
        return
    if isinstance(inputs, (str, bytes)) or not isinstance(inputs, Sequence) or len(inputs) != 2:
        raise ConfigurationError(
            f"input_action_templates: 'inputs' of '{template.get('type')}' at index "
            f"{index} must be a pair of input numbers, got {inputs!r}"
        )
    for value in inputs:
        _check_value(index, template, "inputs", value, 0xFF)


def _check_row(index: int, template: Mapping[str, Any], row: list[int]) -> None:
    # Auto-incremented inputs and endpoints can run past 255
    if any(not 0 <= value <= 0xFF for value in row):
        raise ConfigurationError(
            f"input_action_templates: '{template.get('type')}' at index {index} "
            f"produces an out of range row {row} (input or endpoint above 255)"
        )


def _resolve_family(index: int, template: Mapping[str, Any]) -> TemplateFamily:
    template_type = template.get("type")
    try:
        return TEMPLATE_FAMILIES[InputActionTemplateType(template_type)]
    except ValueError:
        valid = ", ".join(member.value for member in InputActionTemplateType)
        raise ConfigurationError(
            f"input_action_templates: Template type '{template_type}' at index "
            f"{index} is not valid (valid types: {valid})"
        ) from None


def _expand_template(
    index: int,
    template: Mapping[str, Any],
    family: TemplateFamily,
    cursor: CompilerCursor,
) -> list[InputAction]:
    endpoint = cursor.current_endpoint

    if family.double_inputs:
        inputs = template.get("inputs")
        if inputs is None:
            first = cursor.first_input
            inputs = [first, first + 1]
        cursor.current_input = list(inputs)
        return family.expand(cursor.current_input, endpoint, template)

    if not family.scene:
        return family.expand(cursor.first_input, endpoint, template)

    if template.get("scene_id") is None:
        raise ConfigurationError(
            f"input_action_templates: Need an attribute 'scene_id' for "
            f"'{template.get('type')}' at index {index}"
        )
    if template.get("group_id") is not None:
        cursor.current_group_id = template["group_id"]
    actions = family.expand(
        cursor.first_input, endpoint, cursor.current_group_id, template["scene_id"]
    )
    if template.get("scene_id_2") is not None and family.expand_secondary:
        if template.get("group_id_2") is not None:
            cursor.current_group_id = template["group_id_2"]
        actions += family.expand_secondary(
            cursor.first_input,
            endpoint,
            cursor.current_group_id,
            template["scene_id_2"],
        )
    return actions


def compile_input_action_templates(
    templates: Mapping[str, Any] | Sequence[Mapping[str, Any]],
    model: str,
) -> list[list[int]]:
    """Expand templates into InputActions rows for a device of ``model``.

    A single mapping is accepted as a one-element list. Any unknown type,
    missing scene_id, out of range value or unsupported model raises
    ConfigurationError before a single row is returned.

    Args:
        templates: Template mappings, each with at least a "type" key
        model: Short model name such as "S1" or "C4"; selects the first
            client endpoint and the C4 cover endpoint shift

    Returns:
        One list of byte values per InputActions row, in template order.

    Raises:
        ConfigurationError: The message names the template index and type.
    """
    if isinstance(templates, Mapping):
        templates = [templates]

    cursor = CompilerCursor(current_input=0, current_endpoint=starting_endpoint(model))
    rows: list[list[int]] = []

    for index, template in enumerate(templates):
        family = _resolve_family(index, template)
        _validate_template_values(index, template)

        if template.get("input") is not None:
            cursor.current_input = template["input"]
        if template.get("endpoint") is not None:
            cursor.current_endpoint = template["endpoint"]
        if family.cover and model == C4_MODEL and cursor.current_endpoint < C4_FIRST_COVER_ENDPOINT:
            cursor.current_endpoint += C4_COVER_ENDPOINT_OFFSET

        actions = _expand_template(index, template, family, cursor)
        for action in actions:
            row = action.to_list()
            _check_row(index, template, row)
            rows.append(row)

        _LOGGER.debug(
            "Template %d (%s): input(s) %s, endpoint %d, %d row(s)",
            index,
            template.get("type"),
            cursor.current_input,
            cursor.current_endpoint,
            len(actions),
        )
        cursor.advance()

    return rows
