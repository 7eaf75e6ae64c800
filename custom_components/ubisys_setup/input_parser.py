"""Decode InputActions rows read back from the DeviceSetup cluster.

Each row maps an input transition to a command sent from a source endpoint:

    (input_number, transition) → (endpoint, cluster_id, command_id, payload)

Decoded rows are returned by the get_device_setup service so users can check
what the device actually stored after a write.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

_LOGGER = logging.getLogger(__name__)

# InputAndOptions, Transition, Endpoint, ClusterLo, ClusterHi, CommandId
MIN_ROW_LENGTH = 6


class TransitionState(Enum):
    """Input states encoded in the Transition byte."""

    IDLE = 0x00
    PRESSED = 0x01
    KEPT_PRESSED = 0x02
    RELEASED = 0x03


@dataclass
class DecodedInputAction:
    """A single InputActions row split into its fields."""

    input_number: int
    input_options: int
    initial_state: TransitionState
    final_state: TransitionState
    has_alternate: bool
    is_alternate: bool
    source_endpoint: int
    cluster_id: int
    command_id: int
    payload: list[int]

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation for service responses."""
        return {
            "input": self.input_number,
            "input_options": self.input_options,
            "initial_state": self.initial_state.name.lower(),
            "final_state": self.final_state.name.lower(),
            "has_alternate": self.has_alternate,
            "is_alternate": self.is_alternate,
            "endpoint": self.source_endpoint,
            "cluster_id": self.cluster_id,
            "command_id": self.command_id,
            "payload": self.payload,
        }


class InputActionsParser:
    """Decoder for InputActions rows.

    Rows arrive as plain byte lists (one octet string per array element, the
    array header already stripped by the transport).
    """

    @staticmethod
    def parse_rows(rows: Sequence[Sequence[int]]) -> list[DecodedInputAction]:
        """Decode every row, skipping rows that are too short to be valid."""
        actions: list[DecodedInputAction] = []
        for index, row in enumerate(rows):
            try:
                actions.append(InputActionsParser.parse_row(row))
            except ValueError as err:
                _LOGGER.warning("Skipping InputActions row %d: %s", index, err)
        _LOGGER.debug("Decoded %d of %d InputActions rows", len(actions), len(rows))
        return actions

    @staticmethod
    def parse_row(row: Sequence[int] | bytes) -> DecodedInputAction:
        """Decode one row.

        Raises:
            ValueError: If the row is shorter than the fixed header.
        """
        data = bytes(row)
        if len(data) < MIN_ROW_LENGTH:
            raise ValueError(
                f"row has {len(data)} bytes (minimum {MIN_ROW_LENGTH} required)"
            )

        transition = data[1]
        return DecodedInputAction(
            input_number=data[0] & 0x0F,
            input_options=(data[0] >> 4) & 0x0F,
            initial_state=TransitionState((transition >> 2) & 0x03),
            final_state=TransitionState(transition & 0x03),
            has_alternate=bool(transition & 0x80),
            is_alternate=bool(transition & 0x40),
            source_endpoint=data[2],
            cluster_id=data[3] | (data[4] << 8),
            command_id=data[5],
            payload=list(data[6:]),
        )
