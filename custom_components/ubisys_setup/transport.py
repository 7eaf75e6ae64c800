"""Attribute transport between the integration and a zigpy device.

The calibration orchestrator and the device setup flow talk to the device
only through the four operations of ``AttributeTransport``. Keeping zigpy out
of those modules lets tests drive them with a recording fake.

``ZigpyAttributeTransport`` implements the protocol over a zigpy device
obtained from the ZHA gateway:

    read            cluster.read_attributes([...names])
    write           cluster.write_attributes({name: value})
    command         cluster.<command_name>()
    write_structured  cluster.general_command(Write_Attributes_Structured, ...)

Every zigpy exception, timeout or non-success status becomes TransportError.
No operation is retried here.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from async_timeout import timeout
import zigpy.types as t
from zigpy.zcl import foundation

from .const import CLUSTER_LAYOUT, ZCL_TIMEOUT, ZCL_TYPE_DATA8
from .errors import TransportError

if TYPE_CHECKING:
    from zigpy.device import Device
    from zigpy.zcl import Cluster

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class StructuredRecord:
    """One attribute of a Write Attributes Structured request."""

    attr_id: int
    data_type: int
    element_type: int
    elements: list[Any]


class AttributeTransport(Protocol):
    """Read/write/command capability against one remote device."""

    async def read(
        self,
        cluster: str,
        attributes: Sequence[str],
        *,
        manufacturer: int | None = None,
    ) -> dict[str, Any]: ...

    async def write(
        self,
        cluster: str,
        values: Mapping[str, Any],
        *,
        manufacturer: int | None = None,
    ) -> None: ...

    async def command(self, cluster: str, command: str) -> None: ...

    async def write_structured(
        self,
        cluster: str,
        records: Sequence[StructuredRecord],
        *,
        manufacturer: int | None = None,
    ) -> None: ...


def _to_plain(value: Any) -> Any:
    """Convert zigpy typed values into plain Python values."""
    if isinstance(value, foundation.TypeValue):
        element_type = value.type
        elements = value.value if value.value is not None else []
        if element_type == ZCL_TYPE_DATA8:
            return [int(element[0]) for element in elements]
        return [_to_plain(element) for element in elements]
    if isinstance(value, (bytes, bytearray)):
        return list(value)
    if isinstance(value, str):
        return str(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, list):
        return [_to_plain(element) for element in value]
    return value


def _coerce_element(python_type: type, element: Any) -> Any:
    if issubclass(python_type, bytes):
        return python_type(bytes(element))
    if issubclass(python_type, list) and isinstance(element, int):
        return python_type([element])
    return python_type(element)


def build_zcl_array(element_type: int, elements: Sequence[Any]) -> foundation.Array:
    """Build a ZCL array of ``element_type`` from plain Python elements.

    Args:
        element_type: ZCL data type ID of the elements, e.g. 0x08 (data8)
            for InputConfigurations or 0x41 (octet string) for InputActions
        elements: Integers for data8 arrays, byte sequences or lists of
            integers for octet string arrays

    Returns:
        A ``foundation.Array`` with a uint16 element count, ready to be
        wrapped in a ``TypeValue`` or written as an attribute value.

    Raises:
        ValueError: If ``element_type`` is not a known ZCL data type, or an
            element does not fit it (e.g. a byte above 255).
    """
    python_type = foundation.DataType.from_type_id(element_type).python_type
    items = t.LVList[python_type, t.uint16_t](
        _coerce_element(python_type, element) for element in elements
    )
    return foundation.Array(type=element_type, value=items)


def _to_zcl_value(value: Any) -> Any:
    if isinstance(value, Mapping) and "element_type" in value:
        return build_zcl_array(value["element_type"], value["elements"])
    return value


def _check_write_records(result: Any, action: str) -> None:
    """Raise TransportError for any non-success status record in ``result``."""
    if not result:
        return
    status = getattr(result, "status", None)
    if status is not None and status != foundation.Status.SUCCESS:
        raise TransportError(f"{action} rejected: status {status}")
    records = result[0] if isinstance(result[0], list) else result
    for record in records:
        status = getattr(record, "status", None)
        if status is not None and status != foundation.Status.SUCCESS:
            attrid = getattr(record, "attrid", None)
            raise TransportError(f"{action} rejected: attribute {attrid} status {status}")


class ZigpyAttributeTransport:
    """AttributeTransport backed by a zigpy device."""

    def __init__(self, device: Device, *, request_timeout: float = ZCL_TIMEOUT) -> None:
        self._device = device
        self._timeout = request_timeout

    @property
    def device(self) -> Device:
        return self._device

    def _cluster(self, name: str) -> Cluster:
        try:
            endpoint_id, cluster_id = CLUSTER_LAYOUT[name]
        except KeyError:
            raise TransportError(f"Unknown cluster name: {name}") from None

        endpoint = self._device.endpoints.get(endpoint_id)
        if endpoint is None:
            raise TransportError(
                f"Endpoint {endpoint_id} not found on device {self._device.ieee}"
            )
        cluster = endpoint.in_clusters.get(cluster_id)
        if cluster is None:
            raise TransportError(
                f"Cluster 0x{cluster_id:04X} not found on endpoint {endpoint_id} "
                f"of device {self._device.ieee}"
            )
        return cluster

    async def read(
        self,
        cluster: str,
        attributes: Sequence[str],
        *,
        manufacturer: int | None = None,
    ) -> dict[str, Any]:
        zcl_cluster = self._cluster(cluster)
        _LOGGER.debug("Read %s %s (mfg=%s)", cluster, list(attributes), manufacturer)
        try:
            async with timeout(self._timeout):
                result = await zcl_cluster.read_attributes(
                    list(attributes), manufacturer=manufacturer
                )
        except Exception as err:
            raise TransportError(f"Read of {cluster} {list(attributes)} failed: {err}") from err

        if isinstance(result, (list, tuple)):
            success = result[0] if result else {}
            failure = result[1] if len(result) > 1 else {}
        else:
            success, failure = result, {}

        missing = [name for name in attributes if name not in success]
        if failure or missing:
            raise TransportError(
                f"Read of {cluster} incomplete: missing={missing} failure={dict(failure)}"
            )

        values = {name: _to_plain(success[name]) for name in attributes}
        _LOGGER.debug("Read %s result: %s", cluster, values)
        return values

    async def write(
        self,
        cluster: str,
        values: Mapping[str, Any],
        *,
        manufacturer: int | None = None,
    ) -> None:
        zcl_cluster = self._cluster(cluster)
        payload = {name: _to_zcl_value(value) for name, value in values.items()}
        _LOGGER.debug("Write %s %s (mfg=%s)", cluster, dict(values), manufacturer)
        try:
            async with timeout(self._timeout):
                result = await zcl_cluster.write_attributes(
                    payload, manufacturer=manufacturer
                )
        except Exception as err:
            raise TransportError(f"Write of {cluster} {list(values)} failed: {err}") from err
        _check_write_records(result, f"Write of {cluster}")

    async def command(self, cluster: str, command: str) -> None:
        zcl_cluster = self._cluster(cluster)
        _LOGGER.debug("Command %s.%s", cluster, command)
        try:
            async with timeout(self._timeout):
                await getattr(zcl_cluster, command)()
        except Exception as err:
            raise TransportError(f"Command {cluster}.{command} failed: {err}") from err

    async def write_structured(
        self,
        cluster: str,
        records: Sequence[StructuredRecord],
        *,
        manufacturer: int | None = None,
    ) -> None:
        zcl_cluster = self._cluster(cluster)
        zcl_records = [
            foundation.WriteAttributeStructured(
                attrid=record.attr_id,
                selector=foundation.Selector(depth=0, indexes=[]),
                value=foundation.TypeValue(
                    type=record.data_type,
                    value=build_zcl_array(record.element_type, record.elements),
                ),
            )
            for record in records
        ]
        _LOGGER.debug(
            "Structured write %s attrs=%s (mfg=%s)",
            cluster,
            [f"0x{record.attr_id:04X}" for record in records],
            manufacturer,
        )
        try:
            async with timeout(self._timeout):
                result = await zcl_cluster.general_command(
                    foundation.GeneralCommand.Write_Attributes_Structured,
                    zcl_records,
                    manufacturer=manufacturer,
                )
        except Exception as err:
            raise TransportError(f"Structured write of {cluster} failed: {err}") from err
        _check_write_records(result, f"Structured write of {cluster}")
