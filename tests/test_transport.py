"""Tests for the zigpy-backed attribute transport."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from zigpy.zcl import foundation

from custom_components.ubisys_setup.errors import TransportError
from custom_components.ubisys_setup.transport import (
    StructuredRecord,
    ZigpyAttributeTransport,
    build_zcl_array,
)


# =============================================================================
# Array helpers
# =============================================================================


def test_build_data8_array():
    array = build_zcl_array(0x08, [0x00, 0x40])
    assert isinstance(array, foundation.Array)
    assert array.type == 0x08
    assert [int(element[0]) for element in array.value] == [0x00, 0x40]


def test_build_octet_string_array():
    array = build_zcl_array(0x41, [[0, 0x0D, 2, 6, 0, 2], bytes([1, 2, 3, 4, 5, 6])])
    assert array.type == 0x41
    assert [bytes(element) for element in array.value] == [
        bytes([0, 0x0D, 2, 6, 0, 2]),
        bytes([1, 2, 3, 4, 5, 6]),
    ]


# =============================================================================
# Reads
# =============================================================================


@pytest.mark.asyncio
async def test_read_returns_plain_values(mock_zigpy_device, mock_window_covering_cluster):
    mock_window_covering_cluster.read_attributes.return_value = (
        {"window_covering_mode": 1, "total_steps": 900},
        {},
    )
    transport = ZigpyAttributeTransport(mock_zigpy_device)

    values = await transport.read(
        "window_covering", ["window_covering_mode", "total_steps"], manufacturer=0x10F2
    )

    assert values == {"window_covering_mode": 1, "total_steps": 900}
    mock_window_covering_cluster.read_attributes.assert_awaited_once_with(
        ["window_covering_mode", "total_steps"], manufacturer=0x10F2
    )


@pytest.mark.asyncio
async def test_read_unwraps_arrays(mock_zigpy_device, mock_device_setup_cluster):
    mock_device_setup_cluster.read_attributes.return_value = (
        {
            "input_configurations": build_zcl_array(0x08, [0x00, 0x40]),
            "input_actions": build_zcl_array(0x41, [[0, 0x0D, 2, 6, 0, 2]]),
        },
        {},
    )
    transport = ZigpyAttributeTransport(mock_zigpy_device)

    values = await transport.read("device_setup", ["input_configurations", "input_actions"])

    assert values == {
        "input_configurations": [0x00, 0x40],
        "input_actions": [[0, 0x0D, 2, 6, 0, 2]],
    }


@pytest.mark.asyncio
async def test_read_failure_records_raise(mock_zigpy_device, mock_window_covering_cluster):
    mock_window_covering_cluster.read_attributes.return_value = (
        {},
        {"total_steps": foundation.Status.UNSUPPORTED_ATTRIBUTE},
    )
    transport = ZigpyAttributeTransport(mock_zigpy_device)

    with pytest.raises(TransportError, match="incomplete"):
        await transport.read("window_covering", ["total_steps"])


@pytest.mark.asyncio
async def test_read_missing_attribute_raises(mock_zigpy_device, mock_window_covering_cluster):
    mock_window_covering_cluster.read_attributes.return_value = ({"config_status": 3}, {})
    transport = ZigpyAttributeTransport(mock_zigpy_device)

    with pytest.raises(TransportError):
        await transport.read("window_covering", ["config_status", "total_steps"])


@pytest.mark.asyncio
async def test_read_timeout_raises(mock_zigpy_device, mock_window_covering_cluster):
    mock_window_covering_cluster.read_attributes.side_effect = asyncio.TimeoutError
    transport = ZigpyAttributeTransport(mock_zigpy_device)

    with pytest.raises(TransportError):
        await transport.read("window_covering", ["operational_status"])


# =============================================================================
# Writes and commands
# =============================================================================


@pytest.mark.asyncio
async def test_write_passes_manufacturer(mock_zigpy_device, mock_window_covering_cluster):
    transport = ZigpyAttributeTransport(mock_zigpy_device)

    await transport.write("window_covering", {"total_steps": 500}, manufacturer=0x10F2)

    mock_window_covering_cluster.write_attributes.assert_awaited_once_with(
        {"total_steps": 500}, manufacturer=0x10F2
    )


@pytest.mark.asyncio
async def test_write_converts_array_envelope(mock_zigpy_device, mock_device_setup_cluster):
    transport = ZigpyAttributeTransport(mock_zigpy_device)

    await transport.write(
        "device_setup",
        {"input_configurations": {"element_type": 0x08, "elements": [0x00, 0x00]}},
    )

    payload = mock_device_setup_cluster.write_attributes.await_args.args[0]
    array = payload["input_configurations"]
    assert isinstance(array, foundation.Array)
    assert array.type == 0x08
    assert len(array.value) == 2


@pytest.mark.asyncio
async def test_write_rejected_status_raises(mock_zigpy_device, mock_window_covering_cluster):
    mock_window_covering_cluster.write_attributes.return_value = [
        [
            foundation.WriteAttributesStatusRecord(
                status=foundation.Status.READ_ONLY, attrid=0x0017
            )
        ]
    ]
    transport = ZigpyAttributeTransport(mock_zigpy_device)

    with pytest.raises(TransportError, match="rejected"):
        await transport.write("window_covering", {"window_covering_mode": 2})


@pytest.mark.asyncio
async def test_write_success_record_passes(mock_zigpy_device, mock_window_covering_cluster):
    mock_window_covering_cluster.write_attributes.return_value = [
        [foundation.WriteAttributesStatusRecord(status=foundation.Status.SUCCESS)]
    ]
    transport = ZigpyAttributeTransport(mock_zigpy_device)

    await transport.write("window_covering", {"window_covering_mode": 2})


@pytest.mark.asyncio
async def test_command_calls_cluster_method(mock_zigpy_device, mock_window_covering_cluster):
    transport = ZigpyAttributeTransport(mock_zigpy_device)

    await transport.command("window_covering", "down_close")

    mock_window_covering_cluster.down_close.assert_awaited_once_with()
    mock_window_covering_cluster.up_open.assert_not_awaited()


@pytest.mark.asyncio
async def test_command_failure_raises(mock_zigpy_device, mock_window_covering_cluster):
    mock_window_covering_cluster.stop.side_effect = RuntimeError("radio busy")
    transport = ZigpyAttributeTransport(mock_zigpy_device)

    with pytest.raises(TransportError, match="radio busy"):
        await transport.command("window_covering", "stop")


@pytest.mark.asyncio
async def test_write_structured_builds_records(mock_zigpy_device, mock_device_setup_cluster):
    transport = ZigpyAttributeTransport(mock_zigpy_device)
    record = StructuredRecord(
        attr_id=0x0001, data_type=0x48, element_type=0x41, elements=[[0, 0x0D, 2, 6, 0, 2]]
    )

    await transport.write_structured("device_setup", [record])

    call = mock_device_setup_cluster.general_command.await_args
    assert call.args[0] == foundation.GeneralCommand.Write_Attributes_Structured
    (zcl_record,) = call.args[1]
    assert zcl_record.attrid == 0x0001
    assert zcl_record.selector.depth == 0
    assert zcl_record.value.type == 0x48
    assert zcl_record.value.value.type == 0x41
    assert call.kwargs["manufacturer"] is None


# =============================================================================
# Cluster resolution
# =============================================================================


@pytest.mark.asyncio
async def test_missing_endpoint_raises():
    device = SimpleNamespace(ieee="00:11", endpoints={})
    transport = ZigpyAttributeTransport(device)

    with pytest.raises(TransportError, match="Endpoint 2"):
        await transport.read("window_covering", ["config_status"])


@pytest.mark.asyncio
async def test_missing_cluster_raises():
    device = SimpleNamespace(
        ieee="00:11", endpoints={232: SimpleNamespace(in_clusters={})}
    )
    transport = ZigpyAttributeTransport(device)

    with pytest.raises(TransportError, match="0xFC00"):
        await transport.read("device_setup", ["input_actions"])


@pytest.mark.asyncio
async def test_unknown_cluster_name_raises(mock_zigpy_device):
    transport = ZigpyAttributeTransport(mock_zigpy_device)

    with pytest.raises(TransportError, match="Unknown cluster"):
        await transport.command("on_off", "toggle")


@pytest.mark.asyncio
async def test_d1_clusters_resolve_on_endpoint_1():
    dimmer_setup = MagicMock()
    dimmer_setup.read_attributes = AsyncMock(return_value=({"mode": 2}, {}))
    level_control = MagicMock()
    level_control.read_attributes = AsyncMock(
        return_value=({"minimum_on_level": 15}, {})
    )
    device = SimpleNamespace(
        ieee="00:11",
        endpoints={
            1: SimpleNamespace(in_clusters={0xFC01: dimmer_setup, 0x0008: level_control})
        },
    )
    transport = ZigpyAttributeTransport(device)

    assert await transport.read("dimmer_setup", ["mode"]) == {"mode": 2}
    assert await transport.read(
        "level_control", ["minimum_on_level"], manufacturer=0x10F2
    ) == {"minimum_on_level": 15}
    dimmer_setup.read_attributes.assert_awaited_once_with(["mode"], manufacturer=None)
    level_control.read_attributes.assert_awaited_once_with(
        ["minimum_on_level"], manufacturer=0x10F2
    )
