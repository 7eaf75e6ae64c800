"""Tests for the D1 DimmerSetup and minimum on level configuration."""

from __future__ import annotations

import pytest

from custom_components.ubisys_setup.dimmer_setup import (
    async_configure_dimmer_setup,
    async_read_dimmer_setup,
    decode_capabilities,
    decode_phase_control_mode,
    decode_status,
    validate_dimmer_options,
)
from custom_components.ubisys_setup.errors import TransportError, ValidationError

# =============================================================================
# Decoding
# =============================================================================


def test_decode_capabilities():
    assert decode_capabilities(0xE3) == {
        "forward_phase_control": True,
        "reverse_phase_control": True,
        "reactance_discriminator": True,
        "configurable_curve": True,
        "overload_detection": True,
    }
    assert not any(decode_capabilities(0x1C).values())


def test_decode_status():
    assert decode_status(0x8A) == {
        "forward_phase_control": False,
        "reverse_phase_control": True,
        "overload": True,
        "capacitive_load": False,
        "inductive_load": True,
    }


@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        (0x00, "automatic"),
        (0x01, "forward"),
        (0x02, "reverse"),
        (0x03, "reserved"),
        # Bits 2-7 are reserved and ignored
        (0xFD, "forward"),
    ],
)
def test_decode_phase_control_mode(mode, expected):
    assert decode_phase_control_mode(mode) == expected


# =============================================================================
# Validation
# =============================================================================


def test_validate_dimmer_options():
    assert validate_dimmer_options("Forward", None) == (1, None)
    assert validate_dimmer_options(None, 0) == (None, 0)
    assert validate_dimmer_options("reverse", 255) == (2, 255)


@pytest.mark.parametrize(
    ("mode", "level", "match"),
    [
        (None, None, "At least one"),
        ("leading", None, "Invalid phase_control_mode 'leading'"),
        (None, 256, "minimum_on_level must be an integer"),
        (None, -1, "minimum_on_level must be an integer"),
        (None, True, "minimum_on_level must be an integer"),
        (None, "20", "minimum_on_level must be an integer"),
    ],
)
def test_validate_dimmer_options_rejects(mode, level, match):
    with pytest.raises(ValidationError, match=match):
        validate_dimmer_options(mode, level)


# =============================================================================
# Read and configure
# =============================================================================


@pytest.mark.asyncio
async def test_read_dimmer_setup(make_transport):
    transport = make_transport(
        {"capabilities": 0x03, "status": 0x41, "mode": 0x00, "minimum_on_level": 12}
    )

    result = await async_read_dimmer_setup(transport)

    # DimmerSetup attributes are read one by one without a manufacturer code
    assert transport.calls == [
        ("read", "dimmer_setup", ["capabilities"], None),
        ("read", "dimmer_setup", ["status"], None),
        ("read", "dimmer_setup", ["mode"], None),
        ("read", "level_control", ["minimum_on_level"], 0x10F2),
    ]
    assert result["capabilities"] == 0x03
    assert result["decoded_capabilities"]["reverse_phase_control"] is True
    assert result["decoded_status"]["forward_phase_control"] is True
    assert result["decoded_status"]["capacitive_load"] is True
    assert result["phase_control_mode"] == "automatic"
    assert result["minimum_on_level"] == 12


@pytest.mark.asyncio
async def test_configure_phase_control_mode_only(fake_transport):
    await async_configure_dimmer_setup(fake_transport, phase_control_mode="reverse")

    assert fake_transport.writes() == [({"mode": 0x02}, None)]
    assert fake_transport.operations() == ["write", "read", "read", "read", "read"]


@pytest.mark.asyncio
async def test_configure_minimum_on_level_only(fake_transport):
    await async_configure_dimmer_setup(fake_transport, minimum_on_level=30)

    assert fake_transport.calls[0] == (
        "write",
        "level_control",
        {"minimum_on_level": 30},
        0x10F2,
    )
    assert len(fake_transport.writes()) == 1


@pytest.mark.asyncio
async def test_configure_writes_mode_before_level(fake_transport):
    await async_configure_dimmer_setup(
        fake_transport, phase_control_mode="forward", minimum_on_level=5
    )

    assert fake_transport.writes() == [
        ({"mode": 0x01}, None),
        ({"minimum_on_level": 5}, 0x10F2),
    ]


@pytest.mark.asyncio
async def test_invalid_options_write_nothing(fake_transport):
    with pytest.raises(ValidationError):
        await async_configure_dimmer_setup(
            fake_transport, phase_control_mode="forward", minimum_on_level=300
        )

    assert fake_transport.calls == []


@pytest.mark.asyncio
async def test_rejected_mode_write_stops_before_level(fake_transport):
    # The D1 refuses a mode change while the output is on
    fake_transport.fail_on.add(("write", "mode"))

    with pytest.raises(TransportError, match="write mode failed"):
        await async_configure_dimmer_setup(
            fake_transport, phase_control_mode="reverse", minimum_on_level=5
        )

    assert fake_transport.calls == [("write", "dimmer_setup", {"mode": 0x02}, None)]
