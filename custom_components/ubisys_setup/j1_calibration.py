"""Calibration orchestrator for the ubisys J1 window covering controller.

The J1 learns its travel limits when it is driven through a fixed sequence
of attribute writes and movements while the calibration bit (0x02) of the
WindowCoveringMode attribute is set. This module runs that sequence against
an ``AttributeTransport``:

    Settle            clear a calibration bit left over from an aborted run
    BaseConfig        window_covering_type, config_status, window_covering_mode
    Prime             up_open, wait for the motor to stop
    ResetLimits       limits to defaults, step counts to 0xFFFF (unknown)
    EnableCalibration mode | 0x02
    LearnLowerBound   down_close, short travel, stop, up_open, wait
    LearnFullRange    down_close, wait, up_open, wait
    ApplyOverrides    caller supplied attributes (always runs)
    Finalize          mode & ~0x02
    Report            three grouped reads, returned to the caller

Prime through LearnFullRange and Finalize only run when calibrate is true.
Any failure aborts the sequence immediately. The calibration bit is not
restored on failure; the Settle phase of the next run clears it.

Every attribute operation is attempted exactly once.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from . import const
from .const import (
    ATTR_OPERATIONAL_STATUS,
    ATTR_WINDOW_COVERING_MODE,
    BASE_CONFIG_ATTRS,
    CALIBRATION_RESET_VALUES,
    CLUSTER_WINDOW_COVERING,
    CONF_CALIBRATE,
    CONF_STEPS_PER_SECOND,
    CONVERTED_OVERRIDES,
    DEFAULT_STEPS_PER_SECOND,
    MODE_CALIBRATION_BIT,
    MOTOR_STOPPED,
    OVERRIDE_ATTRS,
    REPORT_GEOMETRY_ATTRS,
    REPORT_MANUFACTURER_ATTRS,
    REPORT_STATUS_ATTRS,
    UBISYS_MANUFACTURER_CODE,
    UINT16_MAX,
)
from .errors import ActuatorNotStoppedError, ValidationError
from .logtools import Stopwatch, info_banner, kv, phase_level
from .transport import AttributeTransport

_LOGGER = logging.getLogger(__name__)

_RAW_ATTRIBUTE_KEYS = frozenset(BASE_CONFIG_ATTRS) | frozenset(OVERRIDE_ATTRS)
_CONVERSION_KEYS = frozenset(source for _, source, _ in CONVERTED_OVERRIDES)


@dataclass
class CalibrationSession:
    """Working state of one calibration run."""

    mode: int
    steps_per_second: float
    calibrate: bool


@dataclass(frozen=True)
class CalibrationOptions:
    """Validated calibration request.

    ``base_config`` and ``overrides`` hold (attribute, value) pairs in write
    order. Converted convenience values are already folded into
    ``overrides`` after the raw ones.
    """

    calibrate: bool = False
    steps_per_second: float = DEFAULT_STEPS_PER_SECOND
    base_config: tuple[tuple[str, int], ...] = ()
    overrides: tuple[tuple[str, int], ...] = ()


def _require_number(key: str, value: Any) -> int | float:
    # bool is an int subclass but never a meaningful attribute value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{key} must be a number, got {value!r}")
    if value < 0:
        raise ValidationError(f"{key} must not be negative, got {value}")
    return value


def _require_attribute_value(key: str, value: Any) -> int:
    number = _require_number(key, value)
    if isinstance(number, float):
        if not number.is_integer():
            raise ValidationError(f"{key} must be a whole number, got {number}")
        number = int(number)
    if number > UINT16_MAX:
        raise ValidationError(f"{key} must be at most {UINT16_MAX}, got {number}")
    return number


def convert_to_steps(value: float, steps_per_second: float, divisor: int = 1) -> int:
    """Convert a duration to motor steps, rounding half up.

    Args:
        value: Duration, in seconds or milliseconds
        steps_per_second: Motor speed
        divisor: 1 when ``value`` is in seconds, 1000 for milliseconds

    Example:
        >>> convert_to_steps(30, 50, 1000)
        2
        >>> convert_to_steps(29, 50, 1000)
        1
    """
    return int(value * steps_per_second / divisor + 0.5)


def validate_calibration_options(options: Mapping[str, Any]) -> CalibrationOptions:
    """Validate a calibration request before anything is sent to the device.

    A calibration bit (0x02) in window_covering_mode is dropped: the bit is
    only ever set by the EnableCalibration phase.

    Args:
        options: Service payload without device_ieee. Raw attribute keys,
            the time based conversion keys, calibrate and steps_per_second
            are accepted.

    Returns:
        Frozen options with base config and overrides in write order.

    Raises:
        ValidationError: For unknown keys, non-numeric or negative values,
            a non-boolean calibrate flag, a non-positive steps_per_second, or
            converted step counts that do not fit a uint16.
    """
    unknown = set(options) - _RAW_ATTRIBUTE_KEYS - _CONVERSION_KEYS - {
        CONF_CALIBRATE,
        CONF_STEPS_PER_SECOND,
    }
    if unknown:
        raise ValidationError(f"Unknown calibration option(s): {', '.join(sorted(unknown))}")

    steps_per_second = options.get(CONF_STEPS_PER_SECOND)
    if steps_per_second is None:
        steps_per_second = DEFAULT_STEPS_PER_SECOND
    steps_per_second = _require_number(CONF_STEPS_PER_SECOND, steps_per_second)
    if steps_per_second <= 0:
        raise ValidationError(
            f"{CONF_STEPS_PER_SECOND} must be positive, got {steps_per_second}"
        )

    base_config: list[tuple[str, int]] = []
    for attribute in BASE_CONFIG_ATTRS:
        if options.get(attribute) is None:
            continue
        value = _require_attribute_value(attribute, options[attribute])
        if attribute == ATTR_WINDOW_COVERING_MODE and value & MODE_CALIBRATION_BIT:
            # Only EnableCalibration and Finalize may touch the calibration bit
            _LOGGER.debug(
                "Ignoring calibration bit in requested %s 0x%02X", attribute, value
            )
            value &= ~MODE_CALIBRATION_BIT
        base_config.append((attribute, value))

    overrides: list[tuple[str, int]] = [
        (attribute, _require_attribute_value(attribute, options[attribute]))
        for attribute in OVERRIDE_ATTRS
        if options.get(attribute) is not None
    ]
    for target, source, divisor in CONVERTED_OVERRIDES:
        if options.get(source) is None:
            continue
        steps = convert_to_steps(
            _require_number(source, options[source]), steps_per_second, divisor
        )
        if steps > UINT16_MAX:
            raise ValidationError(
                f"{source}={options[source]} converts to {steps} steps for {target}, "
                f"above the maximum of {UINT16_MAX}"
            )
        overrides.append((target, steps))

    calibrate = options.get(CONF_CALIBRATE, False)
    if calibrate is None:
        calibrate = False
    if not isinstance(calibrate, bool):
        raise ValidationError(f"{CONF_CALIBRATE} must be true or false, got {calibrate!r}")

    return CalibrationOptions(
        calibrate=calibrate,
        steps_per_second=steps_per_second,
        base_config=tuple(base_config),
        overrides=tuple(overrides),
    )


async def _write_attribute(
    transport: AttributeTransport,
    attribute: str,
    value: int,
    *,
    manufacturer: int | None = None,
) -> None:
    await transport.write(
        CLUSTER_WINDOW_COVERING, {attribute: value}, manufacturer=manufacturer
    )


async def _wait_until_stopped(transport: AttributeTransport, phase: str) -> None:
    """Poll OperationalStatus until the motor reports stopped.

    Raises:
        ActuatorNotStoppedError: If the motor is still running after
            PER_MOVE_TIMEOUT seconds.
        TransportError: If a status read fails.
    """
    sw = Stopwatch()
    last_status: int | None = None
    polls = 0

    while True:
        await asyncio.sleep(const.MOTOR_STATUS_POLL_INTERVAL)
        values = await transport.read(CLUSTER_WINDOW_COVERING, [ATTR_OPERATIONAL_STATUS])
        last_status = values.get(ATTR_OPERATIONAL_STATUS)
        polls += 1

        if last_status == MOTOR_STOPPED:
            break

        if sw.elapsed > const.PER_MOVE_TIMEOUT:
            raise ActuatorNotStoppedError(phase, sw.elapsed, last_status)

    _LOGGER.debug(
        "Motor stopped during %s after %d polls (%.1fs)", phase, polls, sw.elapsed
    )
    await asyncio.sleep(const.SETTLE_TIME)


async def _phase_settle(
    transport: AttributeTransport, session: CalibrationSession, level: int
) -> None:
    values = await transport.read(CLUSTER_WINDOW_COVERING, [ATTR_WINDOW_COVERING_MODE])
    session.mode = int(values.get(ATTR_WINDOW_COVERING_MODE) or 0)
    kv(_LOGGER, level, "Settle", mode=f"0x{session.mode:02X}")

    if session.mode & MODE_CALIBRATION_BIT:
        # Left over from an aborted run
        session.mode &= ~MODE_CALIBRATION_BIT
        await _write_attribute(transport, ATTR_WINDOW_COVERING_MODE, session.mode)
        await asyncio.sleep(const.SETTLE_TIME)


async def _phase_base_config(
    transport: AttributeTransport,
    session: CalibrationSession,
    options: CalibrationOptions,
    level: int,
) -> None:
    for attribute, value in options.base_config:
        if attribute == ATTR_WINDOW_COVERING_MODE:
            value &= ~MODE_CALIBRATION_BIT
        kv(_LOGGER, level, "BaseConfig", attribute=attribute, value=value)
        await _write_attribute(transport, attribute, value)
        await asyncio.sleep(const.SETTLE_TIME)
        if attribute == ATTR_WINDOW_COVERING_MODE:
            session.mode = value


async def _phase_prime(transport: AttributeTransport, level: int) -> None:
    kv(_LOGGER, level, "Prime: moving to the open position")
    await transport.command(CLUSTER_WINDOW_COVERING, "up_open")
    await _wait_until_stopped(transport, "prime")


async def _phase_reset_limits(transport: AttributeTransport, level: int) -> None:
    kv(_LOGGER, level, "ResetLimits", attributes=len(CALIBRATION_RESET_VALUES))
    await transport.write(
        CLUSTER_WINDOW_COVERING,
        dict(CALIBRATION_RESET_VALUES),
        manufacturer=UBISYS_MANUFACTURER_CODE,
    )
    await asyncio.sleep(const.SETTLE_TIME)


async def _phase_enable_calibration(
    transport: AttributeTransport, session: CalibrationSession, level: int
) -> None:
    session.mode |= MODE_CALIBRATION_BIT
    kv(_LOGGER, level, "EnableCalibration", mode=f"0x{session.mode:02X}")
    await _write_attribute(transport, ATTR_WINDOW_COVERING_MODE, session.mode)
    await asyncio.sleep(const.SETTLE_TIME)


async def _phase_learn_lower_bound(transport: AttributeTransport, level: int) -> None:
    kv(_LOGGER, level, "LearnLowerBound")
    await transport.command(CLUSTER_WINDOW_COVERING, "down_close")
    await asyncio.sleep(const.TRAVEL_SAMPLE_TIME)
    await transport.command(CLUSTER_WINDOW_COVERING, "stop")
    await asyncio.sleep(const.SETTLE_TIME)
    await transport.command(CLUSTER_WINDOW_COVERING, "up_open")
    await _wait_until_stopped(transport, "learn lower bound (up)")


async def _phase_learn_full_range(transport: AttributeTransport, level: int) -> None:
    kv(_LOGGER, level, "LearnFullRange")
    await transport.command(CLUSTER_WINDOW_COVERING, "down_close")
    await _wait_until_stopped(transport, "learn full range (down)")
    await transport.command(CLUSTER_WINDOW_COVERING, "up_open")
    await _wait_until_stopped(transport, "learn full range (up)")


async def _phase_apply_overrides(
    transport: AttributeTransport, options: CalibrationOptions, level: int
) -> None:
    for attribute, value in options.overrides:
        kv(_LOGGER, level, "ApplyOverrides", attribute=attribute, value=value)
        await _write_attribute(
            transport, attribute, value, manufacturer=UBISYS_MANUFACTURER_CODE
        )


async def _phase_finalize(
    transport: AttributeTransport, session: CalibrationSession, level: int
) -> None:
    await asyncio.sleep(const.SETTLE_TIME)
    session.mode &= ~MODE_CALIBRATION_BIT
    kv(_LOGGER, level, "Finalize", mode=f"0x{session.mode:02X}")
    await _write_attribute(transport, ATTR_WINDOW_COVERING_MODE, session.mode)
    await asyncio.sleep(const.SETTLE_TIME)


async def async_read_calibration_report(transport: AttributeTransport) -> dict[str, Any]:
    """Read geometry, status and vendor step attributes and merge them."""
    report: dict[str, Any] = {}
    report.update(await transport.read(CLUSTER_WINDOW_COVERING, list(REPORT_GEOMETRY_ATTRS)))
    report.update(await transport.read(CLUSTER_WINDOW_COVERING, list(REPORT_STATUS_ATTRS)))
    report.update(
        await transport.read(
            CLUSTER_WINDOW_COVERING,
            list(REPORT_MANUFACTURER_ATTRS),
            manufacturer=UBISYS_MANUFACTURER_CODE,
        )
    )
    return report


async def async_run_calibration(
    transport: AttributeTransport,
    options: Mapping[str, Any] | CalibrationOptions,
    *,
    verbose: bool = False,
) -> dict[str, Any]:
    """Run the configuration (and optionally calibration) sequence.

    Args:
        transport: Transport bound to the J1 device
        options: Raw request mapping or already validated options
        verbose: Log phase transitions at INFO instead of DEBUG

    Returns:
        The calibration report read back after the last write.

    Raises:
        ValidationError: Before any transport call, for invalid options.
        TransportError: If any read, write or command fails.
        ActuatorNotStoppedError: If the motor does not stop in time.
    """
    if not isinstance(options, CalibrationOptions):
        options = validate_calibration_options(options)

    level = phase_level(verbose)
    session = CalibrationSession(
        mode=0,
        steps_per_second=options.steps_per_second,
        calibrate=options.calibrate,
    )
    sw = Stopwatch()

    info_banner(
        _LOGGER,
        "J1 configuration started",
        calibrate=session.calibrate,
        steps_per_second=session.steps_per_second,
        overrides=len(options.overrides),
    )

    await _phase_settle(transport, session, level)
    await _phase_base_config(transport, session, options, level)

    if session.calibrate:
        await _phase_prime(transport, level)
        await _phase_reset_limits(transport, level)
        await _phase_enable_calibration(transport, session, level)
        await _phase_learn_lower_bound(transport, level)
        await _phase_learn_full_range(transport, level)

    await _phase_apply_overrides(transport, options, level)

    if session.calibrate:
        await _phase_finalize(transport, session, level)

    report = await async_read_calibration_report(transport)

    info_banner(
        _LOGGER,
        "J1 configuration finished",
        calibrate=session.calibrate,
        elapsed_s=round(sw.elapsed, 1),
        total_steps=report.get(const.ATTR_TOTAL_STEPS),
    )
    return report
