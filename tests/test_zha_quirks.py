"""Tests for the ubisys ZHA quirk cluster definitions.

The quirk modules register themselves with the zigpy quirks registry on
import; these tests check the cluster definitions the integration relies on
to address attributes by name.
"""

from __future__ import annotations

import pytest

from custom_components.ubisys_setup import const
from custom_zha_quirks import ubisys_common, ubisys_d1, ubisys_device_setup, ubisys_j1
from custom_zha_quirks.ubisys_common import UbisysDeviceSetup
from custom_zha_quirks.ubisys_d1 import UbisysDimmerSetup, UbisysLevelControl
from custom_zha_quirks.ubisys_j1 import UbisysWindowCovering


def test_window_covering_cluster_id():
    assert UbisysWindowCovering.cluster_id == 0x0102


@pytest.mark.parametrize(
    ("name", "attr_id"),
    [
        ("turnaround_guard_time", 0x1000),
        ("lift_to_tilt_transition_steps", 0x1001),
        ("total_steps", 0x1002),
        ("lift_to_tilt_transition_steps2", 0x1003),
        ("total_steps2", 0x1004),
        ("additional_steps", 0x1005),
        ("inactive_power_threshold", 0x1006),
        ("startup_steps", 0x1007),
    ],
)
def test_manufacturer_attributes_carry_ubisys_code(name, attr_id):
    attr = UbisysWindowCovering.attributes_by_name[name]
    assert attr.id == attr_id
    assert attr.is_manufacturer_specific is True
    assert attr.manufacturer_code == 0x10F2


def test_operational_status_is_standard():
    attr = UbisysWindowCovering.attributes_by_name["operational_status"]
    assert attr.id == 0x000A
    assert not attr.is_manufacturer_specific


def test_standard_attributes_are_kept():
    names = UbisysWindowCovering.attributes_by_name
    for name in (
        const.ATTR_WINDOW_COVERING_TYPE,
        const.ATTR_CONFIG_STATUS,
        const.ATTR_WINDOW_COVERING_MODE,
        const.ATTR_INSTALLED_OPEN_LIMIT_LIFT,
        const.ATTR_INSTALLED_CLOSED_LIMIT_TILT,
    ):
        assert name in names
    assert not names[const.ATTR_WINDOW_COVERING_TYPE].is_manufacturer_specific


def test_every_calibration_attribute_is_addressable():
    names = set(UbisysWindowCovering.attributes_by_name)
    needed = (
        set(const.REPORT_GEOMETRY_ATTRS)
        | set(const.REPORT_STATUS_ATTRS)
        | set(const.REPORT_MANUFACTURER_ATTRS)
        | set(const.CALIBRATION_RESET_VALUES)
    )
    assert needed <= names


def test_device_setup_cluster():
    assert UbisysDeviceSetup.cluster_id == 0xFC00
    configs = UbisysDeviceSetup.attributes_by_name["input_configurations"]
    actions = UbisysDeviceSetup.attributes_by_name["input_actions"]
    assert configs.id == 0x0000
    assert actions.id == 0x0001
    # DeviceSetup requests go out without a manufacturer code
    assert configs.is_manufacturer_specific is False
    assert actions.is_manufacturer_specific is False


def test_layout_matches_integration_constants():
    assert ubisys_common.UBISYS_DEVICE_SETUP_ENDPOINT == const.DEVICE_SETUP_ENDPOINT
    assert ubisys_common.UBISYS_MANUFACTURER_CODE == const.UBISYS_MANUFACTURER_CODE
    assert ubisys_j1.J1_WINDOW_COVERING_ENDPOINT == const.J1_WINDOW_COVERING_ENDPOINT
    assert ubisys_d1.D1_DIMMABLE_LIGHT_ENDPOINT == const.D1_DIMMABLE_LIGHT_ENDPOINT
    assert UbisysDimmerSetup.cluster_id == const.DIMMER_SETUP_CLUSTER_ID
    assert set(ubisys_d1.D1_MODELS) == set(const.D1_MODELS)


def test_models_with_inputs_are_covered():
    quirk_models = (
        set(ubisys_device_setup.DEVICE_SETUP_MODELS)
        | set(ubisys_j1.J1_MODELS)
        | set(ubisys_d1.D1_MODELS)
    )
    template_models = set(const.MODEL_STARTING_ENDPOINT)
    assert template_models <= quirk_models


def test_models_are_registered_once():
    groups = (
        ubisys_device_setup.DEVICE_SETUP_MODELS,
        ubisys_j1.J1_MODELS,
        ubisys_d1.D1_MODELS,
    )
    models = [model for group in groups for model in group]
    assert len(models) == len(set(models))


@pytest.mark.parametrize(
    ("name", "attr_id"),
    [
        (const.ATTR_DIMMER_CAPABILITIES, 0x0000),
        (const.ATTR_DIMMER_STATUS, 0x0001),
        (const.ATTR_DIMMER_MODE, 0x0002),
    ],
)
def test_dimmer_setup_attributes_have_no_manufacturer_code(name, attr_id):
    attr = UbisysDimmerSetup.attributes_by_name[name]
    assert attr.id == attr_id
    assert attr.is_manufacturer_specific is False


def test_minimum_on_level_shares_id_with_current_level():
    names = UbisysLevelControl.attributes_by_name
    minimum = names[const.ATTR_MINIMUM_ON_LEVEL]
    current = names["current_level"]

    assert UbisysLevelControl.cluster_id == 0x0008
    assert minimum.id == current.id == 0x0000
    assert minimum.manufacturer_code == 0x10F2
    assert minimum.is_manufacturer_specific is True
    assert not current.is_manufacturer_specific
