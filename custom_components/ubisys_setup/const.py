"""Constants for the ubisys setup integration.

This module contains the constants used across the integration, organized by:
1. General integration constants
2. Window covering (J1) attributes and calibration timing
3. DeviceSetup cluster and input action templates
4. D1 dimmer setup
5. Services and events

Timing values are read at call time by the calibration module, so tests can
patch them to zero.
"""

from typing import Final

# ============================================================================
# GENERAL INTEGRATION CONSTANTS
# ============================================================================

DOMAIN: Final = "ubisys_setup"
MANUFACTURER: Final = "ubisys"
UBISYS_MANUFACTURER_CODE: Final = 0x10F2

CONF_DEVICE_IEEE: Final = "device_ieee"
CONF_MODEL: Final = "model"
CONF_CALIBRATE: Final = "calibrate"
CONF_STEPS_PER_SECOND: Final = "steps_per_second"
CONF_INPUT_CONFIGURATIONS: Final = "input_configurations"
CONF_INPUT_ACTIONS: Final = "input_actions"
CONF_INPUT_ACTION_TEMPLATES: Final = "input_action_templates"
CONF_PHASE_CONTROL_MODE: Final = "phase_control_mode"  # D1 only
CONF_MINIMUM_ON_LEVEL: Final = "minimum_on_level"  # D1 only

# Runtime flag in hass.data[DOMAIN] promoting phase logs from DEBUG to INFO
VERBOSE_INFO_LOGGING: Final = False

# ============================================================================
# ZIGBEE LAYOUT
# ============================================================================
# Logical cluster name -> (endpoint, cluster id) used by the attribute transport

CLUSTER_BASIC: Final = "basic"
CLUSTER_WINDOW_COVERING: Final = "window_covering"
CLUSTER_DEVICE_SETUP: Final = "device_setup"
CLUSTER_DIMMER_SETUP: Final = "dimmer_setup"
CLUSTER_LEVEL_CONTROL: Final = "level_control"

BASIC_CLUSTER_ID: Final = 0x0000
WINDOW_COVERING_CLUSTER_ID: Final = 0x0102
DEVICE_SETUP_CLUSTER_ID: Final = 0xFC00
DIMMER_SETUP_CLUSTER_ID: Final = 0xFC01
LEVEL_CONTROL_CLUSTER_ID: Final = 0x0008

BASIC_ENDPOINT: Final = 1
J1_WINDOW_COVERING_ENDPOINT: Final = 2
D1_DIMMABLE_LIGHT_ENDPOINT: Final = 1
DEVICE_SETUP_ENDPOINT: Final = 232

CLUSTER_LAYOUT: Final[dict[str, tuple[int, int]]] = {
    CLUSTER_BASIC: (BASIC_ENDPOINT, BASIC_CLUSTER_ID),
    CLUSTER_WINDOW_COVERING: (J1_WINDOW_COVERING_ENDPOINT, WINDOW_COVERING_CLUSTER_ID),
    CLUSTER_DEVICE_SETUP: (DEVICE_SETUP_ENDPOINT, DEVICE_SETUP_CLUSTER_ID),
    CLUSTER_DIMMER_SETUP: (D1_DIMMABLE_LIGHT_ENDPOINT, DIMMER_SETUP_CLUSTER_ID),
    CLUSTER_LEVEL_CONTROL: (D1_DIMMABLE_LIGHT_ENDPOINT, LEVEL_CONTROL_CLUSTER_ID),
}

# Per-request timeout for a single ZCL exchange (seconds)
ZCL_TIMEOUT: Final = 10.0

# ============================================================================
# J1 WINDOW COVERING CONSTANTS
# ============================================================================

# Standard WindowCovering attributes (zigpy names)
ATTR_WINDOW_COVERING_TYPE: Final = "window_covering_type"  # 0x0000
ATTR_PHYSICAL_CLOSED_LIMIT_LIFT: Final = "physical_closed_limit_lift"  # 0x0001
ATTR_PHYSICAL_CLOSED_LIMIT_TILT: Final = "physical_closed_limit_tilt"  # 0x0002
ATTR_CURRENT_POSITION_LIFT: Final = "current_position_lift"  # 0x0003
ATTR_CURRENT_POSITION_TILT: Final = "current_position_tilt"  # 0x0004
ATTR_CONFIG_STATUS: Final = "config_status"  # 0x0007
ATTR_CURRENT_POSITION_LIFT_PERCENTAGE: Final = "current_position_lift_percentage"
ATTR_CURRENT_POSITION_TILT_PERCENTAGE: Final = "current_position_tilt_percentage"
ATTR_OPERATIONAL_STATUS: Final = "operational_status"  # 0x000A, added by quirk
ATTR_INSTALLED_OPEN_LIMIT_LIFT: Final = "installed_open_limit_lift"  # 0x0010, cm
ATTR_INSTALLED_CLOSED_LIMIT_LIFT: Final = "installed_closed_limit_lift"  # 0x0011, cm
ATTR_INSTALLED_OPEN_LIMIT_TILT: Final = "installed_open_limit_tilt"  # 0x0012, 0.1 deg
ATTR_INSTALLED_CLOSED_LIMIT_TILT: Final = "installed_closed_limit_tilt"  # 0x0013
ATTR_WINDOW_COVERING_MODE: Final = "window_covering_mode"  # 0x0017

# Ubisys manufacturer-specific attributes (mfg code 0x10F2)
ATTR_TURNAROUND_GUARD_TIME: Final = "turnaround_guard_time"  # 0x1000
ATTR_LIFT_TO_TILT_TRANSITION_STEPS: Final = "lift_to_tilt_transition_steps"  # 0x1001
ATTR_TOTAL_STEPS: Final = "total_steps"  # 0x1002
ATTR_LIFT_TO_TILT_TRANSITION_STEPS2: Final = "lift_to_tilt_transition_steps2"  # 0x1003
ATTR_TOTAL_STEPS2: Final = "total_steps2"  # 0x1004
ATTR_ADDITIONAL_STEPS: Final = "additional_steps"  # 0x1005
ATTR_INACTIVE_POWER_THRESHOLD: Final = "inactive_power_threshold"  # 0x1006
ATTR_STARTUP_STEPS: Final = "startup_steps"  # 0x1007

# Convenience keys converted to step counts with steps_per_second
CONV_OPEN_TO_CLOSED_S: Final = "open_to_closed_s"
CONV_CLOSED_TO_OPEN_S: Final = "closed_to_open_s"
CONV_LIFT_TO_TILT_TRANSITION_MS: Final = "lift_to_tilt_transition_ms"

# WindowCoveringMode bit 1 puts the J1 into calibration behavior
MODE_CALIBRATION_BIT: Final = 0x02

# OperationalStatus: all bits clear means no motor is running
MOTOR_STOPPED: Final = 0x00

# Sentinel meaning "not yet learned" for step counts
STEPS_UNKNOWN: Final = 0xFFFF
UINT16_MAX: Final = 0xFFFF

DEFAULT_STEPS_PER_SECOND: Final = 50

# Values written before learning starts
CALIBRATION_RESET_VALUES: Final[dict[str, int]] = {
    ATTR_INSTALLED_OPEN_LIMIT_LIFT: 0,
    ATTR_INSTALLED_CLOSED_LIMIT_LIFT: 240,
    ATTR_INSTALLED_OPEN_LIMIT_TILT: 0,
    ATTR_INSTALLED_CLOSED_LIMIT_TILT: 900,
    ATTR_LIFT_TO_TILT_TRANSITION_STEPS: STEPS_UNKNOWN,
    ATTR_TOTAL_STEPS: STEPS_UNKNOWN,
    ATTR_LIFT_TO_TILT_TRANSITION_STEPS2: STEPS_UNKNOWN,
    ATTR_TOTAL_STEPS2: STEPS_UNKNOWN,
}

# Written first, each followed by a settle delay
BASE_CONFIG_ATTRS: Final = (
    ATTR_WINDOW_COVERING_TYPE,
    ATTR_CONFIG_STATUS,
    ATTR_WINDOW_COVERING_MODE,
)

# Raw overrides, in write order
OVERRIDE_ATTRS: Final = (
    ATTR_INSTALLED_OPEN_LIMIT_LIFT,
    ATTR_INSTALLED_CLOSED_LIMIT_LIFT,
    ATTR_INSTALLED_OPEN_LIMIT_TILT,
    ATTR_INSTALLED_CLOSED_LIMIT_TILT,
    ATTR_TURNAROUND_GUARD_TIME,
    ATTR_LIFT_TO_TILT_TRANSITION_STEPS,
    ATTR_TOTAL_STEPS,
    ATTR_LIFT_TO_TILT_TRANSITION_STEPS2,
    ATTR_TOTAL_STEPS2,
    ATTR_ADDITIONAL_STEPS,
    ATTR_INACTIVE_POWER_THRESHOLD,
    ATTR_STARTUP_STEPS,
)

# Convenience overrides applied after the raw ones:
# (target attribute, source key, divisor applied after multiplying by sps)
CONVERTED_OVERRIDES: Final = (
    (ATTR_TOTAL_STEPS, CONV_OPEN_TO_CLOSED_S, 1),
    (ATTR_TOTAL_STEPS2, CONV_CLOSED_TO_OPEN_S, 1),
    (ATTR_LIFT_TO_TILT_TRANSITION_STEPS, CONV_LIFT_TO_TILT_TRANSITION_MS, 1000),
    (ATTR_LIFT_TO_TILT_TRANSITION_STEPS2, CONV_LIFT_TO_TILT_TRANSITION_MS, 1000),
)

# Grouped report reads
REPORT_GEOMETRY_ATTRS: Final = (
    ATTR_WINDOW_COVERING_TYPE,
    ATTR_PHYSICAL_CLOSED_LIMIT_LIFT,
    ATTR_PHYSICAL_CLOSED_LIMIT_TILT,
    ATTR_INSTALLED_OPEN_LIMIT_LIFT,
    ATTR_INSTALLED_CLOSED_LIMIT_LIFT,
    ATTR_INSTALLED_OPEN_LIMIT_TILT,
    ATTR_INSTALLED_CLOSED_LIMIT_TILT,
)
REPORT_STATUS_ATTRS: Final = (
    ATTR_CONFIG_STATUS,
    ATTR_WINDOW_COVERING_MODE,
    ATTR_CURRENT_POSITION_LIFT_PERCENTAGE,
    ATTR_CURRENT_POSITION_LIFT,
    ATTR_CURRENT_POSITION_TILT_PERCENTAGE,
    ATTR_CURRENT_POSITION_TILT,
    ATTR_OPERATIONAL_STATUS,
)
REPORT_MANUFACTURER_ATTRS: Final = (
    ATTR_TURNAROUND_GUARD_TIME,
    ATTR_LIFT_TO_TILT_TRANSITION_STEPS,
    ATTR_TOTAL_STEPS,
    ATTR_LIFT_TO_TILT_TRANSITION_STEPS2,
    ATTR_TOTAL_STEPS2,
    ATTR_ADDITIONAL_STEPS,
    ATTR_INACTIVE_POWER_THRESHOLD,
    ATTR_STARTUP_STEPS,
)

# Calibration timing (seconds)
SETTLE_TIME: Final = 2.0  # Wait after every mode-changing write
TRAVEL_SAMPLE_TIME: Final = 5.0  # Short downward travel before the first stop
MOTOR_STATUS_POLL_INTERVAL: Final = 2.0  # Between OperationalStatus reads
PER_MOVE_TIMEOUT: Final = 300  # Upper bound for a single full travel

# ============================================================================
# DEVICESETUP CLUSTER (0xFC00, endpoint 232)
# ============================================================================

ATTR_INPUT_CONFIGURATIONS: Final = "input_configurations"
ATTR_INPUT_ACTIONS: Final = "input_actions"
ATTR_INPUT_CONFIGURATIONS_ID: Final = 0x0000
ATTR_INPUT_ACTIONS_ID: Final = 0x0001

DEVICE_SETUP_ATTRIBUTE_IDS: Final[dict[str, int]] = {
    ATTR_INPUT_CONFIGURATIONS: ATTR_INPUT_CONFIGURATIONS_ID,
    ATTR_INPUT_ACTIONS: ATTR_INPUT_ACTIONS_ID,
}

# ZCL data type identifiers used in array envelopes
ZCL_TYPE_DATA8: Final = 0x08
ZCL_TYPE_OCTET_STR: Final = 0x41
ZCL_TYPE_ARRAY: Final = 0x48

DEVICE_SETUP_ELEMENT_TYPES: Final[dict[str, int]] = {
    ATTR_INPUT_CONFIGURATIONS: ZCL_TYPE_DATA8,
    ATTR_INPUT_ACTIONS: ZCL_TYPE_OCTET_STR,
}

# Firmware from this build on accepts Write Attributes Structured
STRUCTURED_WRITE_MIN_VERSION: Final = "1.9.0"

# First client endpoint used by input action templates, per model
MODEL_STARTING_ENDPOINT: Final[dict[str, int]] = {
    "S1": 2,
    "S1-R": 2,
    "S2": 3,
    "S2-R": 3,
    "D1": 2,
    "D1-R": 2,
    "J1": 2,
    "J1-R": 2,
    "C4": 1,
}

# C4 cover channels live on endpoints 5-6
C4_MODEL: Final = "C4"
C4_COVER_ENDPOINT_OFFSET: Final = 4
C4_FIRST_COVER_ENDPOINT: Final = 5

DEFAULT_MOVE_RATE: Final = 50

# Target clusters referenced by input actions
CLUSTER_ID_ON_OFF: Final = 0x0006
CLUSTER_ID_LEVEL_CONTROL: Final = 0x0008
CLUSTER_ID_SCENES: Final = 0x0005

# Commands
CMD_OFF: Final = 0x00
CMD_ON: Final = 0x01
CMD_TOGGLE: Final = 0x02
CMD_MOVE: Final = 0x01
CMD_MOVE_WITH_ON_OFF: Final = 0x05
CMD_LEVEL_STOP: Final = 0x03
CMD_UP_OPEN: Final = 0x00
CMD_DOWN_CLOSE: Final = 0x01
CMD_COVER_STOP: Final = 0x02
CMD_RECALL_SCENE: Final = 0x05

MOVE_UP: Final = 0x00
MOVE_DOWN: Final = 0x01

# Transition bytes: bit 7 has-alternate, bit 6 is-alternate,
# bits 2-3 initial state, bits 0-1 final state
# (0 ignore, 1 pressed, 2 kept pressed, 3 released)
TRANSITION_RELEASED_TO_PRESSED: Final = 0x0D
TRANSITION_PRESSED_TO_RELEASED: Final = 0x07
TRANSITION_KEPT_PRESSED_TO_RELEASED: Final = 0x0B
TRANSITION_ANY_TO_RELEASED: Final = 0x03
TRANSITION_PRESSED_TO_KEPT_PRESSED: Final = 0x06
TRANSITION_KEPT_PRESSED_ALTERNATE: Final = 0x86
TRANSITION_KEPT_PRESSED_IS_ALTERNATE: Final = 0xC6

# ============================================================================
# D1 DIMMER SETUP (DimmerSetup 0xFC01 and LevelControl, endpoint 1)
# ============================================================================

D1_MODELS: Final = ("D1", "D1-R")

# DimmerSetup attributes, sent without a manufacturer code
ATTR_DIMMER_CAPABILITIES: Final = "capabilities"  # 0x0000, read only
ATTR_DIMMER_STATUS: Final = "status"  # 0x0001, read only
ATTR_DIMMER_MODE: Final = "mode"  # 0x0002, writable while the output is off

# LevelControl attribute 0x0000 with mfg code 0x10F2 (shadows current_level)
ATTR_MINIMUM_ON_LEVEL: Final = "minimum_on_level"

# Mode bits 0-1 select the phase control technique, bits 2-7 are reserved
PHASE_CONTROL_MASK: Final = 0x03
PHASE_CONTROL_MODES: Final[dict[str, int]] = {
    "automatic": 0,
    "forward": 1,  # leading edge, resistive and inductive loads
    "reverse": 2,  # trailing edge, capacitive loads and most LEDs
}
PHASE_CONTROL_RESERVED: Final = "reserved"

# Capability and status bit names, in bit order
DIMMER_CAPABILITY_BITS: Final[dict[str, int]] = {
    "forward_phase_control": 0x01,
    "reverse_phase_control": 0x02,
    "reactance_discriminator": 0x20,
    "configurable_curve": 0x40,
    "overload_detection": 0x80,
}
DIMMER_STATUS_BITS: Final[dict[str, int]] = {
    "forward_phase_control": 0x01,
    "reverse_phase_control": 0x02,
    "overload": 0x08,
    "capacitive_load": 0x40,
    "inductive_load": 0x80,
}

# ============================================================================
# SERVICES AND EVENTS
# ============================================================================

SERVICE_CONFIGURE_J1: Final = "configure_j1"
SERVICE_GET_J1_CONFIGURATION: Final = "get_j1_configuration"
SERVICE_CONFIGURE_DEVICE_SETUP: Final = "configure_device_setup"
SERVICE_GET_DEVICE_SETUP: Final = "get_device_setup"
SERVICE_CONFIGURE_D1: Final = "configure_d1"
SERVICE_GET_D1_CONFIGURATION: Final = "get_d1_configuration"

EVENT_CALIBRATION_COMPLETE: Final = "ubisys_setup_calibration_complete"
EVENT_CALIBRATION_FAILED: Final = "ubisys_setup_calibration_failed"
