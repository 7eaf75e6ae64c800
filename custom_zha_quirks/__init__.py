"""Ubisys custom ZHA quirks package.

Quirks used by the ubisys setup integration to expose the J1 calibration
attributes, the D1 dimmer attributes and the DeviceSetup cluster to ZHA.
"""

__all__ = [
    "ubisys_common",
    "ubisys_d1",
    "ubisys_device_setup",
    "ubisys_j1",
]
