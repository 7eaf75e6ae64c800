"""Exceptions raised by the ubisys setup integration.

All errors derive from HomeAssistantError so that service calls surface them
to the user without further wrapping.
"""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError, ServiceValidationError


class UbisysSetupError(HomeAssistantError):
    """Base class for ubisys setup errors."""


class TransportError(UbisysSetupError):
    """A read, write or command exchange with the device failed."""


class ActuatorNotStoppedError(TransportError):
    """The actuator kept moving past the per-move timeout."""

    def __init__(self, phase: str, elapsed: float, last_status: int | None) -> None:
        super().__init__(
            f"Actuator did not stop during {phase} after {elapsed:.1f}s "
            f"(last OperationalStatus: {last_status})"
        )
        self.phase = phase
        self.elapsed = elapsed
        self.last_status = last_status


class ConfigurationError(UbisysSetupError):
    """A template list or device model cannot be compiled."""


class ValidationError(ServiceValidationError, UbisysSetupError):
    """Caller input is out of range or has the wrong shape."""
