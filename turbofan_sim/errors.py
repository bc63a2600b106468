"""Exception types raised by the engine simulation."""


class TurbofanSimError(Exception):
    """Base class for all simulation errors."""


class UnknownFailureError(TurbofanSimError, KeyError):
    """Raised when a failure id is not registered."""

    def __str__(self) -> str:
        return f"Unknown failure id: {self.args[0]!r}"


class ControlsError(TurbofanSimError, ValueError):
    """Raised for a control patch naming a control that does not exist."""


class FireSystemError(TurbofanSimError, ValueError):
    """Raised for an unknown suppression bottle."""


class ConfigValidationError(TurbofanSimError):
    """Raised when simulation config validation fails."""
