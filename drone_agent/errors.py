"""
Error taxonomy for ledger interaction and startup.
"""
from __future__ import annotations


class DroneAgentError(Exception):
    pass


class TransportFailure(DroneAgentError):
    """The call never reached the ledger (connection error, timeout, 5xx)."""


class RejectedCall(DroneAgentError):
    """The ledger refused the call on a business rule."""

    def __init__(self, code: str, detail: str = "") -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"{code}: {detail}" if detail else code)


class MalformedResponse(DroneAgentError):
    """The ledger answered but the payload is missing expected fields."""


class ConfigurationError(DroneAgentError):
    """A required address or parameter is absent. Fatal at startup."""
