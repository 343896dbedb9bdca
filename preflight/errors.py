"""
Error types for the relay pre-flight checks.

Construction and compatibility errors are fatal. Gateway errors are split in
two: transport failures propagate to the caller, simulated call failures are
recovered into a FeasibilityVerdict by the simulator.
"""

from typing import Any, Optional


class PreflightError(Exception):
    """Base exception for pre-flight errors."""
    pass


class InvalidVersionError(PreflightError, ValueError):
    """A component version is not a valid semantic version."""

    def __init__(self, version: str):
        super().__init__(f"Component version is not valid: {version!r}")
        self.version = version


class UnsupportedRemoteVersionError(PreflightError):
    """The remote hub version is outside the supported range."""

    def __init__(self, remote_version: str, component_version: str):
        super().__init__(
            f"Provided Hub version({remote_version}) is not supported by the "
            f"current interactor({component_version})"
        )
        self.remote_version = remote_version
        self.component_version = component_version


class InteractorNotInitializedError(PreflightError):
    """The hub version gate has not been passed yet."""
    pass


class RelayHubNotDefinedError(PreflightError, ValueError):
    """A transaction request carries no usable relay hub address."""

    def __init__(self, operation: str):
        super().__init__(f"{operation}: RelayHub must be defined")
        self.operation = operation


class ContractGatewayError(PreflightError):
    """Base class for errors raised at the contract gateway boundary."""
    pass


class TransportError(ContractGatewayError):
    """The node could not be reached or answered with a malformed response."""
    pass


class SimulatedCallError(ContractGatewayError):
    """
    The node executed a simulated call and reported a failure.

    The message is kept verbatim; ``data`` holds the raw revert payload, if
    the node returned one.
    """

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data


__all__ = [
    "PreflightError",
    "InvalidVersionError",
    "UnsupportedRemoteVersionError",
    "InteractorNotInitializedError",
    "RelayHubNotDefinedError",
    "ContractGatewayError",
    "TransportError",
    "SimulatedCallError",
]
