"""Custom exceptions for registry operations."""

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .core.types import ScanOutcome


class RegistryError(Exception):
    """Base exception for all registry-related errors."""

    pass


class ValidationError(RegistryError):
    """Raised when operation inputs are missing or invalid."""

    def __init__(self, message: str, missing: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.missing = tuple(missing)

    @classmethod
    def for_missing(cls, action: str, missing: Iterable[str]) -> "ValidationError":
        missing = tuple(missing)
        return cls(
            f"Action '{action}' requires: {', '.join(missing)}", missing=missing
        )


class RegionUnresolved(RegistryError):
    """Raised when no region was given and none can be inferred."""

    pass


class RegistryConnectionError(RegistryError):
    """Raised when unable to connect to the registry."""

    pass


class AuthenticationError(RegistryError):
    """Raised when the API key is rejected."""

    pass


class ImageNotFound(RegistryError):
    """Raised when the referenced image does not exist."""

    pass


class TagNotFound(RegistryError):
    """Raised when the source tag of a retag does not exist."""

    pass


class NamespaceAlreadyExists(RegistryError):
    """Raised when creating a namespace that is already there."""

    pass


class RemoteOperationFailed(RegistryError):
    """Raised for remote failures with no more specific meaning."""

    pass


class ScanInitiationFailed(RegistryError):
    """Raised when a vulnerability scan cannot be started."""

    pass


class ScanTimedOut(RegistryError):
    """Raised when the scan is still pending after the last poll."""

    def __init__(self, message: str, outcome: "ScanOutcome") -> None:
        super().__init__(message)
        self.outcome = outcome


class VulnerabilitiesFound(RegistryError):
    """Raised when a scan reports vulnerabilities that fail the operation."""

    pass


class ScanCancelled(RegistryError):
    """Raised when polling stops because of cancellation or the job deadline."""

    pass


class OperationCancelled(RegistryError):
    """Raised when the invocation is terminated before the operation finished."""

    pass
