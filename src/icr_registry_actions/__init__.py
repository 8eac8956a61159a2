"""ICR registry actions - image lifecycle operations for IBM Cloud Container Registry."""

__version__ = "0.1.0"

from .core.dispatcher import OperationDispatcher
from .core.region import resolve_region
from .core.registry_client import IcrRegistryClient
from .core.requests import OperationInputs, parse_request
from .core.scan import ScanPoller
from .core.types import OperationResult, OperationStatus, ScanOutcome, ScanStatus
from .exceptions import (
    AuthenticationError,
    ImageNotFound,
    NamespaceAlreadyExists,
    OperationCancelled,
    RegionUnresolved,
    RegistryConnectionError,
    RegistryError,
    RemoteOperationFailed,
    ScanCancelled,
    ScanInitiationFailed,
    ScanTimedOut,
    TagNotFound,
    ValidationError,
    VulnerabilitiesFound,
)

__all__ = [
    "OperationDispatcher",
    "ScanPoller",
    "IcrRegistryClient",
    "OperationInputs",
    "OperationResult",
    "OperationStatus",
    "ScanOutcome",
    "ScanStatus",
    "parse_request",
    "resolve_region",
    "RegistryError",
    "ValidationError",
    "RegionUnresolved",
    "RegistryConnectionError",
    "AuthenticationError",
    "ImageNotFound",
    "TagNotFound",
    "NamespaceAlreadyExists",
    "RemoteOperationFailed",
    "ScanInitiationFailed",
    "ScanTimedOut",
    "ScanCancelled",
    "OperationCancelled",
    "VulnerabilitiesFound",
]
