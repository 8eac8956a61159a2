"""Data models shared by the dispatcher, the poller and the registry client."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Sequence


class RegionSource(str, Enum):
    """Where a region code came from."""

    EXPLICIT = "explicit"
    INFERRED = "inferred"
    DEFAULT = "default"


@dataclass(frozen=True)
class ResolvedRegion:
    """Region an invocation runs against."""

    code: str
    source: RegionSource
    host: Optional[str] = None  # Registry hostname serving this region


class ScanStatus(str, Enum):
    """Vulnerability Advisor image status."""

    OK = "OK"
    WARN = "WARN"
    FAIL = "FAIL"
    UNSUPPORTED = "UNSUPPORTED"
    INCOMPLETE = "INCOMPLETE"
    UNSCANNED = "UNSCANNED"

    @property
    def is_terminal(self) -> bool:
        return self not in (ScanStatus.INCOMPLETE, ScanStatus.UNSCANNED)


@dataclass(frozen=True)
class ScanOutcome:
    """Result of a scan query, or of a complete polling run."""

    status: ScanStatus
    detail: Any = None
    attempts: int = 0
    elapsed_seconds: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def passes(self, fail_on_vulnerability: bool) -> bool:
        """Whether this outcome lets the operation succeed.

        OK, WARN and UNSUPPORTED always pass. FAIL passes only when
        vulnerabilities are configured not to fail the operation.
        Non-terminal outcomes never pass.
        """
        if self.status == ScanStatus.FAIL:
            return not fail_on_vulnerability
        return self.is_terminal

    def with_progress(self, attempts: int, elapsed_seconds: int) -> "ScanOutcome":
        return replace(self, attempts=attempts, elapsed_seconds=elapsed_seconds)


class OperationStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one invocation."""

    action: str
    status: OperationStatus
    image_digest: Optional[str] = None
    namespaces: Optional[tuple[str, ...]] = None
    scan_outcome: Optional[ScanOutcome] = None
    error_message: Optional[str] = None
    note: Optional[str] = None
    error: Optional[Exception] = field(default=None, compare=False, repr=False)

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @classmethod
    def succeeded(
        cls,
        action: str,
        *,
        image_digest: Optional[str] = None,
        namespaces: Optional[Sequence[str]] = None,
        scan_outcome: Optional[ScanOutcome] = None,
        note: Optional[str] = None,
    ) -> "OperationResult":
        return cls(
            action=action,
            status=OperationStatus.SUCCESS,
            image_digest=image_digest,
            namespaces=tuple(namespaces) if namespaces is not None else None,
            scan_outcome=scan_outcome,
            note=note,
        )

    @classmethod
    def failed(
        cls,
        action: str,
        error: Exception,
        *,
        image_digest: Optional[str] = None,
        scan_outcome: Optional[ScanOutcome] = None,
    ) -> "OperationResult":
        return cls(
            action=action,
            status=OperationStatus.FAILURE,
            image_digest=image_digest,
            scan_outcome=scan_outcome,
            error_message=str(error) or error.__class__.__name__,
            error=error,
        )
