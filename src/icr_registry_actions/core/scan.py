"""Vulnerability scan polling."""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog

from ..exceptions import ScanCancelled, ScanInitiationFailed, ScanTimedOut
from .interfaces import RegistryClient
from .types import ScanOutcome

logger = structlog.stdlib.get_logger(__name__)

SCAN_POLL_INTERVAL = 10  # seconds
SCAN_MAX_ATTEMPTS = 30  # about 5 minutes


class ScanPoller:
    """Starts a vulnerability scan and polls until it reaches a final status.

    Non-terminal answers (INCOMPLETE, UNSCANNED) are polled again after
    ``interval`` seconds, at most ``max_attempts`` queries in total. The wait
    between queries is interrupted by ``cancel_event`` or by the ``deadline``
    passed to :meth:`poll`.
    """

    def __init__(
        self,
        client: RegistryClient,
        interval: float = SCAN_POLL_INTERVAL,
        max_attempts: int = SCAN_MAX_ATTEMPTS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Initialize the poller.

        Args:
            client: Registry client used for scan calls
            interval: Seconds to wait between queries
            max_attempts: Maximum number of queries
            clock: Monotonic clock in seconds; deadlines use the same clock
            sleep: Replacement for the interruptible wait (for tests)
            cancel_event: Event that stops polling when set
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.client = client
        self.interval = interval
        self.max_attempts = max_attempts
        self.clock = clock
        self.cancel_event = cancel_event or asyncio.Event()
        self.polling = False
        self._sleep = sleep or self._interruptible_sleep

    def cancel(self) -> None:
        """Stop polling at the next iteration boundary or during the wait."""
        self.cancel_event.set()

    async def poll(self, image: str, deadline: Optional[float] = None) -> ScanOutcome:
        """Scan an image and wait for a terminal status.

        Args:
            image: Image reference
            deadline: Absolute time on ``clock`` after which polling stops

        Returns:
            Terminal scan outcome with attempts and elapsed seconds

        Raises:
            ScanInitiationFailed: If the scan cannot be started
            ScanTimedOut: If the status is still pending after the last attempt
            ScanCancelled: If cancelled or the deadline passes
        """
        self.polling = True
        try:
            return await self._poll(image, deadline)
        finally:
            self.polling = False

    async def _poll(self, image: str, deadline: Optional[float]) -> ScanOutcome:
        started = self.clock()
        log = logger.bind(image=image)

        try:
            await self.client.initiate_scan(image)
        except Exception as e:
            raise ScanInitiationFailed(
                f"Failed to start vulnerability scan for {image}: {e}"
            ) from e

        log.info("Vulnerability scan started")

        attempts = 0
        while True:
            self._check_cancelled(deadline)

            answer = await self.client.query_scan(image)
            attempts += 1
            outcome = answer.with_progress(attempts, self._elapsed(started))

            if outcome.is_terminal:
                log.info(
                    "Vulnerability scan finished",
                    status=outcome.status.value,
                    attempts=attempts,
                    elapsed_seconds=outcome.elapsed_seconds,
                )
                return outcome

            if attempts >= self.max_attempts:
                raise ScanTimedOut(
                    f"Vulnerability scan for {image} still {outcome.status.value} "
                    f"after {attempts} attempts ({outcome.elapsed_seconds}s)",
                    outcome,
                )

            log.debug(
                "Vulnerability scan pending",
                status=outcome.status.value,
                attempt=attempts,
                max_attempts=self.max_attempts,
            )
            await self._sleep(self._next_wait(deadline))

    def _elapsed(self, started: float) -> int:
        return int(round(self.clock() - started))

    def _check_cancelled(self, deadline: Optional[float]) -> None:
        if self.cancel_event.is_set():
            raise ScanCancelled("Vulnerability scan polling was cancelled")
        if deadline is not None and self.clock() >= deadline:
            raise ScanCancelled("Job deadline reached while polling the scan")

    def _next_wait(self, deadline: Optional[float]) -> float:
        if deadline is None:
            return self.interval
        return max(0.0, min(self.interval, deadline - self.clock()))

    async def _interruptible_sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self.cancel_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
