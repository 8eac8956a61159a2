"""Command line entry point.

Every option falls back to the ``INPUT_<NAME>`` environment variable an
action runner sets for the input of the same name.
"""

import asyncio
import os
import signal
import time
from typing import Callable, Optional

import structlog
import typer

from .config import Settings
from .core.dispatcher import OperationDispatcher
from .core.registry_client import IcrRegistryClient
from .core.requests import OperationInputs
from .core.scan import ScanPoller
from .core.types import OperationResult
from .exceptions import OperationCancelled, RegistryError
from .outputs import write_outputs
from .utils.logging import setup_logging

logger = structlog.stdlib.get_logger(__name__)

# Extra time after the job deadline for the scan loop to stop and report
SHUTDOWN_GRACE_SECONDS = 5

app = typer.Typer(
    add_completion=False,
    help="Push, pull, tag, retag and delete images and manage namespaces in "
    "IBM Cloud Container Registry, with optional vulnerability scanning.",
)


class _Termination:
    """SIGTERM handler for one invocation.

    A running scan is stopped through the poller so it can still report the
    digest; any other step is cancelled outright.
    """

    def __init__(self, poller: ScanPoller, task: "asyncio.Task") -> None:
        self.poller = poller
        self.task = task
        self.requested = False

    def __call__(self) -> None:
        logger.warning("Termination requested", scanning=self.poller.polling)
        self.requested = True
        self.poller.cancel()
        if not self.poller.polling:
            self.task.cancel()

    def install(self) -> bool:
        """Install the handler. Returns whether signals are supported."""
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGTERM, self)
        except (NotImplementedError, RuntimeError):
            # Signal handlers are unavailable on Windows event loops
            return False
        return True


async def run_invocation(
    apikey: str,
    inputs: OperationInputs,
    settings: Settings,
    client_factory: Optional[Callable[[str, Settings], IcrRegistryClient]] = None,
) -> OperationResult:
    """Run one operation against the registry.

    Args:
        apikey: IBM Cloud API key
        inputs: Raw operation inputs
        settings: Runtime configuration
        client_factory: Builds the registry client (async context manager)

    Returns:
        The operation result
    """
    timeout = settings.job_timeout_seconds
    deadline = time.monotonic() + timeout if timeout else None
    hard_limit = timeout + SHUTDOWN_GRACE_SECONDS if timeout else None

    client_factory = client_factory or IcrRegistryClient

    async with client_factory(apikey, settings) as client:
        poller = ScanPoller(
            client,
            interval=settings.scan_interval_seconds,
            max_attempts=settings.scan_max_attempts,
        )
        termination = _Termination(poller, asyncio.current_task())
        watching = termination.install()
        dispatcher = OperationDispatcher(
            client, poller, fallback_region=settings.default_region
        )
        try:
            return await asyncio.wait_for(
                dispatcher.run(inputs, deadline=deadline), timeout=hard_limit
            )
        except asyncio.TimeoutError:
            error = RegistryError(f"Operation exceeded the job timeout of {timeout}s")
            logger.error("Job timeout reached", timeout=timeout)
            return OperationResult.failed(inputs.action or "unknown", error)
        except asyncio.CancelledError:
            if not termination.requested:
                raise
            error = OperationCancelled("Operation terminated by SIGTERM")
            logger.error("Operation terminated")
            return OperationResult.failed(inputs.action or "unknown", error)
        finally:
            if watching:
                asyncio.get_running_loop().remove_signal_handler(signal.SIGTERM)


@app.command()
def main(
    apikey: str = typer.Option(
        ..., envvar="INPUT_APIKEY", help="IBM Cloud API key.", show_default=False
    ),
    action: Optional[str] = typer.Option(
        None,
        envvar="INPUT_ACTION",
        help="push | pull | tag | retag | delete | namespace",
    ),
    image: Optional[str] = typer.Option(
        None, envvar="INPUT_IMAGE", help="Registry image, e.g. us.icr.io/ns/app:1.0"
    ),
    local_image: Optional[str] = typer.Option(
        None, envvar="INPUT_LOCAL-IMAGE", help="Local image to tag before pushing."
    ),
    source_tag: Optional[str] = typer.Option(None, envvar="INPUT_SOURCE-TAG"),
    target_tag: Optional[str] = typer.Option(None, envvar="INPUT_TARGET-TAG"),
    namespace: Optional[str] = typer.Option(None, envvar="INPUT_NAMESPACE"),
    namespace_action: Optional[str] = typer.Option(
        None, envvar="INPUT_NAMESPACE-ACTION", help="create | delete | list"
    ),
    region: Optional[str] = typer.Option(
        None, envvar="INPUT_REGION", help="Registry region; inferred from the image."
    ),
    scan: bool = typer.Option(
        True, "--scan/--no-scan", envvar="INPUT_SCAN", help="Run a vulnerability scan."
    ),
    scan_fail_on_vulnerability: bool = typer.Option(
        True,
        "--scan-fail-on-vulnerability/--no-scan-fail-on-vulnerability",
        envvar="INPUT_SCAN-FAIL-ON-VULNERABILITY",
        help="Fail when the scan reports FAIL.",
    ),
) -> None:
    """Run a single registry operation and write its outputs."""
    settings = Settings()
    setup_logging(settings)

    inputs = OperationInputs(
        action=action,
        image=image,
        local_image=local_image,
        source_tag=source_tag,
        target_tag=target_tag,
        namespace=namespace,
        namespace_action=namespace_action,
        region=region,
        scan=scan,
        scan_fail_on_vulnerability=scan_fail_on_vulnerability,
    )
    logger.info("Starting operation", **inputs.describe())

    result = asyncio.run(run_invocation(apikey, inputs, settings))

    output_file = os.environ.get("GITHUB_OUTPUT")
    rendered = write_outputs(result, output_file)
    if not output_file:
        typer.echo(rendered, nl=False)

    if not result.ok:
        logger.error("Operation failed", error=result.error_message)
        raise typer.Exit(code=1)

    if result.note:
        logger.info(result.note)
    logger.info("Operation succeeded", action=result.action)


def run() -> None:
    app()
