"""Example usage of the operation dispatcher from Python."""

import asyncio
import os
import sys

# Add parent directory to path
sys.path.insert(0, "src")

import structlog

from icr_registry_actions import (
    IcrRegistryClient,
    OperationDispatcher,
    OperationInputs,
    ScanPoller,
)
from icr_registry_actions.config import Settings
from icr_registry_actions.utils.logging import setup_logging

logger = structlog.stdlib.get_logger(__name__)


async def main():
    """List namespaces, then pull an image and wait for its scan."""
    settings = Settings()
    setup_logging(settings)
    apikey = os.environ["IBMCLOUD_API_KEY"]

    async with IcrRegistryClient(apikey, settings) as client:
        dispatcher = OperationDispatcher(
            client, ScanPoller(client, interval=settings.scan_interval_seconds)
        )

        result = await dispatcher.run(
            OperationInputs(action="namespace", namespace_action="list", region="us-south")
        )
        logger.info("Namespaces", namespaces=result.namespaces)

        result = await dispatcher.run(
            OperationInputs(
                action="pull",
                image="us.icr.io/my-namespace/my-app:latest",
                scan_fail_on_vulnerability=False,
            )
        )
        if result.ok:
            logger.info(
                "Pulled",
                digest=result.image_digest,
                scan=result.scan_outcome.status.value if result.scan_outcome else None,
            )
        else:
            logger.error("Pull failed", error=result.error_message)


if __name__ == "__main__":
    asyncio.run(main())
