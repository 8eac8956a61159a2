"""Integration tests against a real IBM Cloud Container Registry account."""

import os

import pytest

from icr_registry_actions import IcrRegistryClient, OperationDispatcher, OperationInputs
from icr_registry_actions.config import Settings

pytestmark = pytest.mark.integration


@pytest.fixture
def apikey():
    return os.environ["ICR_TEST_APIKEY"]


@pytest.fixture
def region():
    return os.getenv("ICR_TEST_REGION", "us-south")


@pytest.mark.asyncio
async def test_list_namespaces(apikey, region):
    """Test listing namespaces of the test account."""
    async with IcrRegistryClient(apikey, Settings()) as client:
        result = await OperationDispatcher(client).run(
            OperationInputs(action="namespace", namespace_action="list", region=region)
        )

    assert result.ok, result.error_message
    assert isinstance(result.namespaces, tuple)


@pytest.mark.asyncio
async def test_delete_missing_image(apikey, region):
    """Test deleting an image that does not exist fails cleanly."""
    namespace = os.getenv("ICR_TEST_NAMESPACE", "icr-registry-actions-test")

    async with IcrRegistryClient(apikey, Settings()) as client:
        result = await OperationDispatcher(client).run(
            OperationInputs(
                action="delete",
                image=f"us.icr.io/{namespace}/does-not-exist:never",
                region=region,
            )
        )

    assert not result.ok
    assert result.error_message
