"""Tests for the ICR client's request mapping, without network access."""

import pytest

from icr_registry_actions.config import Settings
from icr_registry_actions.core.registry_client import (
    IcrRegistryClient,
    _docker_error_message,
    _docker_failure,
)
from icr_registry_actions.core.types import RegionSource, ResolvedRegion, ScanStatus
from icr_registry_actions.exceptions import (
    AuthenticationError,
    ImageNotFound,
    NamespaceAlreadyExists,
    RegionUnresolved,
    RemoteOperationFailed,
    TagNotFound,
)

IMAGE = "us.icr.io/team/app:1.0"
US_SOUTH = ResolvedRegion("us-south", RegionSource.INFERRED, "us.icr.io")


class RecordingClient(IcrRegistryClient):
    """ICR client whose HTTP layer answers from a queue."""

    def __init__(self, *responses, settings=None):
        super().__init__("test-key", settings or Settings())
        self.responses = list(responses)
        self.requests = []
        self.use_region(US_SOUTH)

    async def _request(self, method, url, params=None, json=None):
        self.requests.append((method, url, params, json))
        return self.responses.pop(0)


@pytest.mark.asyncio
async def test_tag_request():
    """Test tag copies the reference to the new tag."""
    client = RecordingClient((201, ""))

    await client.tag(IMAGE, "stable")

    assert client.requests == [
        (
            "POST",
            "https://us.icr.io/api/v1/images/tags",
            {"fromimage": IMAGE, "toimage": "us.icr.io/team/app:stable"},
            None,
        )
    ]


@pytest.mark.asyncio
async def test_tag_missing_image():
    """Test 404 on tag means the image does not exist."""
    client = RecordingClient((404, {"message": "not found"}))

    with pytest.raises(ImageNotFound):
        await client.tag(IMAGE, "stable")


@pytest.mark.asyncio
async def test_retag_request_and_missing_tag():
    """Test retag uses source and target tags and maps 404 to TagNotFound."""
    client = RecordingClient((201, ""), (404, ""))

    await client.retag("us.icr.io/team/app", "1.0", "stable")
    assert client.requests[0][2] == {
        "fromimage": "us.icr.io/team/app:1.0",
        "toimage": "us.icr.io/team/app:stable",
    }

    with pytest.raises(TagNotFound, match="1.0"):
        await client.retag("us.icr.io/team/app", "1.0", "stable")


@pytest.mark.asyncio
async def test_delete_encodes_reference():
    """Test the image reference is URL encoded in the path."""
    client = RecordingClient((200, {}))

    await client.delete(IMAGE)

    assert client.requests[0][:2] == (
        "DELETE",
        "https://us.icr.io/api/v1/images/us.icr.io%2Fteam%2Fapp%3A1.0",
    )


@pytest.mark.asyncio
async def test_delete_missing_image():
    """Test 404 on delete raises ImageNotFound."""
    client = RecordingClient((404, ""))

    with pytest.raises(ImageNotFound):
        await client.delete(IMAGE)


@pytest.mark.asyncio
async def test_create_namespace_statuses():
    """Test 201 creates and 200 reports an existing namespace."""
    client = RecordingClient((201, ""), (200, ""), (409, {"message": "taken"}))

    await client.create_namespace("team")

    with pytest.raises(NamespaceAlreadyExists):
        await client.create_namespace("team")

    with pytest.raises(RemoteOperationFailed, match="taken"):
        await client.create_namespace("team")


@pytest.mark.asyncio
async def test_list_namespaces_keeps_order():
    """Test namespace order is preserved."""
    client = RecordingClient((200, ["zeta", "alpha"]))

    assert await client.list_namespaces() == ["zeta", "alpha"]


@pytest.mark.asyncio
async def test_list_namespaces_unexpected_body():
    """Test a non-list body is rejected."""
    client = RecordingClient((200, {"namespaces": []}))

    with pytest.raises(RemoteOperationFailed):
        await client.list_namespaces()


@pytest.mark.asyncio
async def test_query_scan_statuses():
    """Test scan status parsing."""
    client = RecordingClient(
        (200, {"status": "warn", "vulnerability_count": 1}),
        (404, ""),
        (200, {"status": "BROKEN"}),
    )

    outcome = await client.query_scan(IMAGE)
    assert outcome.status == ScanStatus.WARN
    assert outcome.detail["vulnerability_count"] == 1
    assert client.requests[0][1] == (
        "https://us-south.va.cloud.ibm.com/va/api/v4/report/image/status/"
        "us.icr.io%2Fteam%2Fapp%3A1.0"
    )

    outcome = await client.query_scan(IMAGE)
    assert outcome.status == ScanStatus.UNSCANNED

    with pytest.raises(RemoteOperationFailed, match="BROKEN"):
        await client.query_scan(IMAGE)


@pytest.mark.asyncio
async def test_initiate_scan_uses_va_region():
    """Test VA endpoints follow the registry region."""
    client = RecordingClient((202, ""))
    client.use_region(ResolvedRegion("uk-south", RegionSource.INFERRED, "uk.icr.io"))

    await client.initiate_scan("uk.icr.io/team/app:1")

    assert client.requests == [
        (
            "POST",
            "https://eu-gb.va.cloud.ibm.com/va/api/v4/scan",
            None,
            {"image": "uk.icr.io/team/app:1"},
        )
    ]


@pytest.mark.asyncio
async def test_unknown_region_host():
    """Test REST calls need a known registry host."""
    client = RecordingClient()
    client.use_region(ResolvedRegion("mars-north", RegionSource.EXPLICIT, None))

    with pytest.raises(RegionUnresolved, match="mars-north"):
        await client.list_namespaces()


@pytest.mark.asyncio
async def test_closed_session_is_reported():
    """Test calls outside the context manager fail clearly."""
    client = IcrRegistryClient("test-key", Settings())
    client.use_region(US_SOUTH)

    with pytest.raises(Exception, match="async with"):
        await client.list_namespaces()


def test_docker_error_message():
    """Test errors are found in docker event streams."""
    assert _docker_error_message([{"status": "Pushing"}]) is None
    assert _docker_error_message([{"status": "x"}, {"error": "denied"}]) == "denied"
    assert (
        _docker_error_message([{"errorDetail": {"message": "manifest unknown"}}])
        == "manifest unknown"
    )


@pytest.mark.parametrize(
    "message,status,expected",
    [
        ("manifest unknown", 0, ImageNotFound),
        ("boom", 404, ImageNotFound),
        ("unauthorized: authentication required", 0, AuthenticationError),
        ("boom", 401, AuthenticationError),
        ("disk full", 500, RemoteOperationFailed),
    ],
)
def test_docker_failure_mapping(message, status, expected):
    """Test docker failures map onto the error taxonomy."""
    error = _docker_failure("Push of x", message, status)
    assert isinstance(error, expected)
    assert message in str(error)
