"""IBM Cloud Container Registry async client implementation."""

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import quote

import aiodocker
import aiohttp
import structlog

from ..config import Settings
from ..exceptions import (
    AuthenticationError,
    ImageNotFound,
    NamespaceAlreadyExists,
    RegionUnresolved,
    RegistryConnectionError,
    RegistryError,
    RemoteOperationFailed,
    TagNotFound,
)
from ..utils.digest import extract_digest
from .auth import IamTokenProvider
from .reference import parse_image_reference
from .types import ResolvedRegion, ScanOutcome, ScanStatus

logger = structlog.stdlib.get_logger(__name__)

# Registry region -> Vulnerability Advisor region, where they differ
VA_REGIONS: Mapping[str, str] = MappingProxyType(
    {
        "global": "us-south",
        "uk-south": "eu-gb",
    }
)

_NOT_FOUND_MARKERS = ("not found", "manifest unknown", "no such image")
_DENIED_MARKERS = ("unauthorized", "denied", "authentication required")


def _docker_error_message(events: List[Dict[str, Any]]) -> Optional[str]:
    for event in events:
        if event.get("error"):
            return str(event["error"])
        detail = event.get("errorDetail")
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
    return None


def _docker_failure(operation: str, message: str, status: int = 0) -> RegistryError:
    lowered = message.lower()
    if status == 404 or any(marker in lowered for marker in _NOT_FOUND_MARKERS):
        return ImageNotFound(f"{operation}: {message}")
    if status in (401, 403) or any(marker in lowered for marker in _DENIED_MARKERS):
        return AuthenticationError(f"{operation}: {message}")
    return RemoteOperationFailed(f"{operation}: {message}")


class IcrRegistryClient:
    """Async client for IBM Cloud Container Registry.

    Namespace, tag and delete calls use the registry REST API, scans use the
    Vulnerability Advisor API and image transfers go through the local Docker
    engine.
    """

    def __init__(
        self,
        apikey: str,
        settings: Optional[Settings] = None,
        connector: Optional[aiohttp.TCPConnector] = None,
    ) -> None:
        """Initialize the registry client.

        Args:
            apikey: IBM Cloud API key
            settings: Endpoints and timeouts
            connector: aiohttp connector for connection pooling
        """
        self.settings = settings or Settings()
        self.apikey = apikey
        self.connector = connector
        self.auth = IamTokenProvider(apikey, self.settings.iam_url)
        self.region: Optional[ResolvedRegion] = None
        self.session: Optional[aiohttp.ClientSession] = None
        self.docker: Optional[aiodocker.Docker] = None

    async def __aenter__(self) -> "IcrRegistryClient":
        """Enter async context manager."""
        if not self.session:
            self.session = aiohttp.ClientSession(
                connector=self.connector,
                timeout=aiohttp.ClientTimeout(
                    total=self.settings.http_timeout_seconds
                ),
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session and the Docker connection."""
        if self.docker is not None:
            await self.docker.close()
            self.docker = None
        if self.session and not self.session.closed:
            await self.session.close()

    def use_region(self, region: ResolvedRegion) -> None:
        self.region = region

    # Endpoints

    def _registry_host(self) -> str:
        if self.region is None:
            raise RegionUnresolved("No registry region selected")
        if not self.region.host:
            raise RegionUnresolved(
                f"Unknown registry host for region '{self.region.code}'"
            )
        return self.region.host

    def _api_url(self, path: str) -> str:
        return f"https://{self._registry_host()}/api/v1/{path}"

    def _va_url(self, path: str) -> str:
        if self.region is None:
            raise RegionUnresolved("No registry region selected")
        va_region = VA_REGIONS.get(self.region.code, self.region.code)
        base = self.settings.va_url_template.format(region=va_region).rstrip("/")
        return f"{base}/va/api/v4/{path}"

    def _docker_auth(self) -> Dict[str, str]:
        return {
            "username": "iamapikey",
            "password": self.apikey,
            "serveraddress": self._registry_host(),
        }

    def _docker_client(self) -> aiodocker.Docker:
        if self.docker is None:
            self.docker = aiodocker.Docker()
        return self.docker

    # REST helpers

    async def _headers(self) -> Dict[str, str]:
        if self.session is None:
            raise RegistryError("Client session is not open; use 'async with'")
        headers = {
            "Authorization": f"Bearer {await self.auth.token(self.session)}",
            "Accept": "application/json",
        }
        account = await self.auth.account_id(self.session)
        if account:
            headers["Account"] = account
        return headers

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Tuple[int, Any]:
        """Send an authenticated request.

        Returns:
            Status code and decoded body (JSON when the response is JSON)

        Raises:
            AuthenticationError: On HTTP 401 or 403
            RegistryConnectionError: If the endpoint cannot be reached
        """
        headers = await self._headers()
        try:
            async with self.session.request(
                method, url, params=params, json=json, headers=headers
            ) as resp:
                if resp.content_type == "application/json":
                    body = await resp.json()
                else:
                    body = await resp.text()
                status = resp.status
        except aiohttp.ClientError as e:
            raise RegistryConnectionError(f"{method} {url} failed: {e}") from e

        logger.debug("Registry API call", method=method, url=url, status=status)
        if status in (401, 403):
            raise AuthenticationError(f"{method} {url} was refused (HTTP {status})")
        return status, body

    @staticmethod
    def _check(status: int, body: Any, operation: str) -> None:
        if status >= 400:
            message = body.get("message") if isinstance(body, dict) else body
            raise RemoteOperationFailed(
                f"{operation} failed (HTTP {status}): {message or 'no details'}"
            )

    # Image transfers

    async def push(self, ref: str) -> Optional[str]:
        """Push a local image to the registry.

        Returns:
            Manifest digest reported by the engine, if any
        """
        parsed = parse_image_reference(ref)
        try:
            events = await self._docker_client().images.push(
                parsed.name, tag=parsed.tag, auth=self._docker_auth()
            )
        except aiodocker.exceptions.DockerError as e:
            raise _docker_failure(f"Push of {ref}", e.message, e.status) from e

        error = _docker_error_message(events)
        if error:
            raise _docker_failure(f"Push of {ref}", error)
        return extract_digest(events)

    async def pull(self, ref: str) -> Optional[str]:
        """Pull an image from the registry.

        Returns:
            Manifest digest reported by the engine, if any
        """
        parsed = parse_image_reference(ref)
        try:
            events = await self._docker_client().images.pull(
                parsed.name,
                tag=parsed.digest or parsed.tag or "latest",
                auth=self._docker_auth(),
            )
        except aiodocker.exceptions.DockerError as e:
            raise _docker_failure(f"Pull of {ref}", e.message, e.status) from e

        error = _docker_error_message(events)
        if error:
            raise _docker_failure(f"Pull of {ref}", error)
        return extract_digest(events)

    async def tag_local(self, local: str, ref: str) -> None:
        parsed = parse_image_reference(ref)
        try:
            await self._docker_client().images.tag(
                local, parsed.name, tag=parsed.tag
            )
        except aiodocker.exceptions.DockerError as e:
            raise _docker_failure(
                f"Tagging {local} as {ref}", e.message, e.status
            ) from e

    # Registry API

    async def tag(self, ref: str, new_tag: str) -> None:
        target = parse_image_reference(ref).with_tag(new_tag)
        status, body = await self._request(
            "POST",
            self._api_url("images/tags"),
            params={"fromimage": ref, "toimage": target},
        )
        if status == 404:
            raise ImageNotFound(f"Image {ref} does not exist")
        self._check(status, body, f"Tagging {ref} as {target}")

    async def retag(self, ref: str, src_tag: str, dst_tag: str) -> None:
        parsed = parse_image_reference(ref)
        source = parsed.with_tag(src_tag)
        target = parsed.with_tag(dst_tag)
        status, body = await self._request(
            "POST",
            self._api_url("images/tags"),
            params={"fromimage": source, "toimage": target},
        )
        if status == 404:
            raise TagNotFound(f"Tag {src_tag} does not exist for {parsed.name}")
        self._check(status, body, f"Retagging {source} as {target}")

    async def delete(self, ref: str) -> None:
        status, body = await self._request(
            "DELETE", self._api_url(f"images/{quote(ref, safe='')}")
        )
        if status == 404:
            raise ImageNotFound(f"Image {ref} does not exist")
        self._check(status, body, f"Deleting {ref}")

    async def create_namespace(self, name: str) -> None:
        status, body = await self._request(
            "PUT", self._api_url(f"namespaces/{quote(name, safe='')}")
        )
        # 200 means the namespace is already there and owned by this account
        if status == 200:
            raise NamespaceAlreadyExists(f"Namespace {name} already exists")
        self._check(status, body, f"Creating namespace {name}")

    async def delete_namespace(self, name: str) -> None:
        status, body = await self._request(
            "DELETE", self._api_url(f"namespaces/{quote(name, safe='')}")
        )
        self._check(status, body, f"Deleting namespace {name}")

    async def list_namespaces(self) -> List[str]:
        status, body = await self._request("GET", self._api_url("namespaces"))
        self._check(status, body, "Listing namespaces")
        if not isinstance(body, list):
            raise RemoteOperationFailed("Unexpected namespace list response")
        return [str(name) for name in body]

    # Vulnerability Advisor

    async def initiate_scan(self, ref: str) -> None:
        status, body = await self._request(
            "POST", self._va_url("scan"), json={"image": ref}
        )
        self._check(status, body, f"Starting scan of {ref}")

    async def query_scan(self, ref: str) -> ScanOutcome:
        status, body = await self._request(
            "GET", self._va_url(f"report/image/status/{quote(ref, safe='')}")
        )
        if status == 404:
            # No record yet right after the scan request
            return ScanOutcome(status=ScanStatus.UNSCANNED, detail=body)
        self._check(status, body, f"Querying scan of {ref}")

        raw_status = body.get("status") if isinstance(body, dict) else None
        try:
            scan_status = ScanStatus(str(raw_status).upper())
        except ValueError:
            raise RemoteOperationFailed(
                f"Unexpected scan status for {ref}: {raw_status!r}"
            ) from None
        return ScanOutcome(status=scan_status, detail=body)
