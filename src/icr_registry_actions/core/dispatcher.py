"""Operation dispatcher: validates, resolves the region, calls the registry."""

from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from ..exceptions import (
    ImageNotFound,
    NamespaceAlreadyExists,
    RegionUnresolved,
    RegistryError,
    RemoteOperationFailed,
    ScanCancelled,
    ScanInitiationFailed,
    ScanTimedOut,
    TagNotFound,
    VulnerabilitiesFound,
)
from .interfaces import RegistryClient
from .region import DEFAULT_REGION, default_region, resolve_region
from .requests import (
    DeleteRequest,
    NamespaceAction,
    NamespaceRequest,
    OperationInputs,
    OperationRequest,
    PullRequest,
    PushRequest,
    RetagRequest,
    ScanOptions,
    TagRequest,
    parse_request,
)
from .scan import ScanPoller
from .types import OperationResult, ResolvedRegion

logger = structlog.stdlib.get_logger(__name__)

T = TypeVar("T")

_SCAN_ERRORS = (ScanInitiationFailed, ScanTimedOut, ScanCancelled)


class OperationDispatcher:
    """Runs one registry operation and reports it as an OperationResult.

    Errors never escape :meth:`execute`; they are reported as failed results.
    Operations that name neither an image nor a region run against
    ``fallback_region``; pass None to require an explicit region instead.
    """

    def __init__(
        self,
        client: RegistryClient,
        poller: Optional[ScanPoller] = None,
        resolver: Callable[
            [Optional[str], Optional[str]], ResolvedRegion
        ] = resolve_region,
        fallback_region: Optional[str] = DEFAULT_REGION,
    ) -> None:
        self.client = client
        self.poller = poller or ScanPoller(client)
        self.resolver = resolver
        self.fallback_region = fallback_region

    async def run(
        self, inputs: OperationInputs, deadline: Optional[float] = None
    ) -> OperationResult:
        """Validate raw inputs and execute the resulting request."""
        try:
            request = parse_request(inputs)
        except RegistryError as e:
            logger.error("Invalid operation inputs", error=str(e))
            return OperationResult.failed(inputs.action or "unknown", e)
        return await self.execute(request, deadline=deadline)

    async def execute(
        self, request: OperationRequest, deadline: Optional[float] = None
    ) -> OperationResult:
        """Execute a validated request.

        Args:
            request: One of the per-action request types
            deadline: Absolute time on the poller's clock bounding scan polling

        Returns:
            The operation result; failures are reported, not raised
        """
        action = request.action.value
        structlog.contextvars.bind_contextvars(action=action)
        try:
            if isinstance(request, PushRequest):
                return await self._push(request, deadline)
            if isinstance(request, PullRequest):
                return await self._pull(request, deadline)
            if isinstance(request, TagRequest):
                return await self._tag(request)
            if isinstance(request, RetagRequest):
                return await self._retag(request)
            if isinstance(request, DeleteRequest):
                return await self._delete(request)
            if isinstance(request, NamespaceRequest):
                return await self._namespace(request)
            raise TypeError(f"Unsupported request type: {type(request).__name__}")
        except RegistryError as e:
            logger.error("Operation failed", error=str(e), error_type=type(e).__name__)
            return OperationResult.failed(action, e)
        finally:
            structlog.contextvars.unbind_contextvars("action")

    def _target(self, image: Optional[str], region: Optional[str]) -> ResolvedRegion:
        if image is None and not region and self.fallback_region:
            resolved = default_region(self.fallback_region)
        else:
            resolved = self.resolver(image, region)
        if resolved.host is None:
            raise RegionUnresolved(
                f"No registry host is known for region '{resolved.code}'. "
                "Set the 'region' input to a registry region."
            )
        logger.info(
            "Using registry region",
            region=resolved.code,
            source=resolved.source.value,
            host=resolved.host,
        )
        self.client.use_region(resolved)
        return resolved

    async def _call(
        self,
        operation: str,
        call: Awaitable[T],
        passthrough: tuple[type[RegistryError], ...] = (),
    ) -> T:
        """Await a remote call, translating failures into RemoteOperationFailed.

        Exceptions listed in ``passthrough`` are re-raised unchanged.
        """
        try:
            return await call
        except passthrough:
            raise
        except Exception as e:
            raise RemoteOperationFailed(f"{operation} failed: {e}") from e

    async def _push(
        self, request: PushRequest, deadline: Optional[float]
    ) -> OperationResult:
        self._target(request.image, request.region)

        if request.local_image:
            await self._call(
                f"Tagging {request.local_image} as {request.image}",
                self.client.tag_local(request.local_image, request.image),
            )

        digest = await self._call(
            f"Pushing {request.image}", self.client.push(request.image)
        )
        logger.info("Image pushed", image=request.image, digest=digest)

        return await self._scan_result(
            request.action.value, request.image, digest, request.scan, deadline
        )

    async def _pull(
        self, request: PullRequest, deadline: Optional[float]
    ) -> OperationResult:
        self._target(request.image, request.region)

        digest = await self._call(
            f"Pulling {request.image}", self.client.pull(request.image)
        )
        logger.info("Image pulled", image=request.image, digest=digest)

        return await self._scan_result(
            request.action.value, request.image, digest, request.scan, deadline
        )

    async def _scan_result(
        self,
        action: str,
        image: str,
        digest: Optional[str],
        scan: ScanOptions,
        deadline: Optional[float],
    ) -> OperationResult:
        """Run the optional scan and combine it with the transfer result.

        The digest is reported even when the scan fails the operation.
        """
        if not scan.enabled:
            return OperationResult.succeeded(action, image_digest=digest)

        try:
            outcome = await self._call(
                f"Scanning {image}",
                self.poller.poll(image, deadline=deadline),
                passthrough=_SCAN_ERRORS,
            )
        except ScanTimedOut as e:
            logger.error("Vulnerability scan did not finish", error=str(e))
            return OperationResult.failed(
                action, e, image_digest=digest, scan_outcome=e.outcome
            )
        except RegistryError as e:
            logger.error("Vulnerability scan failed", error=str(e))
            return OperationResult.failed(action, e, image_digest=digest)

        if not outcome.passes(scan.fail_on_vulnerability):
            error = VulnerabilitiesFound(
                f"Vulnerability scan of {image} reported {outcome.status.value}"
            )
            logger.error(
                "Vulnerabilities found", image=image, status=outcome.status.value
            )
            return OperationResult.failed(
                action, error, image_digest=digest, scan_outcome=outcome
            )

        if not outcome.passes(fail_on_vulnerability=True):
            logger.warning(
                "Vulnerabilities found, continuing",
                image=image,
                status=outcome.status.value,
            )

        return OperationResult.succeeded(
            action, image_digest=digest, scan_outcome=outcome
        )

    async def _tag(self, request: TagRequest) -> OperationResult:
        self._target(request.image, request.region)
        await self._call(
            f"Tagging {request.image} as {request.target_tag}",
            self.client.tag(request.image, request.target_tag),
        )
        logger.info("Image tagged", image=request.image, tag=request.target_tag)
        return OperationResult.succeeded(request.action.value)

    async def _retag(self, request: RetagRequest) -> OperationResult:
        self._target(request.image, request.region)
        await self._call(
            f"Retagging {request.image} from {request.source_tag} to {request.target_tag}",
            self.client.retag(request.image, request.source_tag, request.target_tag),
            passthrough=(TagNotFound,),
        )
        logger.info(
            "Image retagged",
            image=request.image,
            source_tag=request.source_tag,
            target_tag=request.target_tag,
        )
        return OperationResult.succeeded(request.action.value)

    async def _delete(self, request: DeleteRequest) -> OperationResult:
        self._target(request.image, request.region)
        await self._call(
            f"Deleting {request.image}",
            self.client.delete(request.image),
            passthrough=(ImageNotFound,),
        )
        logger.info("Image deleted", image=request.image)
        return OperationResult.succeeded(request.action.value)

    async def _namespace(self, request: NamespaceRequest) -> OperationResult:
        self._target(None, request.region)
        action = request.action.value
        name = request.namespace

        if request.namespace_action == NamespaceAction.LIST:
            namespaces = await self._call(
                "Listing namespaces", self.client.list_namespaces()
            )
            logger.info("Namespaces listed", count=len(namespaces))
            return OperationResult.succeeded(action, namespaces=namespaces)

        if request.namespace_action == NamespaceAction.CREATE:
            try:
                await self._call(
                    f"Creating namespace {name}",
                    self.client.create_namespace(name),
                    passthrough=(NamespaceAlreadyExists,),
                )
            except NamespaceAlreadyExists:
                logger.info("Namespace already exists", namespace=name)
                return OperationResult.succeeded(
                    action, note=f"namespace {name} already exists"
                )
            logger.info("Namespace created", namespace=name)
            return OperationResult.succeeded(action)

        await self._call(
            f"Deleting namespace {name}", self.client.delete_namespace(name)
        )
        logger.info("Namespace deleted", namespace=name)
        return OperationResult.succeeded(action)
