"""Registry capability consumed by the dispatcher and the scan poller."""

from typing import Optional, Protocol, Sequence

from .types import ResolvedRegion, ScanOutcome


class RegistryClient(Protocol):
    """Protocol for registry client implementations.

    Transport and credential failures raise ``RegistryConnectionError`` or
    ``AuthenticationError``. Semantic failures raise ``ImageNotFound``,
    ``TagNotFound`` or ``NamespaceAlreadyExists``.
    """

    def use_region(self, region: ResolvedRegion) -> None:
        """Select the regional endpoints for subsequent calls."""
        ...

    async def push(self, ref: str) -> Optional[str]:
        """Push a local image and return its manifest digest, if reported."""
        ...

    async def pull(self, ref: str) -> Optional[str]:
        """Pull an image and return its manifest digest, if reported."""
        ...

    async def tag_local(self, local: str, ref: str) -> None:
        """Tag a local image with a registry reference."""
        ...

    async def tag(self, ref: str, new_tag: str) -> None: ...

    async def retag(self, ref: str, src_tag: str, dst_tag: str) -> None: ...

    async def delete(self, ref: str) -> None: ...

    async def create_namespace(self, name: str) -> None: ...

    async def delete_namespace(self, name: str) -> None: ...

    async def list_namespaces(self) -> Sequence[str]:
        """List namespaces in the order the registry returns them."""
        ...

    async def initiate_scan(self, ref: str) -> None: ...

    async def query_scan(self, ref: str) -> ScanOutcome:
        """Return the current scan status of an image."""
        ...
