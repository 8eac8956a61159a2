"""Region resolution for IBM Cloud Container Registry images."""

from types import MappingProxyType
from typing import Mapping, Optional

from ..exceptions import RegionUnresolved
from .reference import registry_host
from .types import RegionSource, ResolvedRegion

# Region used when an operation names neither an image nor a region
DEFAULT_REGION = "global"

# Registry host -> region code
REGISTRY_REGIONS: Mapping[str, str] = MappingProxyType(
    {
        "icr.io": "global",
        "us.icr.io": "us-south",
        "eu.icr.io": "eu-gb",
        "uk.icr.io": "uk-south",
        "de.icr.io": "eu-de",
        "au.icr.io": "au-syd",
        "jp.icr.io": "jp-tok",
        "jp2.icr.io": "jp-osa",
        "ca.icr.io": "ca-tor",
        "br.icr.io": "br-sao",
    }
)

_REGION_HOSTS: Mapping[str, str] = MappingProxyType(
    {code: host for host, code in REGISTRY_REGIONS.items()}
)


def registry_host_for(region_code: str) -> Optional[str]:
    """Return the registry host serving ``region_code``, if known."""
    return _REGION_HOSTS.get(region_code)


def resolve_region(
    image: Optional[str], explicit_region: Optional[str] = None
) -> ResolvedRegion:
    """Resolve the region an image lives in.

    An explicit region always wins and is not checked against the image.
    Otherwise the region is looked up from the registry host of the image.

    Args:
        image: Image reference (e.g., us.icr.io/team/app:1.0); may be None
            for operations without an image
        explicit_region: Region given by the caller

    Returns:
        The resolved region

    Raises:
        RegionUnresolved: If no region was given and the host is unknown
    """
    host = registry_host(image) if image else None

    if explicit_region:
        return ResolvedRegion(
            code=explicit_region,
            source=RegionSource.EXPLICIT,
            host=registry_host_for(explicit_region) or host,
        )

    if host is None:
        raise RegionUnresolved(
            "Cannot determine the registry region: no image registry host "
            "and no 'region' input given. Set the 'region' input."
        )

    code = REGISTRY_REGIONS.get(host)
    if code is None:
        raise RegionUnresolved(
            f"Cannot infer the registry region from host '{host}'. "
            f"Set the 'region' input or use one of: {', '.join(REGISTRY_REGIONS)}"
        )

    return ResolvedRegion(code=code, source=RegionSource.INFERRED, host=host)


def default_region(region_code: str) -> ResolvedRegion:
    """Region for operations that carry no image, such as namespace listing."""
    return ResolvedRegion(
        code=region_code,
        source=RegionSource.DEFAULT,
        host=registry_host_for(region_code),
    )
