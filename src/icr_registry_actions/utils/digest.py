"""Digest validation and extraction utilities."""

import re
from typing import Any, Iterable, Optional

# Regex pattern for valid digest format (algorithm:hex)
DIGEST_PATTERN = re.compile(r"^[a-z0-9]+:[a-f0-9]+$")

# Digest mentioned in docker progress messages, e.g.
# "latest: digest: sha256:abc... size: 528" or "Digest: sha256:abc..."
_STATUS_DIGEST = re.compile(r"digest: ([a-z0-9]+:[a-f0-9]+)", re.IGNORECASE)


def validate_digest(digest: str) -> bool:
    """Validate digest format.

    Args:
        digest: Digest string to validate

    Returns:
        True if valid digest format
    """
    if not isinstance(digest, str):
        return False

    if not DIGEST_PATTERN.match(digest):
        return False

    # Check if algorithm is valid
    algorithm, _ = digest.split(":", 1)
    return algorithm in ["sha256", "sha512"]


def extract_digest(events: Iterable[dict[str, Any]]) -> Optional[str]:
    """Find the manifest digest in a docker push or pull event stream.

    Args:
        events: Progress messages as returned by the Docker Engine API

    Returns:
        The last valid digest reported, or None
    """
    digest: Optional[str] = None
    for event in events:
        aux = event.get("aux")
        if isinstance(aux, dict) and validate_digest(aux.get("Digest", "")):
            digest = aux["Digest"]
            continue

        status = event.get("status")
        if isinstance(status, str):
            match = _STATUS_DIGEST.search(status)
            if match and validate_digest(match.group(1)):
                digest = match.group(1)
    return digest
