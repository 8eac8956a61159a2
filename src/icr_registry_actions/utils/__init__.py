"""Utility functions for registry operations."""

from .digest import extract_digest, validate_digest

__all__ = ["extract_digest", "validate_digest"]
