# src/core/errors.py — v1
"""Exception hierarchy shared by the cache, index, service and API layers.

Freshness failures (cache writes, forced recomputes) are absorbed where they
happen; everything defined here that reaches a caller means the requested
operation could not be performed.
"""

from __future__ import annotations


class VismatchError(Exception):
    """Base class for all vismatch errors."""


class NotFoundError(VismatchError):
    """A requested resource does not exist."""


class CacheNotFoundError(NotFoundError):
    """No sidecar hash file exists for an image."""


class ProjectNotFoundError(NotFoundError):
    """A project name is absent from the registry."""

    def __init__(self, project_name: str) -> None:
        super().__init__(f"project <{project_name}> not found in current database")
        self.project_name = project_name


class DecodeError(VismatchError):
    """Bytes could not be parsed into the expected value."""


class CacheDecodeError(DecodeError):
    """A sidecar file exists but does not hold a usable fingerprint."""


class ImageDecodeError(DecodeError):
    """Image bytes (or their base64 transport form) could not be decoded."""


class CacheWriteError(VismatchError, OSError):
    """A sidecar file could not be written."""


class ComputeError(VismatchError):
    """The hashing capability failed on a decoded image."""


class InvalidNameError(VismatchError, ValueError):
    """A project or image name cannot be used as a file name."""


class ProjectRootError(VismatchError):
    """The project root exists but is not a usable directory."""
