# src/hashing/hasher_factory.py — v1
"""Factory: lookup table from HashKind to a configured hasher."""

from __future__ import annotations

import logging
from typing import Callable

from vismatch.config.settings import Settings
from vismatch.core.models import HashKind
from vismatch.hashing.base_hasher import BaseHasher
from vismatch.hashing.imagehash_hasher import ImageHashHasher

logger = logging.getLogger(__name__)

_HASHER_REGISTRY: dict[HashKind, Callable[[int], BaseHasher]] = {
    HashKind.PHASH: lambda size: ImageHashHasher(HashKind.PHASH, hash_size=size),
    HashKind.DHASH: lambda size: ImageHashHasher(HashKind.DHASH, hash_size=size),
    HashKind.AHASH: lambda size: ImageHashHasher(HashKind.AHASH, hash_size=size),
}


class UnsupportedHashKindError(ValueError):
    """Raised when a hash kind has no registered hasher."""


def create_hasher(kind: HashKind | str, hash_size: int = 32) -> BaseHasher:
    """Instantiate the hasher for one algorithm kind.

    Args:
        kind: Algorithm kind (enum member or its value, e.g. "phash").
        hash_size: Side of the square bit grid.

    Returns:
        Configured BaseHasher instance.
    """
    try:
        kind = HashKind(kind)
    except ValueError as e:
        raise UnsupportedHashKindError(
            f"Unsupported hash kind: {kind!r}. "
            f"Available: {', '.join(k.value for k in HashKind)}"
        ) from e

    factory = _HASHER_REGISTRY.get(kind)
    if factory is None:
        raise UnsupportedHashKindError(f"No hasher registered for {kind.value!r}")

    logger.debug("Creating hasher: kind=%s, hash_size=%d", kind.value, hash_size)
    return factory(hash_size)


def create_hashers(settings: Settings | None = None) -> dict[HashKind, BaseHasher]:
    """One hasher per registered kind, all sharing the configured hash size."""
    hash_size = 32 if settings is None else settings.hash_size
    return {kind: create_hasher(kind, hash_size) for kind in _HASHER_REGISTRY}

