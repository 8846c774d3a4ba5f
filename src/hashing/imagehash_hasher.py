# src/hashing/imagehash_hasher.py — v1
"""Perceptual, difference and average hashes backed by the ImageHash library.

Fingerprints are square bit grids of ``hash_size x hash_size``. Images are
resized by ImageHash with its default Lanczos filter.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

import imagehash

from vismatch.core.models import Fingerprint, HashKind
from vismatch.hashing.base_hasher import BaseHasher

if TYPE_CHECKING:
    from PIL import Image

logger = logging.getLogger(__name__)

_HASH_FUNCTIONS: dict[HashKind, Callable[..., imagehash.ImageHash]] = {
    HashKind.PHASH: imagehash.phash,
    HashKind.DHASH: imagehash.dhash,
    HashKind.AHASH: imagehash.average_hash,
}


class ImageHashHasher(BaseHasher):
    """Hasher for one algorithm kind at a fixed hash size."""

    def __init__(self, kind: HashKind, hash_size: int = 32) -> None:
        if hash_size < 2:
            raise ValueError("hash_size must be >= 2")
        self._kind = HashKind(kind)
        self._hash_size = hash_size
        self._fn = _HASH_FUNCTIONS[self._kind]

    @property
    def kind(self) -> HashKind:
        return self._kind

    @property
    def hash_size(self) -> int:
        return self._hash_size

    @property
    def bit_length(self) -> int:
        return self._hash_size * self._hash_size

    def hash(self, image: Image.Image) -> Fingerprint:
        """Compute the fingerprint of a decoded image."""
        h = self._fn(image, hash_size=self._hash_size)
        return Fingerprint(kind=self._kind, bits=h.hash)

    def distance(self, a: Fingerprint, b: Fingerprint) -> float:
        """Hamming distance, as a float.

        Raises:
            ValueError: If the fingerprints were not produced by the same kind
                and configuration.
        """
        if a.kind is not b.kind:
            raise ValueError(
                f"cannot compare {a.kind.value} with {b.kind.value} fingerprints"
            )
        if len(a) != len(b):
            raise ValueError(
                f"cannot compare fingerprints of {len(a)} and {len(b)} bits"
            )
        return float(imagehash.ImageHash(a.bits) - imagehash.ImageHash(b.bits))

    def __repr__(self) -> str:
        return f"ImageHashHasher(kind={self._kind.value}, hash_size={self._hash_size})"
