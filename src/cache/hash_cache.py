# src/cache/hash_cache.py — v1
"""Disk-backed fingerprint cache stored beside each image.

One sidecar file per (image, hash kind), named by appending the kind's
extension to the image file name: ``cat.png`` -> ``cat.png.phash``.
The cache keeps no checksum of the source image, so an image edited in place
is only re-hashed through ``fetch_or_compute(..., force_recompute=True)``.

All methods are blocking and are meant to run on the worker pool.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Mapping

from PIL import Image

from vismatch.cache.codec import decode_bits, encode_bits
from vismatch.core.errors import (
    CacheDecodeError,
    CacheNotFoundError,
    CacheWriteError,
    ComputeError,
    DecodeError,
    ImageDecodeError,
    NotFoundError,
    VismatchError,
)
from vismatch.core.models import Fingerprint, HashKind, ImageHashEntry
from vismatch.hashing.base_hasher import BaseHasher

logger = logging.getLogger(__name__)

# What Pillow raises for unreadable, truncated or oversized image files.
IMAGE_DECODE_ERRORS: tuple[type[Exception], ...] = (
    OSError,
    ValueError,
    SyntaxError,
    Image.DecompressionBombError,
)


def sidecar_path(image_path: Path, kind: HashKind) -> Path:
    """Return the cache file path for an image and hash kind."""
    image_path = Path(image_path)
    return image_path.with_name(f"{image_path.name}.{HashKind(kind).cache_ext}")


class HashCache:
    """Load, store and load-or-compute fingerprints for image files."""

    def __init__(self, hashers: Mapping[HashKind, BaseHasher]) -> None:
        if not hashers:
            raise ValueError("HashCache needs at least one hasher")
        self._hashers = dict(hashers)

    def hasher(self, kind: HashKind) -> BaseHasher:
        """Return the hasher registered for a kind."""
        try:
            return self._hashers[HashKind(kind)]
        except KeyError as e:
            raise ValueError(f"no hasher configured for {kind!r}") from e

    def load(self, image_path: Path, kind: HashKind) -> Fingerprint:
        """Read the cached fingerprint for an image.

        Raises:
            CacheNotFoundError: If no sidecar file exists.
            CacheDecodeError: If the sidecar cannot be read or parsed, or holds
                a bit count that does not match the configured hasher.
        """
        kind = HashKind(kind)
        path = sidecar_path(image_path, kind)
        try:
            data = path.read_bytes()
        except FileNotFoundError as e:
            raise CacheNotFoundError(
                f"cannot open cache file '{path}' with type {kind.value}"
            ) from e
        except OSError as e:
            raise CacheDecodeError(f"cannot read cache file '{path}': {e}") from e

        try:
            bits = decode_bits(data)
        except CacheDecodeError as e:
            raise CacheDecodeError(
                f"cannot deserialize cache file '{path}' with type {kind.value}: {e}"
            ) from e

        expected = self.hasher(kind).bit_length
        if bits.size != expected:
            raise CacheDecodeError(
                f"cache file '{path}' holds {bits.size} bits, expected {expected}"
            )
        return Fingerprint(kind=kind, bits=bits)

    def store(self, image_path: Path, fingerprint: Fingerprint) -> Path:
        """Write a fingerprint to the image's sidecar file.

        The payload goes to a temporary file first and is renamed into place,
        so readers never observe a partially written sidecar.

        Raises:
            CacheWriteError: If the file cannot be written.
        """
        path = sidecar_path(image_path, fingerprint.kind)
        payload = encode_bits(fingerprint.bits)
        tmp_name: str | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise CacheWriteError(f"cannot write cache file '{path}': {e}") from e
        return path

    def compute(self, image_path: Path, kind: HashKind) -> Fingerprint:
        """Decode an image file and hash it.

        Raises:
            ImageDecodeError: If the file is missing, not an image, truncated
                or over Pillow's decompression-bomb limit.
            ComputeError: If the hasher fails on the decoded image.
        """
        hasher = self.hasher(kind)
        try:
            with Image.open(image_path) as img:
                img.load()
                image = img.copy()
        except IMAGE_DECODE_ERRORS as e:
            raise ImageDecodeError(f"cannot decode image '{image_path}': {e}") from e

        try:
            return hasher.hash(image)
        except Exception as e:
            raise ComputeError(
                f"{hasher.kind.value} hashing failed for '{image_path}': {e}"
            ) from e

    def fetch_or_compute(
        self,
        image_path: Path,
        kind: HashKind,
        force_recompute: bool = False,
    ) -> ImageHashEntry:
        """Return the image's fingerprint, from cache when possible.

        - Cached and not forced: the cached value, without hashing.
        - Cached and forced: a fresh value (persisted best-effort); if hashing
          fails the cached value is returned instead.
        - Not cached (or unreadable cache): a fresh value, persisted
          best-effort; hashing failures propagate.

        Raises:
            ImageDecodeError: Cold cache and the image cannot be decoded.
            ComputeError: Cold cache and hashing failed.
        """
        image_path = Path(image_path)
        kind = HashKind(kind)

        cached: Fingerprint | None = None
        try:
            cached = self.load(image_path, kind)
        except NotFoundError:
            logger.debug("No cache for %s (%s)", image_path.name, kind.value)
        except DecodeError as e:
            logger.warning("Ignoring unusable cache: %s", e)

        if cached is not None and not force_recompute:
            return ImageHashEntry(image_name=image_path, hash_kind=kind, hash=cached)

        try:
            fresh = self.compute(image_path, kind)
        except VismatchError as e:
            if cached is None:
                raise
            logger.warning(
                "Recompute failed for %s, keeping cached %s value: %s",
                image_path.name, kind.value, e,
            )
            return ImageHashEntry(image_name=image_path, hash_kind=kind, hash=cached)

        self._store_best_effort(image_path, fresh)
        return ImageHashEntry(image_name=image_path, hash_kind=kind, hash=fresh)

    def _store_best_effort(self, image_path: Path, fingerprint: Fingerprint) -> None:
        """Persist a fingerprint; failures only cost cache freshness."""
        try:
            self.store(image_path, fingerprint)
        except CacheWriteError as e:
            logger.warning("Cache write skipped: %s", e)
