# tests/unit/hashing/test_unit_imagehash_hasher.py — v1
"""Tests for hashing/imagehash_hasher.py — ImageHash-backed fingerprints."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from vismatch.core.models import Fingerprint, HashKind
from vismatch.hashing.imagehash_hasher import ImageHashHasher


def _gradient(horizontal: bool = True, size: int = 64) -> Image.Image:
    ramp = np.tile(np.linspace(0, 255, size, dtype=np.uint8), (size, 1))
    return Image.fromarray(ramp if horizontal else ramp.T)


def _checkerboard(size: int = 64, cell: int = 8) -> Image.Image:
    idx = np.indices((size, size)) // cell
    return Image.fromarray(((idx.sum(axis=0) % 2) * 255).astype(np.uint8))


class TestImageHashHasher:
    @pytest.mark.parametrize("kind", list(HashKind))
    def test_fingerprint_length(self, kind):
        hasher = ImageHashHasher(kind, hash_size=8)
        fp = hasher.hash(_gradient())
        assert fp.kind is kind
        assert len(fp) == hasher.bit_length == 64

    def test_default_size_is_32(self):
        hasher = ImageHashHasher(HashKind.PHASH)
        assert hasher.hash_size == 32
        assert hasher.bit_length == 1024
        assert len(hasher.hash(_gradient(size=128))) == 1024

    @pytest.mark.parametrize("kind", list(HashKind))
    def test_self_distance_is_zero(self, kind):
        hasher = ImageHashHasher(kind, hash_size=8)
        fp = hasher.hash(_checkerboard())
        assert hasher.distance(fp, fp) == 0.0

    def test_deterministic(self):
        hasher = ImageHashHasher(HashKind.DHASH, hash_size=8)
        assert hasher.hash(_gradient()) == hasher.hash(_gradient())

    def test_symmetric(self):
        hasher = ImageHashHasher(HashKind.PHASH, hash_size=8)
        a = hasher.hash(_gradient(True))
        b = hasher.hash(_gradient(False))
        assert hasher.distance(a, b) == hasher.distance(b, a)
        assert hasher.distance(a, b) > 0

    def test_distance_is_hamming(self):
        hasher = ImageHashHasher(HashKind.AHASH, hash_size=2)
        a = Fingerprint.from_bits(HashKind.AHASH, [True, True, False, False])
        b = Fingerprint.from_bits(HashKind.AHASH, [True, False, True, False])
        assert hasher.distance(a, b) == 2.0

    def test_kind_mismatch(self):
        hasher = ImageHashHasher(HashKind.PHASH, hash_size=2)
        a = Fingerprint.from_bits(HashKind.PHASH, [True] * 4)
        b = Fingerprint.from_bits(HashKind.DHASH, [True] * 4)
        with pytest.raises(ValueError, match="cannot compare"):
            hasher.distance(a, b)

    def test_length_mismatch(self):
        hasher = ImageHashHasher(HashKind.PHASH, hash_size=2)
        a = Fingerprint.from_bits(HashKind.PHASH, [True] * 4)
        b = Fingerprint.from_bits(HashKind.PHASH, [True] * 9)
        with pytest.raises(ValueError, match="bits"):
            hasher.distance(a, b)

    def test_rgb_input(self):
        hasher = ImageHashHasher(HashKind.PHASH, hash_size=8)
        assert len(hasher.hash(_gradient().convert("RGB"))) == 64

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            ImageHashHasher(HashKind.PHASH, hash_size=1)
