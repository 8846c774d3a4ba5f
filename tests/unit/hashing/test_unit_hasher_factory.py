# tests/unit/hashing/test_unit_hasher_factory.py — v1
"""Tests for hashing/hasher_factory.py — kind lookup table."""

from __future__ import annotations

import pytest

from vismatch.config.settings import Settings
from vismatch.core.models import HashKind
from vismatch.hashing.hasher_factory import (
    UnsupportedHashKindError,
    create_hasher,
    create_hashers,
)
from vismatch.hashing.imagehash_hasher import ImageHashHasher


class TestCreateHasher:
    @pytest.mark.parametrize("kind", ["phash", "dhash", "ahash"])
    def test_from_string(self, kind):
        hasher = create_hasher(kind, hash_size=8)
        assert isinstance(hasher, ImageHashHasher)
        assert hasher.kind is HashKind(kind)
        assert hasher.bit_length == 64

    def test_from_enum(self):
        assert create_hasher(HashKind.DHASH).kind is HashKind.DHASH

    def test_unsupported(self):
        with pytest.raises(UnsupportedHashKindError, match="Available"):
            create_hasher("whash")

    def test_unsupported_is_value_error(self):
        with pytest.raises(ValueError):
            create_hasher("md5")


class TestCreateHashers:
    def test_all_kinds_default_size(self):
        hashers = create_hashers()
        assert set(hashers) == set(HashKind)
        assert all(h.bit_length == 1024 for h in hashers.values())

    def test_size_from_settings(self):
        hashers = create_hashers(Settings(_env_file=None, hash_size=16))
        assert hashers[HashKind.PHASH].bit_length == 256
