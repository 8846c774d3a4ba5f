# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides a deterministic counting hasher, small generated images and
a temporary project root. Only the integration tests hash with ImageHash.
"""

from __future__ import annotations

import base64
import io
import logging
from pathlib import Path
from typing import Callable

import numpy as np
import pytest
from PIL import Image

from vismatch.config.settings import Settings
from vismatch.core.models import Fingerprint, HashKind
from vismatch.hashing.base_hasher import BaseHasher


# === Fake hasher ===


class FakeHasher(BaseHasher):
    """16-bit hasher keyed on the grey level of the top-left pixel.

    Distance is the Hamming distance of the two bit vectors, so solid images
    of grey 0, 1, 3, 7 and 255 sit at distances 0, 1, 2, 3 and 8 from black.
    """

    def __init__(self, kind: HashKind = HashKind.PHASH) -> None:
        self._kind = kind
        self.hash_calls = 0
        self.fail = False

    @property
    def kind(self) -> HashKind:
        return self._kind

    @property
    def bit_length(self) -> int:
        return 16

    def hash(self, image: Image.Image) -> Fingerprint:
        self.hash_calls += 1
        if self.fail:
            raise RuntimeError("hasher failure")
        grey = image.convert("L").getpixel((0, 0))
        bits = np.unpackbits(np.array([grey, 0], dtype=np.uint8))
        return Fingerprint(kind=self._kind, bits=bits)

    def distance(self, a: Fingerprint, b: Fingerprint) -> float:
        return float(np.count_nonzero(a.bits != b.bits))


def grey_fingerprint(grey: int, kind: HashKind = HashKind.PHASH) -> Fingerprint:
    """Fingerprint FakeHasher gives a solid image of this grey level."""
    return Fingerprint(kind=kind, bits=np.unpackbits(np.array([grey, 0], dtype=np.uint8)))


def solid_image(grey: int, size: int = 8, mode: str = "L") -> Image.Image:
    if mode == "L":
        return Image.new("L", (size, size), grey)
    return Image.new(mode, (size, size), (grey,) * len(mode))


def image_to_base64(image: Image.Image, fmt: str = "PNG") -> str:
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    return base64.b64encode(buf.getvalue()).decode("ascii")


# === FIXTURES ===


@pytest.fixture
def fake_hasher() -> FakeHasher:
    return FakeHasher(HashKind.PHASH)


@pytest.fixture
def hashers(fake_hasher: FakeHasher) -> dict[HashKind, BaseHasher]:
    return {HashKind.PHASH: fake_hasher}


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "image_root"
    root.mkdir()
    return root


@pytest.fixture
def settings(project_root: Path) -> Settings:
    """Settings isolated from any .env file."""
    return Settings(_env_file=None, project_root=project_root, worker_threads=2)


@pytest.fixture
def write_image() -> Callable[..., Path]:
    """Save a solid grey image and return its path."""

    def _write(path: Path, grey: int = 0, size: int = 8) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        solid_image(grey, size).save(path)
        return path

    return _write


@pytest.fixture(autouse=True)
def _reset_vismatch_logger():
    """Drop handlers installed by setup_logging() during a test."""
    yield
    root = logging.getLogger("vismatch")
    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
