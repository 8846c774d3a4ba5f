# src/core/models.py — v1
"""Hash-domain value types: HashKind, Fingerprint, ImageHashEntry, ImageDistEntry.

All of them are immutable once constructed, which is what lets the registry
hand out aliased views to concurrent readers.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable

import numpy as np


class HashKind(str, Enum):
    """Closed set of supported perceptual hash algorithms."""

    DHASH = "dhash"
    PHASH = "phash"
    AHASH = "ahash"

    @property
    def cache_ext(self) -> str:
        """Extension appended to an image file name for its sidecar."""
        return self.value


@dataclass(frozen=True, eq=False)
class Fingerprint:
    """Fixed-length bit vector produced by one hash algorithm kind.

    ``bits`` is stored as a flat, read-only boolean array.
    """

    kind: HashKind
    bits: np.ndarray

    def __post_init__(self) -> None:
        arr = np.array(self.bits, dtype=bool).ravel()
        arr.setflags(write=False)
        object.__setattr__(self, "bits", arr)
        object.__setattr__(self, "kind", HashKind(self.kind))

    @classmethod
    def from_bits(cls, kind: HashKind, bits: Iterable[bool]) -> Fingerprint:
        return cls(kind=kind, bits=np.fromiter(bits, dtype=bool))

    def __len__(self) -> int:
        return int(self.bits.size)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fingerprint):
            return NotImplemented
        return self.kind is other.kind and np.array_equal(self.bits, other.bits)

    def __hash__(self) -> int:
        return hash((self.kind, self.bits.tobytes()))

    def __repr__(self) -> str:
        return f"Fingerprint(kind={self.kind.value}, bits={len(self)}, ones={int(self.bits.sum())})"

    def to_list(self) -> list[bool]:
        return [bool(b) for b in self.bits]


@dataclass(frozen=True)
class ImageHashEntry:
    """(image, algorithm kind, fingerprint): the unit stored in a project index."""

    image_name: Path
    hash_kind: HashKind
    hash: Fingerprint

    def __post_init__(self) -> None:
        if self.hash.kind is not self.hash_kind:
            raise ValueError(
                f"fingerprint kind {self.hash.kind.value} does not match "
                f"entry kind {self.hash_kind.value}"
            )


@dataclass(frozen=True)
class ImageDistEntry:
    """An image paired with its distance to a query image. Lower is closer."""

    image_name: Path
    distance: float

    @property
    def sort_key(self) -> int:
        return total_order_key(self.distance)


def total_order_key(value: float) -> int:
    """Map a float onto an int that orders like IEEE 754 totalOrder.

    -NaN < -inf < ... < -0.0 < 0.0 < ... < inf < NaN, so NaN distances land
    at a fixed position instead of breaking the sort.
    """
    (bits,) = struct.unpack("<q", struct.pack("<d", float(value)))
    if bits < 0:
        bits ^= 0x7FFF_FFFF_FFFF_FFFF
    return bits
