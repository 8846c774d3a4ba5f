# src/hashing/base_hasher.py — v1
"""Abstract hashing capability: image -> Fingerprint, Fingerprint x Fingerprint -> distance."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from PIL import Image

    from vismatch.core.models import Fingerprint, HashKind


class BaseHasher(ABC):
    """Unified interface for all perceptual hash algorithms."""

    @abstractmethod
    def hash(self, image: Image.Image) -> Fingerprint:
        """Compute the fingerprint of a decoded image."""

    @abstractmethod
    def distance(self, a: Fingerprint, b: Fingerprint) -> float:
        """Distance between two fingerprints of this hasher's kind. 0.0 means identical."""

    @property
    @abstractmethod
    def kind(self) -> HashKind:
        """Algorithm kind produced by this hasher."""

    @property
    @abstractmethod
    def bit_length(self) -> int:
        """Number of bits in every fingerprint this hasher produces."""
