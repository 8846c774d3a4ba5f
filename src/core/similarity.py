# src/core/similarity.py — v1
"""Linear similarity ranking of a project's entries against a query image.

The query image is hashed once, with the kind of the first entry; every entry
of a project is expected to share that kind.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Mapping, Sequence

from vismatch.core.models import Fingerprint, HashKind, ImageDistEntry, ImageHashEntry

if TYPE_CHECKING:
    from PIL import Image

    from vismatch.hashing.base_hasher import BaseHasher

logger = logging.getLogger(__name__)


class SimilarityEngine:
    """Rank entries by distance to a query, closest first."""

    def __init__(self, hashers: Mapping[HashKind, BaseHasher]) -> None:
        self._hashers = dict(hashers)

    def rank(
        self,
        query_image: Image.Image,
        entries: Sequence[ImageHashEntry],
    ) -> list[ImageDistEntry]:
        """Distance from the query image to every entry, sorted ascending.

        Args:
            query_image: Decoded query image.
            entries: Catalogue entries, all of one hash kind.

        Returns:
            One ImageDistEntry per input entry. Equal distances keep their
            input order. An empty input gives an empty list.
        """
        if not entries:
            return []

        kind = entries[0].hash_kind
        hasher = self._hasher(kind)
        query = hasher.hash(query_image)
        return self.rank_fingerprint(query, entries)

    def rank_fingerprint(
        self,
        query: Fingerprint,
        entries: Sequence[ImageHashEntry],
    ) -> list[ImageDistEntry]:
        """Same as rank() for an already computed query fingerprint.

        Raises:
            ValueError: If an entry's kind differs from the query's.
        """
        if not entries:
            return []

        t0 = time.perf_counter()
        hasher = self._hasher(query.kind)
        distances = []
        for entry in entries:
            if entry.hash_kind is not query.kind:
                raise ValueError(
                    f"entry {entry.image_name} is {entry.hash_kind.value}, "
                    f"query is {query.kind.value}"
                )
            distances.append(
                ImageDistEntry(
                    image_name=entry.image_name,
                    distance=hasher.distance(query, entry.hash),
                )
            )

        # list.sort is stable: ties keep insertion order
        distances.sort(key=lambda d: d.sort_key)
        logger.debug(
            "Ranked %d entries in %.3fs", len(distances), time.perf_counter() - t0,
        )
        return distances

    def _hasher(self, kind: HashKind) -> BaseHasher:
        try:
            return self._hashers[kind]
        except KeyError as e:
            raise ValueError(f"no hasher configured for {kind.value}") from e


def top_k(ranked: Sequence[ImageDistEntry], k: int) -> list[ImageDistEntry]:
    """First k entries of a ranked list; all of them when fewer than k exist."""
    if k < 0:
        raise ValueError("k must be >= 0")
    return list(ranked[: min(k, len(ranked))])
