# src/index/project_index.py — v1
"""Ordered catalogue of (image, fingerprint) entries for one project."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Sequence

from vismatch.core.models import ImageHashEntry


class EntriesView(Sequence[ImageHashEntry]):
    """Read-only window over the first ``length`` entries of a project.

    Taking a view copies nothing. Entries appended after the view was taken
    stay outside it; an image re-uploaded in place shows its new entry.
    """

    __slots__ = ("_entries", "_length")

    def __init__(self, entries: list[ImageHashEntry], length: int) -> None:
        self._entries = entries
        self._length = length

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, index):  # type: ignore[override]
        if isinstance(index, slice):
            return [self._entries[i] for i in range(*index.indices(self._length))]
        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise IndexError("entry index out of range")
        return self._entries[index]

    def __iter__(self) -> Iterator[ImageHashEntry]:
        entries = self._entries
        for i in range(self._length):
            yield entries[i]

    def __repr__(self) -> str:
        return f"EntriesView(length={self._length})"


class ProjectIndex:
    """Append-only sequence of ImageHashEntry values.

    Appends and re-uploads cost O(1): entries live in a list that only grows,
    and a name -> position map finds the slot of an image uploaded again.
    Mutation is only done by ProjectRegistry under its exclusive section.
    """

    def __init__(self, name: str, entries: Iterable[ImageHashEntry] = ()) -> None:
        self._name = name
        self._entries: list[ImageHashEntry] = []
        self._positions: dict[Path, int] = {}
        for entry in entries:
            self.upsert(entry)

    @property
    def name(self) -> str:
        return self._name

    def snapshot(self) -> EntriesView:
        """View of the entries present now."""
        return EntriesView(self._entries, len(self._entries))

    @property
    def image_names(self) -> list[Path]:
        return [e.image_name for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ImageHashEntry]:
        return iter(self.snapshot())

    def append(self, entry: ImageHashEntry) -> None:
        """Add an entry at the end."""
        self._positions[entry.image_name] = len(self._entries)
        self._entries.append(entry)

    def upsert(self, entry: ImageHashEntry) -> bool:
        """Replace the entry for the same image, or append if there is none.

        Returns:
            True if an existing entry was replaced.
        """
        position = self._positions.get(entry.image_name)
        if position is None:
            self.append(entry)
            return False
        self._entries[position] = entry
        return True

    def __repr__(self) -> str:
        return f"ProjectIndex(name={self._name!r}, entries={len(self._entries)})"
