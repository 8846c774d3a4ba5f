# src/index/registry.py — v1
"""Process-wide mapping from project name to ProjectIndex.

Shared by every request handler. Reads take the shared section, structural
changes take the exclusive one. Callers do their hashing and ranking before
or after a section, never inside it, so sections only cover dict lookups and
list appends.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping, TypeVar

from vismatch.core.errors import ProjectNotFoundError
from vismatch.core.models import ImageHashEntry
from vismatch.index.project_index import EntriesView, ProjectIndex
from vismatch.index.rwlock import AsyncRWLock

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProjectRegistry:
    """Single-writer / many-reader catalogue of projects."""

    def __init__(
        self, projects: Mapping[str, Iterable[ImageHashEntry]] | None = None
    ) -> None:
        self._lock = AsyncRWLock()
        self._projects: dict[str, ProjectIndex] = {
            name: ProjectIndex(name, entries)
            for name, entries in (projects or {}).items()
        }

    async def with_read(
        self,
        project_name: str,
        fn: Callable[[EntriesView], T],
    ) -> T:
        """Call fn with the project's entries inside a shared section.

        Raises:
            ProjectNotFoundError: If the project is not registered.
        """
        async with self._lock.reader():
            index = self._projects.get(project_name)
            if index is None:
                raise ProjectNotFoundError(project_name)
            return fn(index.snapshot())

    async def with_write(self, fn: Callable[[dict[str, ProjectIndex]], T]) -> T:
        """Call fn with the mutable project map inside the exclusive section."""
        async with self._lock.writer():
            return fn(self._projects)

    async def snapshot(self, project_name: str) -> EntriesView:
        """Entries of one project as they are now, unaffected by later appends.

        Raises:
            ProjectNotFoundError: If the project is not registered.
        """
        return await self.with_read(project_name, lambda entries: entries)

    async def append_entry(self, project_name: str, entry: ImageHashEntry) -> int:
        """Add an entry to a project, creating the project if needed.

        An entry for an image already in the project replaces the old one in
        place. Returns the project's entry count afterwards.
        """

        def _append(projects: dict[str, ProjectIndex]) -> int:
            index = projects.get(project_name)
            if index is None:
                index = projects[project_name] = ProjectIndex(project_name)
                logger.info("Created project <%s>", project_name)
            if index.upsert(entry):
                logger.debug("Replaced entry %s in <%s>", entry.image_name, project_name)
            return len(index)

        return await self.with_write(_append)

    async def ensure_project(self, project_name: str) -> bool:
        """Register an empty project if absent. Returns True if it was created."""

        def _ensure(projects: dict[str, ProjectIndex]) -> bool:
            if project_name in projects:
                return False
            projects[project_name] = ProjectIndex(project_name)
            return True

        return await self.with_write(_ensure)

    async def has_project(self, project_name: str) -> bool:
        async with self._lock.reader():
            return project_name in self._projects

    async def counts(self) -> dict[str, int]:
        """Project name -> number of entries, sorted by name."""
        async with self._lock.reader():
            return {name: len(self._projects[name]) for name in sorted(self._projects)}
