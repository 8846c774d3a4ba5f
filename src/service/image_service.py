# src/service/image_service.py — v1
"""Upload and compare orchestration over the registry, cache and worker pool.

One ImageService is created per process and handed to the HTTP layer.
Hashing, image I/O and ranking run on the worker pool; the registry is only
locked to read a snapshot or to apply an append.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Mapping

from vismatch.cache.hash_cache import HashCache
from vismatch.config.settings import Settings
from vismatch.core.errors import InvalidNameError
from vismatch.core.models import HashKind, ImageDistEntry, ImageHashEntry
from vismatch.core.similarity import SimilarityEngine, top_k
from vismatch.hashing.hasher_factory import create_hashers
from vismatch.index.registry import ProjectRegistry
from vismatch.index.scanner import bootstrap_project_root, scan_projects
from vismatch.logging.context import set_operation_context
from vismatch.service.worker_pool import WorkerPool

if TYPE_CHECKING:
    from PIL import Image

    from vismatch.hashing.base_hasher import BaseHasher

logger = logging.getLogger(__name__)

_RGB_ONLY_EXTENSIONS = {"jpg", "jpeg"}


def validate_name(name: str, what: str = "name") -> str:
    """Reject names that are not a single, visible path component.

    Raises:
        InvalidNameError: On empty, hidden, relative or multi-component names.
    """
    if not name or not name.strip():
        raise InvalidNameError(f"{what} must not be empty")
    if name.startswith(".") or any(c in name for c in ("/", "\\", "\x00")):
        raise InvalidNameError(f"invalid {what}: {name!r}")
    return name


def validate_image_name(image_name: str, extensions: list[str]) -> str:
    """validate_name() plus an allowed image extension."""
    validate_name(image_name, "image name")
    ext = Path(image_name).suffix.lower().lstrip(".")
    if ext not in extensions:
        raise InvalidNameError(
            f"image name {image_name!r} must end with one of: {', '.join(extensions)}"
        )
    return image_name


class ImageService:
    """Facade used by the HTTP API and the CLI."""

    def __init__(
        self,
        settings: Settings,
        hashers: Mapping[HashKind, BaseHasher] | None = None,
        registry: ProjectRegistry | None = None,
        pool: WorkerPool | None = None,
    ) -> None:
        self._settings = settings
        self._root = Path(settings.project_root)
        self._kind = HashKind(settings.hash_kind)
        self._extensions = settings.image_extensions_list
        hashers = dict(hashers) if hashers is not None else create_hashers(settings)
        self._cache = HashCache(hashers)
        self._engine = SimilarityEngine(hashers)
        self._registry = registry if registry is not None else ProjectRegistry()
        self._pool = pool if pool is not None else WorkerPool(settings.worker_threads)

    @property
    def registry(self) -> ProjectRegistry:
        return self._registry

    @property
    def cache(self) -> HashCache:
        return self._cache

    @property
    def project_root(self) -> Path:
        return self._root

    @property
    def hash_kind(self) -> HashKind:
        return self._kind

    async def start(self) -> None:
        """Bootstrap the project root and seed the registry from disk."""
        t0 = time.perf_counter()
        await self._pool.run(bootstrap_project_root, self._root)
        projects = await self._pool.run(
            scan_projects, self._root, self._kind, self._cache, self._extensions,
        )
        self._registry = ProjectRegistry(projects)
        logger.info(
            "Initialization stage done: %d projects in %.3fs",
            len(projects), time.perf_counter() - t0,
        )

    def close(self) -> None:
        self._pool.shutdown()

    async def upload_image(
        self,
        project_name: str,
        image: Image.Image,
        image_name: str,
    ) -> ImageHashEntry:
        """Save an image into a project and index it.

        The project (folder and registry entry) is created on first upload.
        Re-uploading an existing name overwrites the file and replaces the
        project's entry for it.

        Raises:
            InvalidNameError: If a name is unsafe or lacks an image extension.
            OSError: If the project folder or the image cannot be written.
            ImageDecodeError / ComputeError: If the saved image cannot be hashed.
        """
        validate_name(project_name, "project name")
        validate_image_name(image_name, self._extensions)
        set_operation_context("upload", project_name)

        image_path = self._root / project_name / image_name
        logger.info("Saving image to %s", image_path)
        await self._pool.run(_save_image, image, image_path)

        entry = await self._pool.run(
            self._cache.fetch_or_compute,
            image_path,
            self._kind,
            self._settings.force_recompute_on_upload,
        )
        count = await self._registry.append_entry(project_name, entry)
        logger.info("Indexed %s, project <%s> has %d entries", image_name, project_name, count)
        return entry

    async def compare_image(
        self,
        project_name: str,
        image: Image.Image,
        k: int | None = None,
    ) -> list[ImageDistEntry]:
        """The k closest images of a project (all of them if it holds fewer).

        Raises:
            ProjectNotFoundError: If the project is not registered.
        """
        set_operation_context("compare", project_name)
        k = self._settings.top_k if k is None else k

        t0 = time.perf_counter()
        entries = await self._registry.snapshot(project_name)
        ranked = await self._pool.run(self._engine.rank, image, entries)
        logger.info(
            "Compared against %d entries of <%s> in %.3fs",
            len(entries), project_name, time.perf_counter() - t0,
        )
        return top_k(ranked, k)

    async def list_projects(self) -> dict[str, int]:
        return await self._registry.counts()

    async def read_image_bytes(self, image_path: Path) -> bytes:
        return await self._pool.run(Path(image_path).read_bytes)


def _save_image(image: Image.Image, image_path: Path) -> None:
    """Create the project folder if needed and write the image file."""
    image_path.parent.mkdir(parents=True, exist_ok=True)
    if image_path.suffix.lower().lstrip(".") in _RGB_ONLY_EXTENSIONS and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    try:
        image.save(image_path)
    except ValueError as e:
        raise OSError(f"error while saving image: {e}") from e
