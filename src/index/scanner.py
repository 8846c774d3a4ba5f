# src/index/scanner.py — v1
"""Startup index build: scan the project root and hash every image.

Each immediate subdirectory of the project root is one project. Images that
fail to hash are dropped with a warning; a project directory that cannot be
listed is skipped. Neither stops the scan.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable

from vismatch.cache.hash_cache import HashCache
from vismatch.core.errors import ProjectRootError, VismatchError
from vismatch.core.models import HashKind, ImageHashEntry
from vismatch.index.registry import ProjectRegistry

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_EXTENSIONS: tuple[str, ...] = (
    "png", "jpg", "jpeg", "gif", "bmp", "ico", "webp", "tiff",
)


def is_image_file(path: Path, extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS) -> bool:
    """True for regular files whose extension is in the allow-list (case-insensitive)."""
    if not path.is_file():
        return False
    return path.suffix.lower().lstrip(".") in {e.lower().lstrip(".") for e in extensions}


def bootstrap_project_root(project_root: Path) -> Path:
    """Create the project root if missing.

    Raises:
        ProjectRootError: If the path exists but is not a directory.
    """
    project_root = Path(project_root)
    if not project_root.exists():
        project_root.mkdir(parents=True)
        logger.info("Created project root folder %s", project_root)
    elif not project_root.is_dir():
        raise ProjectRootError(f"project root {project_root} is not a directory")
    return project_root


def list_project_images(
    project_path: Path, extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS
) -> list[Path]:
    """Image files directly inside a project folder, sorted by name."""
    exts = tuple(extensions)
    return sorted(p for p in project_path.iterdir() if is_image_file(p, exts))


def calc_hash_project(
    project_path: Path,
    kind: HashKind,
    cache: HashCache,
    extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
    force_recompute: bool = False,
) -> list[ImageHashEntry]:
    """Fetch or compute the fingerprint of every image in one project."""
    entries: list[ImageHashEntry] = []
    for image_path in list_project_images(project_path, extensions):
        try:
            entries.append(cache.fetch_or_compute(image_path, kind, force_recompute))
        except VismatchError as e:
            logger.warning("Skipping %s: %s", image_path, e)
    return entries


def load_or_calc_project_hashes(
    project_path: Path,
    kind: HashKind,
    cache: HashCache,
    extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
    force_recompute: bool = False,
) -> list[ImageHashEntry]:
    """Hash one project folder and log how long it took.

    Raises:
        NotADirectoryError: If project_path is not a directory.
    """
    t0 = time.perf_counter()
    if not project_path.is_dir():
        raise NotADirectoryError(f"failed to access project path {project_path}")

    entries = calc_hash_project(project_path, kind, cache, extensions, force_recompute)

    logger.info(
        "Loaded project <%s>: %d entries in %.3fs",
        project_path.name, len(entries), time.perf_counter() - t0,
    )
    return entries


def scan_projects(
    project_root: Path,
    kind: HashKind,
    cache: HashCache,
    extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
    force_recompute: bool = False,
) -> dict[str, list[ImageHashEntry]]:
    """Project name -> entries for every subdirectory of the root."""
    exts = tuple(extensions)
    projects: dict[str, list[ImageHashEntry]] = {}
    for project_path in sorted(p for p in Path(project_root).iterdir() if p.is_dir()):
        try:
            projects[project_path.name] = load_or_calc_project_hashes(
                project_path, kind, cache, exts, force_recompute,
            )
        except OSError as e:
            logger.warning("Skipping project <%s>: %s", project_path.name, e)
    return projects


def build_registry(
    project_root: Path,
    kind: HashKind,
    cache: HashCache,
    extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
) -> ProjectRegistry:
    """Scan the project root and seed a new registry with the results."""
    t0 = time.perf_counter()
    projects = scan_projects(project_root, kind, cache, extensions)
    logger.info(
        "Initialization scan: %d projects, %d entries in %.3fs",
        len(projects),
        sum(len(v) for v in projects.values()),
        time.perf_counter() - t0,
    )
    return ProjectRegistry(projects)
