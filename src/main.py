# src/main.py — v1
"""CLI entry point: serve, index, query commands.

Usage:
    vismatch serve [--host HOST] [--port PORT] [--root DIR]
    vismatch index [--root DIR] [--kind KIND] [--force]
    vismatch query <project> <image> [--root DIR] [--top-k K]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from vismatch.config.settings import ConfigurationError, Settings, load_settings
from vismatch.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
    except (ConfigurationError, ValidationError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="vismatch",
        description=f"vismatch v{__version__} - perceptual-hash image similarity service",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Run the HTTP service")
    p_serve.add_argument("--host", default=None, help="Bind address (default: HTTP_HOST)")
    p_serve.add_argument("--port", type=int, default=None, help="Bind port (default: HTTP_PORT)")
    _add_root_argument(p_serve)
    p_serve.set_defaults(func=_cmd_serve)

    # --- index ---
    p_index = subparsers.add_parser(
        "index", help="Build or refresh the hash caches of every project",
    )
    _add_root_argument(p_index)
    p_index.add_argument(
        "--kind", choices=["phash", "dhash", "ahash"], default=None,
        help="Hash algorithm (default: HASH_KIND)",
    )
    p_index.add_argument(
        "--force", action="store_true",
        help="Recompute hashes even when a cache file exists",
    )
    p_index.set_defaults(func=_cmd_index)

    # --- query ---
    p_query = subparsers.add_parser(
        "query", help="Rank a project's images against a local image",
    )
    p_query.add_argument("project", help="Project name")
    p_query.add_argument("image", type=Path, help="Path to the query image")
    _add_root_argument(p_query)
    p_query.add_argument(
        "-k", "--top-k", type=int, default=None,
        help="Number of results (default: TOP_K)",
    )
    p_query.set_defaults(func=_cmd_query)

    return parser


def _add_root_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root", type=Path, default=None,
        help="Project root directory (default: PROJECT_ROOT)",
    )


def _load_settings(args: argparse.Namespace) -> Settings:
    """Settings from .env, overridden by explicit CLI flags."""
    overrides: dict[str, object] = {}
    for flag, field in (
        ("root", "project_root"),
        ("host", "http_host"),
        ("port", "http_port"),
        ("kind", "hash_kind"),
        ("top_k", "top_k"),
    ):
        value = getattr(args, flag, None)
        if value is not None:
            overrides[field] = value
    return load_settings(**overrides)


async def _cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    """Run the HTTP service until interrupted."""
    import uvicorn

    from vismatch.api.app import create_app

    config = uvicorn.Config(
        create_app(settings),
        host=settings.http_host,
        port=settings.http_port,
        log_config=None,
    )
    logger.info("Image comparison service listening on %s:%d", settings.http_host, settings.http_port)
    await uvicorn.Server(config).serve()
    return 0


async def _cmd_index(args: argparse.Namespace, settings: Settings) -> int:
    """Scan the project root, filling or refreshing sidecar caches."""
    from vismatch.cache.hash_cache import HashCache
    from vismatch.core.models import HashKind
    from vismatch.hashing.hasher_factory import create_hashers
    from vismatch.index.scanner import bootstrap_project_root, scan_projects

    root = bootstrap_project_root(settings.project_root)
    cache = HashCache(create_hashers(settings))
    projects = await asyncio.to_thread(
        scan_projects,
        root,
        HashKind(settings.hash_kind),
        cache,
        settings.image_extensions_list,
        args.force,
    )

    print(f"\nIndexed {root} ({settings.hash_kind}):")
    if not projects:
        print("  (no projects)")
    for name, entries in projects.items():
        print(f"  {name:<30} {len(entries):>6} images")
    return 0


async def _cmd_query(args: argparse.Namespace, settings: Settings) -> int:
    """Rank one project against a local image file."""
    from PIL import Image

    from vismatch.service.image_service import ImageService

    image_path: Path = args.image
    if not image_path.is_file():
        logger.error("File not found: %s", image_path)
        return 1

    with Image.open(image_path) as img:
        img.load()
        image = img.copy()

    service = ImageService(settings)
    try:
        await service.start()
        results = await service.compare_image(args.project, image)
    finally:
        service.close()

    print(f"\nClosest images in <{args.project}>:")
    for rank, entry in enumerate(results, start=1):
        print(f"  {rank:>3}. {Path(entry.image_name).name:<40} {entry.distance:g}")
    return 0


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from vismatch.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("PIL").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
