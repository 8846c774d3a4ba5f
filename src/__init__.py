# src/__init__.py — v1
"""vismatch: perceptual-hash image similarity service."""

from vismatch.version import __version__

__all__ = ["__version__"]
