# src/service/__init__.py — v1
"""Service layer: orchestration of uploads and comparisons."""
