# src/logging/context.py — v1
"""Contextual logging support: attach project, request_id and operation to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per request.
_project: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "project", default=None
)
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    project: str | None = None
    request_id: str | None = None
    operation: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        project=_project.get(),
        request_id=_request_id.get(),
        operation=_operation.get(),
    )


def set_request_context(request_id: str, project: str | None = None) -> None:
    """Set request-level context (called once per handled request)."""
    _request_id.set(request_id)
    _project.set(project)


def set_operation_context(operation: str, project: str | None = None) -> None:
    """Set operation-level context (upload, compare, scan)."""
    _operation.set(operation)
    if project is not None:
        _project.set(project)


def clear_context() -> None:
    """Reset all context variables."""
    _project.set(None)
    _request_id.set(None)
    _operation.set(None)
