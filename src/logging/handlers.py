# src/logging/handlers.py — v1
"""Size-rotated log file output."""

from __future__ import annotations

import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

_UNITS = {"": 1, "K": 1024, "M": 1024**2, "G": 1024**3}
_SIZE_RE = re.compile(r"(\d+)\s*([KMG]?)(?:I?B)?", re.IGNORECASE)


def parse_size(text: str) -> int:
    """Byte count for a size such as ``"10MB"``, ``"512k"``, ``"2GiB"`` or ``"4096"``.

    Units are binary: 1 KB is 1024 bytes.
    """
    match = _SIZE_RE.fullmatch(text.strip())
    if match is None:
        raise ValueError(f"Invalid size {text!r}: expected a byte count like '10MB'")
    count, unit = match.groups()
    return int(count) * _UNITS[unit.upper()]


def create_rotating_handler(
    log_file: str | Path,
    max_size: str = "10MB",
    backups: int = 5,
) -> RotatingFileHandler:
    """File handler that rolls over once the file reaches ``max_size``.

    ``backups`` is RotatingFileHandler.backupCount: how many rolled files
    (``vismatch.log.1`` ... ``vismatch.log.N``) are kept beside the live one.
    With 0 the file is never rolled over.
    """
    if backups < 0:
        raise ValueError("backups must be >= 0")
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path, maxBytes=parse_size(max_size), backupCount=backups, encoding="utf-8",
    )
