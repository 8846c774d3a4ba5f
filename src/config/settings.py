# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vismatch.logging.handlers import parse_size


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Projects ===
    project_root: Path = Path("./image_root")
    image_extensions: str = "png,jpg,jpeg,gif,bmp,ico,webp,tiff"

    # === Hashing ===
    hash_kind: Literal["phash", "dhash", "ahash"] = "phash"
    hash_size: int = 32
    force_recompute_on_upload: bool = True

    # === Compute ===
    worker_threads: int = 4
    top_k: int = 3

    # === HTTP ===
    http_host: str = "127.0.0.1"
    http_port: int = 3000

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"  # roll the log file over at this size
    log_retention: int = 5  # rolled files kept beside the live one, not days

    # --- Validators ---

    @field_validator("hash_size")
    @classmethod
    def validate_hash_size(cls, v: int) -> int:  # noqa: N805
        """A fingerprint grid needs at least 2x2 bits."""
        if v < 2:
            raise ValueError("hash_size must be >= 2")
        return v

    @field_validator("worker_threads", "top_k")
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("value must be >= 1")
        return v

    @field_validator("log_rotation")
    @classmethod
    def validate_log_rotation(cls, v: str) -> str:  # noqa: N805
        parse_size(v)
        return v

    @field_validator("log_retention")
    @classmethod
    def validate_log_retention(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("log_retention must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if not self.image_extensions_list:
            errors.append("IMAGE_EXTENSIONS must list at least one extension")

        if not 0 < self.http_port < 65536:
            errors.append("HTTP_PORT must be in 1..65535")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def image_extensions_list(self) -> list[str]:
        """Parse comma-separated extensions (lower-case, no leading dot)."""
        return [
            e.strip().lower().lstrip(".")
            for e in self.image_extensions.split(",")
            if e.strip().lstrip(".")
        ]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
