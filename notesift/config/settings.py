"""Runtime configuration, read from ``NOTESIFT_*`` variables and ``.env``."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from threading import RLock
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Vault location, search defaults and logging options."""

    model_config = SettingsConfigDict(
        env_prefix="NOTESIFT_",
        env_file=[".env"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Vault
    vault_path: Path = Path("./vault")
    exclude_folders: list[str] = Field(default_factory=lambda: [".obsidian", ".trash"])
    body_cache_size: int = 512

    # Search defaults
    default_mode: Literal["simple", "fuzzy", "regex", "exact"] = "simple"
    default_sort: Literal["mtime-desc", "mtime-asc", "path-asc"] = "mtime-desc"
    default_limit: int | None = None
    excerpt_limit_per_file: int = 10  # excerpts kept per accepted note
    excerpt_max_line_length: int = 240

    # Logging
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    environment: str = "personal"

    @field_validator("excerpt_limit_per_file", "excerpt_max_line_length", "body_cache_size")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("default_limit")
    @classmethod
    def _no_cap_when_non_positive(cls, value: int | None) -> int | None:
        return value if value is None or value > 0 else None

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev")

    @property
    def is_testing(self) -> bool:
        return self.environment.lower() in ("testing", "test")


_lock = RLock()
_loaded: Settings | None = None


def get_settings(*, refresh: bool = False) -> Settings:
    """Return the process-wide settings, loading them on first use.

    ``refresh=True`` re-reads the environment and ``.env``.
    """
    global _loaded

    with _lock:
        if _loaded is None or refresh:
            _loaded = Settings()
        return _loaded


def clear_settings_cache() -> None:
    """Forget loaded settings; the next ``get_settings`` call reloads them."""
    global _loaded

    with _lock:
        _loaded = None


@contextmanager
def override_settings(**overrides: Any) -> Iterator[Settings]:
    """Serve a patched copy of the current settings inside the block."""
    global _loaded

    with _lock:
        saved = _loaded
        patched = (saved or Settings()).model_copy(update=overrides)
        _loaded = patched

    try:
        yield patched
    finally:
        with _lock:
            _loaded = saved
