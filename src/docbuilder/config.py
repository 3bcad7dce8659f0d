"""Application configuration.

Configuration is loaded from environment variables. For local development, you can provide a
`.env` file and set `DOCBUILDER_ENV_FILE` to point to it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Document builder settings.

    All fields are environment-configurable. Prefix is `DOCBUILDER_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCBUILDER_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    app_env: Literal["dev", "prod"] = Field(default="dev")
    log_level: str = Field(default="INFO")

    # Auto-save and highlight timing (milliseconds)
    debounce_ms: int = Field(default=1000, ge=0, le=60_000)
    saved_display_ms: int = Field(default=3000, ge=0, le=60_000)
    highlight_duration_ms: int = Field(default=2000, ge=0, le=60_000)
    # Gates debounce-triggered saves only; manual saves always run
    autosave_enabled: bool = Field(default=True)

    # Storage
    store_backend: Literal["file", "redis"] = Field(default="file")
    documents_dir: Path = Field(default=Path("documents"))

    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_key_prefix: str = Field(default="docbuilder")

    # Session event recording
    record_events: bool = Field(default=False)
    artifacts_dir: Path = Field(default=Path("artifacts"))


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.
    """

    env_file_override = os.getenv("DOCBUILDER_ENV_FILE")
    if env_file_override:
        env_path = Path(env_file_override)
        return Settings(_env_file=env_path)

    default_env = Path.cwd() / ".env"
    if default_env.exists():
        return Settings(_env_file=default_env)

    return Settings()
