"""Application configuration using Pydantic Settings.

Tool settings are loaded with the DEPCACHE_ prefix. Values provided by
the CI runner itself (RUNNER_OS, GITHUB_STATE, ...) are read under their
runner names via validation aliases.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from depcache.core.constants import CACHE_KEY_PREFIX


class Settings(BaseSettings):
    """Settings loaded from environment variables and an optional .env file."""

    # Service configuration
    service_name: str = "depcache"
    environment: str = Field(default="development", description="Runtime environment")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["auto", "console", "json", "github"] = Field(
        default="auto",
        description="Log renderer; auto picks github inside Actions",
    )

    # Cache keying
    key_prefix: str = Field(
        default=CACHE_KEY_PREFIX,
        min_length=1,
        description="Leading segment of every cache key",
    )
    runner_os: str | None = Field(
        default=None,
        validation_alias=AliasChoices("RUNNER_OS", "DEPCACHE_RUNNER_OS"),
        description="Runner OS name (Linux, macOS, Windows)",
    )

    # GitHub Actions runner integration
    github_actions: bool = Field(
        default=False,
        validation_alias=AliasChoices("GITHUB_ACTIONS", "DEPCACHE_GITHUB_ACTIONS"),
    )
    github_state: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("GITHUB_STATE", "DEPCACHE_GITHUB_STATE"),
        description="File command path used to persist state for the post step",
    )
    github_output: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("GITHUB_OUTPUT", "DEPCACHE_GITHUB_OUTPUT"),
        description="File command path used to publish step outputs",
    )
    github_workspace: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("GITHUB_WORKSPACE", "DEPCACHE_GITHUB_WORKSPACE"),
        description="Root that dependency files must live under",
    )

    # Local adapters (used outside GitHub Actions)
    state_file: Path = Field(
        default=Path(".depcache/state.json"),
        description="JSON file holding state between restore and save",
    )
    output_file: Path = Field(
        default=Path(".depcache/outputs.json"),
        description="JSON file holding step outputs",
    )
    store_dir: Path = Field(
        default=Path.home() / ".cache" / "depcache",
        description="Root directory of the local artifact store",
    )
    archive_compression: Literal["gz", "xz", "none"] = Field(
        default="gz",
        description="Compression applied to local cache archives",
    )

    model_config = SettingsConfigDict(
        env_prefix="DEPCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def effective_log_format(self) -> str:
        """Resolve the auto log format against the runtime environment."""
        if self.log_format != "auto":
            return self.log_format
        if self.github_actions:
            return "github"
        if self.environment in ("production", "staging"):
            return "json"
        return "console"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton
    """
    return Settings()
