"""Settings model for obsidian-deck-sync."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .error_codes import ErrorCode
from .exceptions import ConfigurationError

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "WARN", "ERROR", "CRITICAL"}


class Config(BaseSettings):
    """Service configuration using pydantic-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    # Obsidian vault - empty means not set, caught by validate_config()
    vault_path: Path = Field(default=Path(), description="Path to Obsidian vault")
    ignored_folders: list[str] = Field(
        default_factory=lambda: [".obsidian", ".trash"],
        description="Top-level or nested folder names never scanned",
    )

    # Data storage directory - state and logs live here, not in the vault
    data_dir: Path = Field(
        default=Path(".obsidian-deck-sync"),
        description="Directory for sync state and logs",
    )
    state_file: Path = Field(
        default=Path("fingerprint.json"),
        description="Fingerprint file (relative to data_dir)",
    )

    # Anki settings
    anki_connect_url: str = Field(
        default="http://127.0.0.1:8765", description="AnkiConnect URL"
    )
    anki_api_key: str | None = Field(
        default=None, description="AnkiConnect API key, if it requires one"
    )
    anki_timeout: float = Field(
        default=30.0, gt=0, description="AnkiConnect request timeout in seconds"
    )
    orphans_deck_name: str = Field(
        default="obsidian-orphans",
        min_length=1,
        description="Deck receiving notes no document claims anymore",
    )
    note_model_name: str = Field(default="Basic", min_length=1)
    front_field: str = Field(default="Front", min_length=1)
    back_field: str = Field(default="Back", min_length=1)
    source_tag_prefix: str = Field(
        default="obsidian",
        min_length=1,
        description="Prefix of the tag linking a note to its source document",
    )

    # Notes grammar
    notes_section_delimiter: str = Field(default="#cards\n", min_length=1)
    notes_delimiter: str = Field(default="\n---\n", min_length=1)
    render_markdown: bool = Field(
        default=True, description="Render fields from Markdown to HTML"
    )

    # Logging (relative to data_dir)
    log_level: str = Field(default="INFO", description="Log level")
    log_dir: Path = Field(
        default=Path("logs"), description="Log directory (relative to data_dir)"
    )

    @field_validator("vault_path", mode="before")
    @classmethod
    def parse_vault_path(cls, v: Any) -> Path:
        """Convert string to Path for vault_path."""
        if v is None or v == "":
            return Path()
        if isinstance(v, (str, Path)):
            return Path(v).expanduser()
        msg = f"vault_path must be string or Path, got {type(v).__name__}"
        raise ValueError(msg)

    @field_validator("data_dir", "state_file", "log_dir", mode="before")
    @classmethod
    def parse_path(cls, v: Any) -> Path:
        """Convert string to Path."""
        if isinstance(v, (str, Path)):
            return Path(v).expanduser()
        msg = f"Path field must be string or Path, got {type(v).__name__}"
        raise ValueError(msg)

    @field_validator("ignored_folders", mode="before")
    @classmethod
    def parse_ignored_folders(cls, v: Any) -> list[str]:
        """Accept a comma-separated string as well as a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return [str(item) for item in v]

    @field_validator("anki_connect_url")
    @classmethod
    def validate_anki_connect_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            msg = f"anki_connect_url must be an http(s) URL, got {v!r}"
            raise ValueError(msg)
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            msg = f"log_level must be one of {sorted(_LOG_LEVELS)}, got {v!r}"
            raise ValueError(msg)
        return level

    def validate_config(self) -> Config:
        """Validate values that depend on the file system."""
        if self.vault_path == Path():
            raise ConfigurationError(
                "vault_path is required",
                suggestion="Set VAULT_PATH environment variable or vault_path in config.yaml",
                error_code=ErrorCode.CFG_INVALID.value,
            )

        vault_path = self.vault_path.expanduser()
        if not vault_path.is_dir():
            raise ConfigurationError(
                f"Vault path is not a directory: {vault_path}",
                suggestion="Verify the vault_path in your configuration points to an existing directory",
                error_code=ErrorCode.CFG_PATH_INVALID.value,
                context={"vault_path": str(vault_path)},
            )

        if self.notes_delimiter == self.notes_section_delimiter:
            raise ConfigurationError(
                "notes_delimiter and notes_section_delimiter must differ",
                error_code=ErrorCode.CFG_INVALID.value,
            )

        return self

    def get_data_path(self, relative_path: Path | str | None = None) -> Path:
        """Get absolute path within data_dir."""
        data_dir = self.data_dir
        if not data_dir.is_absolute():
            data_dir = Path.cwd() / data_dir
        data_dir = data_dir.resolve()

        if relative_path is None:
            return data_dir
        return data_dir / relative_path

    def get_state_path(self) -> Path:
        """Get absolute path to the fingerprint file."""
        return self.get_data_path(self.state_file)

    def get_log_dir(self) -> Path:
        """Get absolute path to log directory."""
        return self.get_data_path(self.log_dir)


__all__ = ["Config"]
