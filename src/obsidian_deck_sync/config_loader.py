"""Config loader utilities."""

from __future__ import annotations

import contextlib
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config_settings import Config
from .error_codes import ErrorCode
from .exceptions import ConfigurationError
from .utils.logging import get_logger

CONFIG_ENV_VAR = "OBSIDIAN_DECK_SYNC_CONFIG"

_config: Config | None = None


def _candidate_paths(config_path: Path | None) -> list[Path]:
    if config_path:
        return [config_path.expanduser()]

    candidates: list[Path] = []
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser())
    candidates.append(Path.cwd() / "config.yaml")
    return candidates


@contextlib.contextmanager
def _yaml_as_env(yaml_data: dict[str, Any]) -> Iterator[None]:
    """Temporarily expose scalar YAML values as environment variables.

    Real environment variables are overwritten for the duration so that the
    file wins over the environment, then restored.
    """
    original_env: dict[str, str | None] = {}
    try:
        for key, value in yaml_data.items():
            if value is None or isinstance(value, (list, dict)):
                continue
            env_key = key.upper()
            original_env[env_key] = os.environ.get(env_key)
            os.environ[env_key] = str(value)
        yield
    finally:
        for key, original in original_env.items():
            if original is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = original


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from config.yaml and the environment (.env supported).

    Search order: explicit path, ``$OBSIDIAN_DECK_SYNC_CONFIG``, ``./config.yaml``.

    Raises:
        ConfigurationError: If the file cannot be parsed or values are invalid
    """
    logger = get_logger(__name__)

    candidates = _candidate_paths(config_path)
    resolved_config_path = next((p for p in candidates if p.exists()), None)

    if resolved_config_path is None:
        if config_path:
            raise ConfigurationError(
                f"Config file not found: {config_path}",
                suggestion="Pass an existing file with --config",
                error_code=ErrorCode.CFG_PATH_INVALID.value,
            )
        logger.warning(
            "config_file_not_found", searched_paths=[str(p) for p in candidates]
        )
    else:
        logger.debug("config_file_found", config_path=str(resolved_config_path))

    yaml_data: dict[str, Any] = {}
    if resolved_config_path:
        try:
            with open(resolved_config_path, encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(
                "config_yaml_load_error",
                config_path=str(resolved_config_path),
                error=str(e),
                error_type=type(e).__name__,
            )
            msg = f"Failed to parse config file: {resolved_config_path}"
            suggestion = (
                "Check YAML syntax (indentation, colons, quotes). "
                f"Original error: {e}"
            )
            raise ConfigurationError(
                msg, suggestion=suggestion, error_code=ErrorCode.CFG_INVALID.value
            ) from e

        if not isinstance(yaml_data, dict):
            raise ConfigurationError(
                f"Config file must contain a mapping: {resolved_config_path}",
                error_code=ErrorCode.CFG_INVALID.value,
            )

    config_kwargs: dict[str, Any] = {
        key: value
        for key, value in yaml_data.items()
        if isinstance(value, (list, dict))
    }

    with _yaml_as_env(yaml_data):
        try:
            config = Config(**config_kwargs)
        except ValidationError as e:
            logger.error(
                "config_validation_error",
                error=str(e),
                config_path=str(resolved_config_path) if resolved_config_path else None,
            )
            raise ConfigurationError(
                "Invalid configuration",
                suggestion=str(e),
                error_code=ErrorCode.CFG_INVALID.value,
            ) from e

    config.validate_config()
    logger.debug("config_loaded", vault_path=str(config.vault_path))
    return config


def get_config() -> Config:
    """Get singleton config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Config) -> None:
    """Set singleton config instance (for testing)."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset global config instance (for testing only)."""
    global _config
    _config = None


__all__ = ["Config", "get_config", "load_config", "reset_config", "set_config"]
