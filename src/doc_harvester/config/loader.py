"""
Configuration loader with YAML file support and environment variable overrides.

Sources, lowest priority first:
1. Default values (defined in settings.py)
2. YAML configuration file
3. Environment variables

Environment variables use the pattern: DOC_HARVESTER__{SECTION}__{KEY}
Example: DOC_HARVESTER__TIMING__NAVIGATION_POLL_ATTEMPTS=20
Nested sections take extra segments:
DOC_HARVESTER__SCRAPER__DEFAULTS__INCLUDE_LINKS=false
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from doc_harvester.config.settings import Settings
from doc_harvester.core.exceptions import ConfigurationError

ENV_PREFIX = "DOC_HARVESTER"

_settings_instance: Settings | None = None


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries, with override taking precedence.

    Args:
        base: Base dictionary to merge into
        override: Dictionary with values to override

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _parse_env_value(value: str) -> Any:
    """
    Parse an environment variable string into a Python value.

    Numbers stay numbers ("0" is an int, not False) so that timing
    overrides such as a zero delay survive validation.
    """
    lowered = value.strip().lower()

    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    if lowered in ("none", "null", ""):
        return None

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def _load_env_overrides(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """
    Collect overrides from {PREFIX}__{SECTION}__{KEY} environment variables.

    Args:
        prefix: Environment variable prefix to look for

    Returns:
        Nested dictionary of overrides
    """
    overrides: dict[str, Any] = {}
    prefix_with_sep = f"{prefix}__"

    for key, value in os.environ.items():
        if not key.startswith(prefix_with_sep):
            continue

        key_path = key[len(prefix_with_sep):].lower().split("__")
        if len(key_path) < 2:
            continue

        current = overrides
        for part in key_path[:-1]:
            current = current.setdefault(part, {})
        current[key_path[-1]] = _parse_env_value(value)

    return overrides


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Raises:
        ConfigurationError: If the file is missing, unparsable, or not a mapping
    """
    if not path.exists():
        raise ConfigurationError(
            "Configuration file not found", {"path": str(path)})

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in configuration file: {e}", {"path": str(path)}
        ) from e

    if content is None:
        return {}

    if not isinstance(content, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping",
            {"path": str(path), "type": type(content).__name__},
        )

    return content


def load_config(
    config_path: Path | str | None = None,
    env_prefix: str = ENV_PREFIX,
) -> Settings:
    """
    Load configuration from a YAML file with environment variable overrides.

    Args:
        config_path: Path to YAML configuration file. If None, uses defaults only.
        env_prefix: Prefix for environment variables

    Returns:
        Validated Settings instance

    Raises:
        ConfigurationError: If the file cannot be read or values are invalid
    """
    config_data: dict[str, Any] = {}

    if config_path is not None:
        config_data = _deep_merge(config_data, _load_yaml_file(Path(config_path)))

    config_data = _deep_merge(config_data, _load_env_overrides(env_prefix))

    try:
        return Settings(**config_data)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid configuration",
            {"errors": [
                ".".join(str(loc) for loc in err["loc"]) for err in e.errors()
            ]},
        ) from e


def get_settings(
    config_path: Path | str | None = None,
    reload: bool = False,
) -> Settings:
    """
    Get the global Settings instance, loading it on first use.

    Args:
        config_path: YAML file, used only on first load or reload.
            Falls back to get_default_config_path().
        reload: Force a reload

    Returns:
        Global Settings instance
    """
    global _settings_instance

    if _settings_instance is None or reload:
        _settings_instance = load_config(config_path or get_default_config_path())

    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings instance."""
    global _settings_instance
    _settings_instance = None
    get_default_config_path.cache_clear()


@lru_cache(maxsize=1)
def get_default_config_path() -> Path | None:
    """
    Find the default configuration file.

    Looks for doc_harvester.yaml in the working directory, then
    ~/.doc_harvester/config.yaml.
    """
    search_paths = [
        Path.cwd() / "doc_harvester.yaml",
        Path.home() / ".doc_harvester" / "config.yaml",
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None
