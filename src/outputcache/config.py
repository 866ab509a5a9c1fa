"""Settings loading with path precedence and a process-wide holder.

This module supplies the named-profile table consumed by
:class:`~outputcache.interceptor.OutputCache`:

* **Loading** -- :func:`load_settings` reads a JSON or YAML file into a
  frozen :class:`~outputcache.models.OutputCacheSettings`.
* **Precedence resolution** -- :func:`resolve_settings_path` picks the file
  from an explicit argument, the ``OUTPUTCACHE_CONFIG`` environment
  variable, or a project-local ``outputcache.json`` / ``outputcache.yaml``.
* **Process-wide holder** -- :func:`get_settings`, :func:`set_settings` and
  :func:`reset_settings` keep the loaded settings for the process lifetime
  so profiles are parsed once and never re-read per request.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from outputcache.exceptions import ConfigError, ConfigurationMissing
from outputcache.models import OutputCacheSettings

logger = logging.getLogger(__name__)

_ENV_CONFIG = "OUTPUTCACHE_CONFIG"
_ENV_DEBUG = "OUTPUTCACHE_DEBUG"
_PROJECT_CONFIG_FILENAMES = ("outputcache.json", "outputcache.yaml", "outputcache.yml")
_TRUTHY = {"1", "true", "yes", "on"}

_settings: Optional[OutputCacheSettings] = None


# --- Path resolution ---


def resolve_settings_path(path: str | Path | None = None) -> Optional[Path]:
    """Resolve which settings file to load.

    Precedence (high to low):
        1. The explicit *path* argument
        2. The ``OUTPUTCACHE_CONFIG`` environment variable
        3. ``./outputcache.json``, ``./outputcache.yaml``, ``./outputcache.yml``

    Returns:
        The path to load, or ``None`` if no source was found.

    Raises:
        ConfigurationMissing: If an explicit or environment-supplied path
            does not exist.
    """
    explicit = path if path is not None else os.environ.get(_ENV_CONFIG) or None
    if explicit is not None:
        candidate = Path(explicit).expanduser()
        if not candidate.is_file():
            raise ConfigurationMissing(f"Settings file not found: {candidate}")
        return candidate

    for name in _PROJECT_CONFIG_FILENAMES:
        candidate = Path.cwd() / name
        if candidate.is_file():
            return candidate
    return None


# --- Parsing ---


def _parse_content(content: str, hint: str) -> dict[str, Any]:
    """Parse settings text as JSON or YAML based on the file extension.

    Files without a recognised extension are tried as JSON first, then YAML.
    """
    suffix = Path(hint).suffix.lower()
    try:
        if suffix == ".json":
            data = json.loads(content)
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        else:
            try:
                data = json.loads(content)
            except json.JSONDecodeError:
                data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid settings file {hint}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {hint} must contain a mapping at the top level")
    return data


def _debug_override() -> Optional[bool]:
    value = os.environ.get(_ENV_DEBUG)
    if value is None or value == "":
        return None
    return value.strip().lower() in _TRUTHY


def settings_from_dict(data: dict[str, Any]) -> OutputCacheSettings:
    """Validate a raw mapping into :class:`OutputCacheSettings`.

    Raises:
        ConfigError: If validation fails.
    """
    try:
        return OutputCacheSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid outputcache settings: {exc}") from exc


def load_settings(path: str | Path | None = None) -> OutputCacheSettings:
    """Load settings from the resolved settings file.

    When no file is found the defaults are returned, with the profile table
    absent (``profiles is None``). ``OUTPUTCACHE_DEBUG`` overrides the
    file's ``debug`` flag.

    Raises:
        ConfigurationMissing: If an explicitly named file does not exist.
        ConfigError: If the file cannot be read, parsed, or validated.
    """
    source = resolve_settings_path(path)
    data: dict[str, Any] = {}
    if source is not None:
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read settings file {source}: {exc}") from exc
        data = _parse_content(text, str(source))
        logger.debug("Loaded outputcache settings from %s", source)

    debug = _debug_override()
    if debug is not None:
        data = {**data, "debug": debug}
    return settings_from_dict(data)


# --- Process-wide holder ---


def get_settings() -> OutputCacheSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def set_settings(settings: OutputCacheSettings) -> None:
    """Install *settings* as the process-wide settings."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Forget the process-wide settings so the next :func:`get_settings` reloads them."""
    global _settings
    _settings = None
