"""
Configuration loader for Image Vault.

Loads <data home>/config.json, fills in defaults for anything missing and
applies environment overrides. The storage engine never reads configuration
itself; entry points build a CollectionRegistry from the values returned here.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .paths import get_config_path, get_default_collections_dir
from .thumbnails import DEFAULT_JPEG_QUALITY, DEFAULT_MAX_DIMENSION

logger = logging.getLogger(__name__)

# Environment variable -> (section, key, type)
ENV_OVERRIDES = {
    'COLLECTIONS_DIRECTORY': ('paths', 'collections_dir', str),
    'THUMBNAIL_MAX_DIMENSION': ('thumbnails', 'max_dimension', int),
    'THUMBNAIL_QUALITY': ('thumbnails', 'quality', int),
}


def get_default_config() -> Dict[str, Dict[str, Any]]:
    """
    Return default configuration.
    """
    return {
        "paths": {
            "collections_dir": str(get_default_collections_dir()),
        },
        "thumbnails": {
            "max_dimension": DEFAULT_MAX_DIMENSION,
            "quality": DEFAULT_JPEG_QUALITY,
        },
    }


def load_config(config_path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """
    Load configuration from config.json, falling back to defaults when the
    file doesn't exist.
    """
    config_path = Path(config_path) if config_path else get_config_path()

    if config_path.is_file():
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
        logger.debug(f"Loaded config from: {config_path}")
    else:
        logger.debug(f"No config file at {config_path}, using defaults")
        config = {}

    return _process_config(config)


def _process_config(config: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Merge with defaults and expand paths.
    """
    merged = get_default_config()
    for section, values in config.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = copy.deepcopy(values)

    for key, path in merged["paths"].items():
        if path and isinstance(path, str):
            # Expand ~ and environment variables
            merged["paths"][key] = os.path.expanduser(os.path.expandvars(path))

    return merged


def get_env_overrides(environ: Optional[Dict[str, str]] = None) -> Dict[str, Dict[str, Any]]:
    """
    Get configuration overrides from environment variables.

    Raises:
        ValueError: If a numeric override is not a number
    """
    environ = os.environ if environ is None else environ
    overrides: Dict[str, Dict[str, Any]] = {}

    for env_var, (section, key, cast) in ENV_OVERRIDES.items():
        value = environ.get(env_var)
        if value is None:
            continue
        try:
            converted = cast(value)
        except ValueError as e:
            raise ValueError(f"Invalid value for {env_var}: {value!r}") from e
        if cast is str:
            converted = os.path.expanduser(converted)
        overrides.setdefault(section, {})[key] = converted
        logger.debug(f"Environment override: {env_var} -> {section}.{key} = {converted}")

    return overrides


def get_config(
    config_path: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None
) -> Dict[str, Dict[str, Any]]:
    """
    Load config and apply environment overrides.
    """
    config = load_config(config_path)

    for section, values in get_env_overrides(environ).items():
        config.setdefault(section, {}).update(values)

    return config
