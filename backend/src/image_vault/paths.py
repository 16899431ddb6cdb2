"""
Canonical path resolution for Image Vault.

Single source of truth for where config and collection data live.

All user-writable state goes under ~/.image-vault/ (overridable via
$IMAGE_VAULT_DATA_HOME). Library code never calls into this module; only
entry points resolve paths here and pass them on explicitly.
"""

from __future__ import annotations

import os
from pathlib import Path


def get_data_home() -> Path:
    """Return the base directory for all Image Vault user data.

    Default: ~/.image-vault/
    Override: $IMAGE_VAULT_DATA_HOME
    """
    env = os.environ.get("IMAGE_VAULT_DATA_HOME")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".image-vault"


def get_config_path() -> Path:
    """Return the path to config.json (may not exist yet)."""
    return get_data_home() / "config.json"


def get_default_collections_dir() -> Path:
    """Return the default collections root directory."""
    return get_data_home() / "collections"


def ensure_data_home() -> Path:
    """Create the data home directory structure if it doesn't exist.

    Returns the data home path.
    """
    data_home = get_data_home()
    data_home.mkdir(parents=True, exist_ok=True)
    get_default_collections_dir().mkdir(parents=True, exist_ok=True)
    return data_home
