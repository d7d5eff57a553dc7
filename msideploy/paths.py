"""Path helpers for msideploy."""

import os
import tempfile
from pathlib import Path

MANIFEST_FILENAME = "package.manifest"
DEFAULT_ROOT = r"C:\Deploy\Package"


def get_config_dir() -> Path:
    """Return XDG-compliant config directory: ~/.config/msideploy"""
    return Path.home() / ".config" / "msideploy"


def get_config_path() -> Path:
    """Return path to the settings file.

    Priority:
    1. MSIDEPLOY_CONFIG environment variable (if set)
    2. ~/.config/msideploy/settings.yaml (default XDG location)
    """
    if "MSIDEPLOY_CONFIG" in os.environ:
        return Path(os.environ["MSIDEPLOY_CONFIG"])
    return get_config_dir() / "settings.yaml"


def get_default_root() -> Path:
    """Return the package root used when neither settings nor CLI name one."""
    return Path(os.environ.get("MSIDEPLOY_ROOT", DEFAULT_ROOT))


def get_default_log_dir() -> Path:
    return Path(tempfile.gettempdir())


def get_manifest_path(root: Path | str) -> Path:
    return Path(root) / MANIFEST_FILENAME
