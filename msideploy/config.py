"""Settings loading and validation."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .paths import get_config_path, get_default_log_dir, get_default_root

_logging = logging.getLogger(__name__)

DEFAULT_MSIEXEC = "msiexec.exe"
DEFAULT_LEGACY_SETUP_ARGS = ["/quiet", "/norestart", "/AcceptEULA"]


class PrereqAccessPolicy(Enum):
    """What to do with a prerequisite whose check key cannot be read."""

    SKIP = "skip"
    INSTALL = "install"


@dataclass
class Settings:
    """Effective settings for one msideploy run."""

    root: Path = field(default_factory=get_default_root)
    msiexec: str = DEFAULT_MSIEXEC
    log_dir: Path = field(default_factory=get_default_log_dir)
    legacy_setup_args: list[str] = field(
        default_factory=lambda: list(DEFAULT_LEGACY_SETUP_ARGS)
    )
    prereq_access_policy: PrereqAccessPolicy = PrereqAccessPolicy.SKIP
    registry_view: int = 64
    timeout: int | None = None

    def __post_init__(self):
        if not self.msiexec or not isinstance(self.msiexec, str):
            raise ValueError("msiexec must be a non-empty string")
        if self.registry_view not in (32, 64):
            raise ValueError("registry_view must be 32 or 64")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be a positive number of seconds")

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": str(self.root),
            "msiexec": self.msiexec,
            "log_dir": str(self.log_dir),
            "legacy_setup_args": list(self.legacy_setup_args),
            "prereq_access_policy": self.prereq_access_policy.value,
            "registry_view": self.registry_view,
            "timeout": self.timeout,
        }


_STRING_FIELDS = ("root", "msiexec", "log_dir")


def validate_settings(data: Any) -> Settings:
    """Validate and convert a raw YAML mapping to Settings.

    Raises:
        ConfigError: If validation fails, naming the offending field
    """
    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(
            f"Settings must be a mapping, got {type(data).__name__}"
        )

    known = set(Settings.__dataclass_fields__)
    unknown = sorted(str(k) for k in data if k not in known)
    if unknown:
        raise ConfigError(f"Unknown settings field(s): {', '.join(unknown)}")

    kwargs: dict[str, Any] = {}

    for field_name in _STRING_FIELDS:
        if field_name in data:
            value = data[field_name]
            if not isinstance(value, str) or not value:
                raise ConfigError(f"{field_name} must be a non-empty string")
            kwargs[field_name] = Path(value) if field_name != "msiexec" else value

    if "legacy_setup_args" in data:
        args = data["legacy_setup_args"]
        if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
            raise ConfigError("legacy_setup_args must be a list of strings")
        kwargs["legacy_setup_args"] = list(args)

    if "prereq_access_policy" in data:
        raw = data["prereq_access_policy"]
        try:
            kwargs["prereq_access_policy"] = PrereqAccessPolicy(raw)
        except ValueError:
            choices = ", ".join(p.value for p in PrereqAccessPolicy)
            raise ConfigError(
                f"prereq_access_policy must be one of: {choices} (got {raw!r})"
            )

    if "registry_view" in data:
        view = data["registry_view"]
        if isinstance(view, bool) or not isinstance(view, int):
            raise ConfigError("registry_view must be an integer")
        kwargs["registry_view"] = view

    if "timeout" in data:
        timeout = data["timeout"]
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, int)):
            raise ConfigError("timeout must be an integer or null")
        kwargs["timeout"] = timeout

    try:
        return Settings(**kwargs)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a YAML file.

    When no path is given the default location is used; a missing default
    file yields built-in defaults. An explicitly named file must exist.

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML, or fails
            validation
    """
    explicit = path is not None
    settings_path = path if path is not None else get_config_path()

    if not settings_path.exists():
        if explicit:
            raise ConfigError(f"Settings file not found: {settings_path}")
        _logging.debug(f"No settings file at {settings_path}, using defaults")
        return Settings()

    try:
        text = settings_path.read_text(encoding="utf-8")
    except PermissionError:
        raise ConfigError(f"Permission denied reading settings file: {settings_path}")
    except UnicodeDecodeError:
        raise ConfigError(f"Settings file is not valid UTF-8: {settings_path}")
    except OSError as e:
        raise ConfigError(f"Error reading settings file {settings_path}: {e}")

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Settings syntax error in {settings_path}: {e}") from e

    _logging.debug(f"Loaded settings from {settings_path}")
    return validate_settings(data)


DEFAULT_SETTINGS_TEMPLATE = """\
# msideploy settings
#
# Directory holding package.manifest and the installer artifacts.
# root: 'C:\\Deploy\\Package'

# Installer executable used for MSI packages and preamble uninstalls.
msiexec: msiexec.exe

# Where installer log files are written (defaults to the system temp dir).
# log_dir: 'C:\\Windows\\Temp'

# Arguments passed to legacy setup.exe installers.
legacy_setup_args:
  - /quiet
  - /norestart
  - /AcceptEULA

# What to do when a prerequisite's check key cannot be read: skip | install
prereq_access_policy: skip

# Registry view used for HKLM lookups: 64 | 32
registry_view: 64

# Seconds to wait for an installer before killing it (null waits forever).
timeout: null
"""


__all__ = [
    "PrereqAccessPolicy",
    "Settings",
    "validate_settings",
    "load_settings",
    "DEFAULT_SETTINGS_TEMPLATE",
]
