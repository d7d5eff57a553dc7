"""Manifest-driven deployment of MSI and legacy setup packages."""

import logging

from .config import PrereqAccessPolicy, Settings, load_settings
from .errors import (
    ConfigError,
    DeployError,
    NotFoundError,
    ParseError,
    RegistryAccessError,
    RegistryKeyNotFoundError,
    UnsupportedPackageTypeError,
    format_error,
    format_suggestion,
)
from .execution import ExitStatus, ProcessResult, run_process, split_command_line
from .installer import (
    Action,
    StepResult,
    install_package,
    install_prereqs,
    install_with_prereqs,
    repair_package,
    uninstall_package,
    uninstall_preambles,
)
from .manifest import Manifest, PackageType, PreambleEntry, PrereqEntry, load_manifest
from .paths import get_config_path, get_default_root, get_manifest_path
from .registry import WindowsRegistry, check_prereq, find_uninstall_entry
from .versions import RegistryVersion, compare_versions

__version__ = "0.3.0"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(debug: bool = False) -> None:
    """Configure root logging; DEBUG with ``debug``, WARNING otherwise."""
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


__all__ = [
    "__version__",
    "setup_logging",
    "Settings",
    "PrereqAccessPolicy",
    "load_settings",
    "DeployError",
    "ConfigError",
    "NotFoundError",
    "ParseError",
    "RegistryAccessError",
    "RegistryKeyNotFoundError",
    "UnsupportedPackageTypeError",
    "format_error",
    "format_suggestion",
    "ExitStatus",
    "ProcessResult",
    "run_process",
    "split_command_line",
    "Action",
    "StepResult",
    "Manifest",
    "PackageType",
    "PreambleEntry",
    "PrereqEntry",
    "load_manifest",
    "get_config_path",
    "get_default_root",
    "get_manifest_path",
    "WindowsRegistry",
    "check_prereq",
    "find_uninstall_entry",
    "RegistryVersion",
    "compare_versions",
    "uninstall_preambles",
    "install_prereqs",
    "install_package",
    "uninstall_package",
    "repair_package",
    "install_with_prereqs",
]
