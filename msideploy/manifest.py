"""Manifest loading and validation.

A package root holds a ``package.manifest`` JSON document next to the
installer artifacts it names:

    {
        "PackageType": "MsiPackage",
        "InstallerFile": "product.msi",
        "ID": "product",
        "Version": "1.2.3",
        "Preambles": [{"PreambleType": "UninstallPackage", "Data": "{GUID}"}],
        "Prereqs": [{
            "CheckKey": "SOFTWARE\\\\Microsoft\\\\NET Framework Setup\\\\NDP\\\\v4\\\\Full",
            "CheckValue": "Release",
            "CheckValueTarget": 528040,
            "Path": "prereqs\\\\ndp48-x86-x64-allos-enu.exe",
            "CommandLine": "/q /norestart"
        }]
    }

The loader is strict: a manifest either loads completely or raises.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import NotFoundError, ParseError, format_field_error
from .paths import get_manifest_path
from .versions import RegistryVersion

_logging = logging.getLogger(__name__)

UNINSTALL_PACKAGE = "UninstallPackage"


class PackageType(Enum):
    MSI = "MsiPackage"
    LEGACY_SETUP = "LegacySetupPackage"


@dataclass(frozen=True)
class PreambleEntry:
    kind: str
    product_identifier: str

    @property
    def is_uninstall(self) -> bool:
        return self.kind == UNINSTALL_PACKAGE

    def to_dict(self) -> dict[str, Any]:
        return {"PreambleType": self.kind, "Data": self.product_identifier}


@dataclass(frozen=True)
class PrereqEntry:
    registry_check_key: str
    check_value_name: str
    required_value: int | str
    installer_path: str
    installer_arguments: str | tuple[str, ...] = ""

    def to_dict(self) -> dict[str, Any]:
        arguments = self.installer_arguments
        return {
            "CheckKey": self.registry_check_key,
            "CheckValue": self.check_value_name,
            "CheckValueTarget": self.required_value,
            "Path": self.installer_path,
            "CommandLine": list(arguments) if isinstance(arguments, tuple) else arguments,
        }


@dataclass(frozen=True)
class Manifest:
    """Deployment descriptor for one package root."""

    package_type: str
    installer_file: str
    id: str
    version: str
    preambles: tuple[PreambleEntry, ...] = field(default_factory=tuple)
    prereqs: tuple[PrereqEntry, ...] = field(default_factory=tuple)

    @property
    def known_package_type(self) -> PackageType | None:
        """Return the PackageType, or None when the raw string is unrecognized."""
        try:
            return PackageType(self.package_type)
        except ValueError:
            return None

    @property
    def log_stem(self) -> str:
        return f"{self.id}-{self.version}"

    def installer_path(self, root: Path | str) -> Path:
        return Path(root) / self.installer_file

    def to_dict(self) -> dict[str, Any]:
        return {
            "PackageType": self.package_type,
            "InstallerFile": self.installer_file,
            "ID": self.id,
            "Version": self.version,
            "Preambles": [p.to_dict() for p in self.preambles],
            "Prereqs": [p.to_dict() for p in self.prereqs],
        }


def _require_str(data: dict, key: str, entity: str) -> str:
    if key not in data:
        raise ParseError(format_field_error(entity, key, "is required"))
    value = data[key]
    if not isinstance(value, str):
        raise ParseError(
            format_field_error(entity, key, f"must be a string, got {type(value).__name__}")
        )
    if not value.strip():
        raise ParseError(format_field_error(entity, key, "must be a non-empty string"))
    return value


def _optional_list(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError(
            format_field_error("Manifest", key, f"must be a list, got {type(value).__name__}")
        )
    return value


def _parse_preamble(index: int, data: Any) -> PreambleEntry:
    entity = f"Preambles[{index}]"
    if not isinstance(data, dict):
        raise ParseError(f"{entity} must be an object, got {type(data).__name__}")
    return PreambleEntry(
        kind=_require_str(data, "PreambleType", entity),
        product_identifier=_require_str(data, "Data", entity),
    )


def _parse_prereq(index: int, data: Any) -> PrereqEntry:
    entity = f"Prereqs[{index}]"
    if not isinstance(data, dict):
        raise ParseError(f"{entity} must be an object, got {type(data).__name__}")

    if "CheckValueTarget" not in data:
        raise ParseError(format_field_error(entity, "CheckValueTarget", "is required"))
    target = data["CheckValueTarget"]
    if isinstance(target, bool) or not isinstance(target, (int, str)):
        raise ParseError(
            format_field_error(entity, "CheckValueTarget", "must be a string or an integer")
        )
    try:
        RegistryVersion(target)
    except ValueError as e:
        raise ParseError(format_field_error(entity, "CheckValueTarget", f"is not a version: {e}"))

    raw_args = data.get("CommandLine", "")
    if raw_args is None:
        arguments: str | tuple[str, ...] = ""
    elif isinstance(raw_args, str):
        arguments = raw_args
    elif isinstance(raw_args, list) and all(isinstance(a, str) for a in raw_args):
        arguments = tuple(raw_args)
    else:
        raise ParseError(
            format_field_error(entity, "CommandLine", "must be a string or a list of strings")
        )

    return PrereqEntry(
        registry_check_key=_require_str(data, "CheckKey", entity),
        check_value_name=_require_str(data, "CheckValue", entity),
        required_value=target,
        installer_path=_require_str(data, "Path", entity),
        installer_arguments=arguments,
    )


def validate_manifest(data: Any) -> Manifest:
    """Validate and convert a decoded JSON document to a Manifest.

    Raises:
        ParseError: If a required field is missing or has the wrong type
    """
    if not isinstance(data, dict):
        raise ParseError(f"Manifest must be a JSON object, got {type(data).__name__}")

    preambles = tuple(
        _parse_preamble(i, p) for i, p in enumerate(_optional_list(data, "Preambles"))
    )
    prereqs = tuple(
        _parse_prereq(i, p) for i, p in enumerate(_optional_list(data, "Prereqs"))
    )

    return Manifest(
        package_type=_require_str(data, "PackageType", "Manifest"),
        installer_file=_require_str(data, "InstallerFile", "Manifest"),
        id=_require_str(data, "ID", "Manifest"),
        version=_require_str(data, "Version", "Manifest"),
        preambles=preambles,
        prereqs=prereqs,
    )


def load_manifest(root: Path | str) -> Manifest:
    """Load ``<root>/package.manifest``.

    Raises:
        NotFoundError: If the manifest file does not exist
        ParseError: If the file is not valid JSON or not a valid manifest
    """
    path = get_manifest_path(root)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        raise NotFoundError(f"Manifest not found: {path}")
    except IsADirectoryError:
        raise NotFoundError(f"Manifest path is a directory: {path}")
    except UnicodeDecodeError:
        raise ParseError(f"Manifest is not valid UTF-8: {path}")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(
            f"Manifest syntax error at line {e.lineno}, col {e.colno}: {e.msg} ({path})"
        ) from e

    manifest = validate_manifest(data)
    _logging.debug(
        f"Loaded manifest {manifest.log_stem} ({manifest.package_type}) with "
        f"{len(manifest.preambles)} preamble(s) and {len(manifest.prereqs)} prereq(s)"
    )
    return manifest


__all__ = [
    "PackageType",
    "PreambleEntry",
    "PrereqEntry",
    "Manifest",
    "validate_manifest",
    "load_manifest",
]
