"""Pytest fixtures and utilities for msideploy tests."""

import copy
import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

from msideploy.config import Settings
from msideploy.errors import RegistryAccessError, RegistryKeyNotFoundError
from msideploy.execution import ExitStatus, ProcessResult

PREAMBLE_CODE = "{11111111-2222-3333-4444-555555555555}"
NETFX_KEY = r"SOFTWARE\Microsoft\NET Framework Setup\NDP\v4\Full"

SAMPLE_MANIFEST = {
    "PackageType": "MsiPackage",
    "InstallerFile": "product.msi",
    "ID": "product",
    "Version": "1.2.3",
    "Preambles": [{"PreambleType": "UninstallPackage", "Data": PREAMBLE_CODE}],
    "Prereqs": [
        {
            "CheckKey": NETFX_KEY,
            "CheckValue": "Release",
            "CheckValueTarget": 528040,
            "Path": "prereqs\\ndp48.exe",
            "CommandLine": "/q /norestart",
        }
    ],
}

_RETURN_CODES = {
    ExitStatus.SUCCESS: 0,
    ExitStatus.REBOOT_REQUIRED: 3010,
    ExitStatus.BUSY: 1618,
    ExitStatus.FAILED: 1603,
    ExitStatus.NOT_LAUNCHED: None,
    ExitStatus.TIMEOUT: None,
}


class FakeRegistry:
    """Dict-backed RegistryReader.

    ``keys`` maps full key paths (``HKLM\\...``) to their values; parent keys
    exist implicitly. Paths in ``denied`` raise RegistryAccessError.
    """

    def __init__(self, keys: dict[str, dict[str, Any]] | None = None, denied=()):
        self._keys = {p.lower(): (p, dict(v)) for p, v in (keys or {}).items()}
        self.denied = {p.lower() for p in denied}
        self.reads: list[tuple[str, str | None]] = []

    def _check(self, path: str) -> None:
        lowered = path.lower()
        if lowered in self.denied:
            raise RegistryAccessError(f"Access is denied: {path}")
        if lowered not in self._keys and not any(
            k.startswith(lowered + "\\") for k in self._keys
        ):
            raise RegistryKeyNotFoundError(f"Registry key not found: {path}")

    def list_subkeys(self, path: str) -> list[str]:
        self.reads.append((path, None))
        self._check(path)
        prefix = path.lower().rstrip("\\") + "\\"
        names: list[str] = []
        for lowered, (original, _) in self._keys.items():
            if lowered.startswith(prefix):
                child = original[len(prefix):].split("\\")[0]
                if child not in names:
                    names.append(child)
        return names

    def read_value(self, path: str, name: str) -> Any:
        self.reads.append((path, name))
        self._check(path)
        entry = self._keys.get(path.lower())
        if entry is None:
            return None
        return entry[1].get(name)


class RecordingRunner:
    """Stands in for run_process; records argv and replays queued statuses."""

    def __init__(self, *statuses: ExitStatus):
        self.statuses = list(statuses)
        self.calls: list[list[str]] = []
        self.cwds: list[Path | None] = []

    def __call__(self, argv, cwd=None, timeout=None) -> ProcessResult:
        self.calls.append(list(argv))
        self.cwds.append(cwd)
        status = self.statuses.pop(0) if self.statuses else ExitStatus.SUCCESS
        error = "launch failed" if status == ExitStatus.NOT_LAUNCHED else ""
        return ProcessResult(list(argv), status, returncode=_RETURN_CODES[status], error=error)


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None, None, None]:
    """Undo setup_logging() calls made by CLI commands."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def manifest_data() -> dict:
    """A fresh copy of the sample manifest document."""
    return copy.deepcopy(SAMPLE_MANIFEST)


@pytest.fixture
def make_package(temp_dir: Path) -> Callable[..., Path]:
    """Write a package root with the given manifest document and return it."""

    def _make(data: dict | None = None, text: str | None = None, name: str = "pkg") -> Path:
        root = temp_dir / name
        root.mkdir(parents=True, exist_ok=True)
        if text is None:
            text = json.dumps(data if data is not None else SAMPLE_MANIFEST, indent=2)
        (root / "package.manifest").write_text(text, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    return Settings(
        root=temp_dir / "pkg",
        log_dir=temp_dir / "logs",
        msiexec="msiexec.exe",
    )


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def installed_registry() -> FakeRegistry:
    """Registry with the sample preamble installed and an outdated .NET."""
    return FakeRegistry(
        {
            rf"HKLM\SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall\{PREAMBLE_CODE}": {
                "DisplayName": "Old Product",
            },
            rf"HKLM\{NETFX_KEY}": {"Release": 461808},
        }
    )
