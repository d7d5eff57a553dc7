"""Deployment operations.

Each operation loads the manifest from ``root``, plans against the registry
and applies the plan. Problems with individual entries end up in the returned
StepResult list; only a missing or invalid manifest and an unsupported
package type are raised.
"""

import logging
from pathlib import Path

from msideploy.config import Settings, load_settings
from msideploy.manifest import Manifest, load_manifest
from msideploy.execution import run_process
from msideploy.registry import RegistryReader, WindowsRegistry

from .installation import Runner, apply_plan
from .models import Action, StepResult
from .planning import plan_package, plan_preambles, plan_prereqs, require_package_type

_logging = logging.getLogger(__name__)


def _resolve(root: Path | str | None, settings: Settings | None) -> tuple[Path, Settings]:
    settings = settings if settings is not None else load_settings()
    return Path(root) if root is not None else settings.root, settings


def _registry_for(registry: RegistryReader | None, settings: Settings) -> RegistryReader:
    if registry is not None:
        return registry
    return WindowsRegistry(view=settings.registry_view)


def _run_preambles(manifest, settings, registry, runner, dry_run) -> list[StepResult]:
    if not manifest.preambles:
        return []
    plan = plan_preambles(manifest, _registry_for(registry, settings), settings)
    return apply_plan(plan, runner, dry_run=dry_run, timeout=settings.timeout)


def _run_prereqs(manifest, root, settings, registry, runner, dry_run) -> list[StepResult]:
    if not manifest.prereqs:
        return []
    plan = plan_prereqs(manifest, root, _registry_for(registry, settings), settings)
    return apply_plan(plan, runner, dry_run=dry_run, timeout=settings.timeout)


def _run_package(manifest, root, settings, runner, dry_run, action) -> list[StepResult]:
    plan = plan_package(manifest, root, settings, action)
    return apply_plan(plan, runner, dry_run=dry_run, timeout=settings.timeout)


def get_manifest(root: Path | str | None = None, settings: Settings | None = None) -> Manifest:
    """Load the manifest of ``root``, or of the configured root."""
    resolved_root, _ = _resolve(root, settings)
    return load_manifest(resolved_root)


def uninstall_preambles(
    root: Path | str | None = None,
    *,
    settings: Settings | None = None,
    registry: RegistryReader | None = None,
    runner: Runner = run_process,
    dry_run: bool = False,
) -> list[StepResult]:
    """Uninstall every listed preamble application that is installed.

    Args:
        root: Package root (default: the configured root)
        settings: Settings to use (default: loaded from the settings file)
        registry: Registry to search (default: the Windows registry, opened
            only when the manifest lists preambles)
        runner: Launches each command
        dry_run: Record the commands without launching them

    Returns:
        One StepResult per uninstall preamble, in manifest order

    Raises:
        NotFoundError: If the manifest does not exist
        ParseError: If the manifest is invalid
        RegistryAccessError: If the registry cannot be used at all
    """
    root, settings = _resolve(root, settings)
    manifest = load_manifest(root)
    return _run_preambles(manifest, settings, registry, runner, dry_run)


def install_prereqs(
    root: Path | str | None = None,
    *,
    settings: Settings | None = None,
    registry: RegistryReader | None = None,
    runner: Runner = run_process,
    dry_run: bool = False,
) -> list[StepResult]:
    """Install every prerequisite that is missing or older than required."""
    root, settings = _resolve(root, settings)
    manifest = load_manifest(root)
    return _run_prereqs(manifest, root, settings, registry, runner, dry_run)


def install_package(
    root: Path | str | None = None,
    *,
    settings: Settings | None = None,
    runner: Runner = run_process,
    dry_run: bool = False,
) -> list[StepResult]:
    """Install the main package silently.

    Args:
        root: Package root (default: the configured root)
        settings: Settings to use (default: loaded from the settings file)
        runner: Launches each command
        dry_run: Record the commands without launching them

    Returns:
        One StepResult for the installer run

    Raises:
        NotFoundError: If the manifest does not exist
        ParseError: If the manifest is invalid
        UnsupportedPackageTypeError: If the package type is unknown
    """
    root, settings = _resolve(root, settings)
    manifest = load_manifest(root)
    return _run_package(manifest, root, settings, runner, dry_run, Action.INSTALL_PACKAGE)


def uninstall_package(
    root: Path | str | None = None,
    *,
    settings: Settings | None = None,
    runner: Runner = run_process,
    dry_run: bool = False,
) -> list[StepResult]:
    """Uninstall the main package silently. Only MSI packages support this.

    Raises:
        NotFoundError: If the manifest does not exist
        ParseError: If the manifest is invalid
        UnsupportedPackageTypeError: If the package is not an MSI package
    """
    root, settings = _resolve(root, settings)
    manifest = load_manifest(root)
    return _run_package(manifest, root, settings, runner, dry_run, Action.UNINSTALL_PACKAGE)


def repair_package(
    root: Path | str | None = None,
    *,
    settings: Settings | None = None,
    runner: Runner = run_process,
    dry_run: bool = False,
) -> list[StepResult]:
    """Repair the main package by reinstalling all of its files.

    Only MSI packages support this. Raises the same errors as
    :func:`uninstall_package`.
    """
    root, settings = _resolve(root, settings)
    manifest = load_manifest(root)
    return _run_package(manifest, root, settings, runner, dry_run, Action.REPAIR_PACKAGE)


def install_with_prereqs(
    root: Path | str | None = None,
    *,
    settings: Settings | None = None,
    registry: RegistryReader | None = None,
    runner: Runner = run_process,
    dry_run: bool = False,
) -> list[StepResult]:
    """Uninstall preambles, install prerequisites, then install the package.

    Each phase runs to completion before the next is planned. Failures in an
    earlier phase do not stop later ones and nothing is rolled back. The
    package type is checked before the first phase so an unsupported package
    launches nothing at all.
    """
    root, settings = _resolve(root, settings)
    manifest = load_manifest(root)
    require_package_type(manifest, Action.INSTALL_PACKAGE)

    results = _run_preambles(manifest, settings, registry, runner, dry_run)
    results += _run_prereqs(manifest, root, settings, registry, runner, dry_run)
    results += _run_package(manifest, root, settings, runner, dry_run, Action.INSTALL_PACKAGE)

    _logging.info(f"Deployment of {manifest.log_stem} finished with {len(results)} step(s)")
    return results


__all__ = [
    "get_manifest",
    "uninstall_preambles",
    "install_prereqs",
    "install_package",
    "uninstall_package",
    "repair_package",
    "install_with_prereqs",
]
