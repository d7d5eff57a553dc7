"""Deployment planning and rendering.

Planning reads the manifest and the registry and decides what to launch;
nothing here starts a process.
"""

import logging
import subprocess
from pathlib import Path, PureWindowsPath

from msideploy.config import Settings
from msideploy.errors import UnsupportedPackageTypeError
from msideploy.execution import split_command_line
from msideploy.manifest import Manifest, PackageType, PrereqEntry
from msideploy.registry import RegistryReader, check_prereq, find_uninstall_entry

from .models import Action, Plan, PlanStep

_logging = logging.getLogger(__name__)

MSI_QUIET_ARGS = ["/qn", "/norestart"]

_MSI_VERBS = {
    Action.INSTALL_PACKAGE: ("/i", "install"),
    Action.UNINSTALL_PACKAGE: ("/x", "uninstall"),
    Action.REPAIR_PACKAGE: ("/fa", "repair"),
}

# Package types each package-level action can handle.
SUPPORTED_PACKAGE_TYPES = {
    Action.INSTALL_PACKAGE: (PackageType.MSI, PackageType.LEGACY_SETUP),
    Action.UNINSTALL_PACKAGE: (PackageType.MSI,),
    Action.REPAIR_PACKAGE: (PackageType.MSI,),
}


def require_package_type(manifest: Manifest, action: Action) -> PackageType:
    """Return the manifest's package type if ``action`` supports it.

    Raises:
        UnsupportedPackageTypeError: For unknown types, or known types the
            action cannot handle
    """
    package_type = manifest.known_package_type
    if package_type is None or package_type not in SUPPORTED_PACKAGE_TYPES[action]:
        raise UnsupportedPackageTypeError(manifest.package_type, action.value)
    return package_type


def msi_log_path(manifest: Manifest, settings: Settings, verb: str) -> Path:
    return settings.log_dir / f"{manifest.log_stem}-{verb}.log"


def legacy_log_path(manifest: Manifest, settings: Settings) -> Path:
    return settings.log_dir / f"{manifest.log_stem}.log"


def _resolve_artifact(root: Path, path: str) -> str:
    if PureWindowsPath(path).is_absolute() or Path(path).is_absolute():
        return path
    return str(root / path)


def _prereq_arguments(entry: PrereqEntry) -> list[str]:
    if isinstance(entry.installer_arguments, tuple):
        return list(entry.installer_arguments)
    return split_command_line(entry.installer_arguments)


def plan_preambles(
    manifest: Manifest, registry: RegistryReader, settings: Settings
) -> Plan:
    """Plan the silent uninstall of every installed preamble product.

    Args:
        manifest: Loaded package manifest
        registry: Registry to search for uninstall entries
        settings: Supplies the msiexec executable

    Returns:
        A plan with one step per uninstall preamble. Products that are not
        installed get a step that launches nothing; preambles of any other
        kind are left out.
    """
    steps = []

    for preamble in manifest.preambles:
        if not preamble.is_uninstall:
            _logging.info(
                f"Ignoring preamble of unsupported kind '{preamble.kind}' ({preamble.product_identifier})"
            )
            continue

        entry = find_uninstall_entry(registry, preamble.product_identifier)
        if entry is None:
            _logging.info(f"Preamble {preamble.product_identifier} is not installed")
            steps.append(
                PlanStep(
                    action=Action.UNINSTALL_PREAMBLE,
                    target=preamble.product_identifier,
                    description="not installed",
                )
            )
            continue

        name = f" ({entry.display_name})" if entry.display_name else ""
        steps.append(
            PlanStep(
                action=Action.UNINSTALL_PREAMBLE,
                target=entry.product_code,
                description=f"uninstall {entry.product_code}{name}",
                argv=[settings.msiexec, "/x", entry.product_code, *MSI_QUIET_ARGS],
            )
        )

    return Plan(name=f"{manifest.log_stem}: preambles", steps=steps)


def plan_prereqs(
    manifest: Manifest, root: Path, registry: RegistryReader, settings: Settings
) -> Plan:
    """Plan installers for missing or outdated prerequisites.

    Args:
        manifest: Loaded package manifest
        root: Package root; relative installer paths resolve against it and
            installers run from it
        registry: Registry holding the installed versions
        settings: Supplies the policy for unreadable prerequisite keys

    Returns:
        A plan with one step per prerequisite, in manifest order. Satisfied
        prerequisites, skipped ones and ones whose command line cannot be
        parsed get a step that launches nothing.
    """
    steps = []

    for entry in manifest.prereqs:
        check = check_prereq(registry, entry, settings.prereq_access_policy)
        target = f"{check.key_path}\\{entry.check_value_name}"

        if not check.needs_install:
            _logging.info(f"Prerequisite {target}: {check.reason}")
            steps.append(
                PlanStep(
                    action=Action.INSTALL_PREREQ,
                    target=target,
                    description=check.reason,
                )
            )
            continue

        try:
            arguments = _prereq_arguments(entry)
        except ValueError as e:
            _logging.warning(f"Prerequisite {target}: {e}")
            steps.append(
                PlanStep(
                    action=Action.INSTALL_PREREQ,
                    target=target,
                    description=f"invalid command line: {e}",
                )
            )
            continue

        steps.append(
            PlanStep(
                action=Action.INSTALL_PREREQ,
                target=target,
                description=f"install {entry.installer_path} ({check.reason})",
                argv=[_resolve_artifact(root, entry.installer_path), *arguments],
                cwd=root,
            )
        )

    return Plan(name=f"{manifest.log_stem}: prerequisites", steps=steps)


def plan_package(
    manifest: Manifest, root: Path, settings: Settings, action: Action
) -> Plan:
    """Plan an install, uninstall or repair of the main package.

    Raises:
        UnsupportedPackageTypeError: If ``action`` does not support the
            manifest's package type
    """
    package_type = require_package_type(manifest, action)
    installer = str(manifest.installer_path(root))

    if package_type == PackageType.MSI:
        flag, verb = _MSI_VERBS[action]
        argv = [
            settings.msiexec,
            flag,
            installer,
            *MSI_QUIET_ARGS,
            "/l*v",
            str(msi_log_path(manifest, settings, verb)),
        ]
    else:
        argv = [
            installer,
            *settings.legacy_setup_args,
            "/log",
            str(legacy_log_path(manifest, settings)),
        ]

    step = PlanStep(
        action=action,
        target=manifest.log_stem,
        description=f"{action.value} {manifest.installer_file} ({package_type.value})",
        argv=argv,
        cwd=root,
    )
    return Plan(name=f"{manifest.log_stem}: {action.value}", steps=[step])


def render_plan(plan: Plan) -> str:
    """Format ``plan`` for display; steps that launch nothing are marked ``-``."""
    lines = [f"Plan: {plan.name}", ""]

    if not plan.steps:
        lines.append("  (nothing to do)")
        return "\n".join(lines)

    for i, step in enumerate(plan.steps, 1):
        marker = "-" if step.is_noop else "*"
        lines.append(f"  {i}. {marker} {step.action.value}: {step.target}")
        lines.append(f"     {step.description}")
        if step.argv is not None:
            lines.append(f"     $ {subprocess.list2cmdline(step.argv)}")

    return "\n".join(lines)


__all__ = [
    "SUPPORTED_PACKAGE_TYPES",
    "require_package_type",
    "plan_preambles",
    "plan_prereqs",
    "plan_package",
    "render_plan",
]
