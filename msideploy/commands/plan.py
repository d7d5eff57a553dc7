"""Plan command implementation."""

import click

from msideploy import DeployError, WindowsRegistry, load_manifest, setup_logging
from msideploy.commands.utils import get_settings, report_fatal, root_option
from msideploy.installer import (
    Action,
    plan_package,
    plan_preambles,
    plan_prereqs,
    render_plan,
    require_package_type,
)

OPERATIONS = ["deploy", "preambles", "prereqs", "install", "uninstall", "repair"]

_PACKAGE_ACTIONS = {
    "install": Action.INSTALL_PACKAGE,
    "uninstall": Action.UNINSTALL_PACKAGE,
    "repair": Action.REPAIR_PACKAGE,
}


@click.command()
@root_option
@click.option(
    "--operation",
    "-o",
    type=click.Choice(OPERATIONS),
    default="deploy",
    show_default=True,
    help="Operation to plan",
)
@click.pass_context
def plan(ctx, root, operation: str):
    """Show what an operation would do without running anything.

    Preamble and prerequisite phases are evaluated against the current
    registry state.
    """
    setup_logging(ctx.obj.get("debug", False))
    settings = get_settings(ctx)
    root = root if root is not None else settings.root

    try:
        manifest = load_manifest(root)
        if operation == "deploy":
            require_package_type(manifest, Action.INSTALL_PACKAGE)

        plans = []
        needs_registry = (
            operation in ("deploy", "preambles") and manifest.preambles
        ) or (operation in ("deploy", "prereqs") and manifest.prereqs)
        registry = WindowsRegistry(view=settings.registry_view) if needs_registry else None

        if operation in ("deploy", "preambles") and manifest.preambles:
            plans.append(plan_preambles(manifest, registry, settings))
        if operation in ("deploy", "prereqs") and manifest.prereqs:
            plans.append(plan_prereqs(manifest, root, registry, settings))
        if operation == "deploy":
            plans.append(plan_package(manifest, root, settings, Action.INSTALL_PACKAGE))
        elif operation in _PACKAGE_ACTIONS:
            plans.append(plan_package(manifest, root, settings, _PACKAGE_ACTIONS[operation]))
    except DeployError as e:
        report_fatal(e)

    if not plans:
        click.echo("Nothing to do.")
        return

    click.echo("\n\n".join(render_plan(p) for p in plans))
