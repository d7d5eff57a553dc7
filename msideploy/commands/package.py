"""Install, uninstall and repair commands for the main package."""

import click

from msideploy import install_package, repair_package, setup_logging, uninstall_package
from msideploy.commands.utils import dry_run_option, report_option, root_option, run_operation


@click.command()
@root_option
@dry_run_option
@report_option
@click.pass_context
def install(ctx, root, dry_run: bool, report):
    """Install the main package (MSI or legacy setup)."""
    setup_logging(ctx.obj.get("debug", False))
    run_operation(ctx, install_package, root, dry_run, report)


@click.command()
@root_option
@dry_run_option
@report_option
@click.pass_context
def uninstall(ctx, root, dry_run: bool, report):
    """Uninstall the main package (MSI packages only)."""
    setup_logging(ctx.obj.get("debug", False))
    run_operation(ctx, uninstall_package, root, dry_run, report)


@click.command()
@root_option
@dry_run_option
@report_option
@click.pass_context
def repair(ctx, root, dry_run: bool, report):
    """Repair the main package (MSI packages only)."""
    setup_logging(ctx.obj.get("debug", False))
    run_operation(ctx, repair_package, root, dry_run, report)
