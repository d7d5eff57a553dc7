"""Deploy command implementation."""

import click

from msideploy import install_with_prereqs, setup_logging
from msideploy.commands.utils import dry_run_option, report_option, root_option, run_operation


@click.command()
@root_option
@dry_run_option
@report_option
@click.pass_context
def deploy(ctx, root, dry_run: bool, report):
    """Uninstall preambles, install prerequisites, then install the package.

    Every phase runs even if an earlier one had failures; the exit status is
    2 when any step failed.
    """
    setup_logging(ctx.obj.get("debug", False))
    run_operation(ctx, install_with_prereqs, root, dry_run, report)
