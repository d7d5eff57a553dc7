"""Prereqs command implementation."""

import click

from msideploy import install_prereqs, setup_logging
from msideploy.commands.utils import dry_run_option, report_option, root_option, run_operation


@click.command()
@root_option
@dry_run_option
@report_option
@click.pass_context
def prereqs(ctx, root, dry_run: bool, report):
    """Install prerequisites that are missing or outdated."""
    setup_logging(ctx.obj.get("debug", False))
    run_operation(ctx, install_prereqs, root, dry_run, report)
