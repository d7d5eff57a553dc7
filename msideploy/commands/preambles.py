"""Preambles command implementation."""

import click

from msideploy import setup_logging, uninstall_preambles
from msideploy.commands.utils import dry_run_option, report_option, root_option, run_operation


@click.command()
@root_option
@dry_run_option
@report_option
@click.pass_context
def preambles(ctx, root, dry_run: bool, report):
    """Uninstall preamble applications listed in the manifest."""
    setup_logging(ctx.obj.get("debug", False))
    run_operation(ctx, uninstall_preambles, root, dry_run, report)
