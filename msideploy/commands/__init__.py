"""CLI command definitions for msideploy."""

from pathlib import Path

import click

from msideploy import __version__
from msideploy.commands.config import config
from msideploy.commands.deploy import deploy
from msideploy.commands.package import install, repair, uninstall
from msideploy.commands.plan import plan
from msideploy.commands.preambles import preambles
from msideploy.commands.prereqs import prereqs
from msideploy.commands.show import show


@click.group()
@click.version_option(__version__, prog_name="msideploy")
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (default: $MSIDEPLOY_CONFIG or ~/.config/msideploy/settings.yaml)",
)
@click.pass_context
def cli(ctx, debug, config_path):
    """Deploy packages described by a package.manifest."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = config_path


cli.add_command(show)
cli.add_command(plan)
cli.add_command(preambles)
cli.add_command(prereqs)
cli.add_command(install)
cli.add_command(uninstall)
cli.add_command(repair)
cli.add_command(deploy)
cli.add_command(config)

__all__ = ["cli"]


if __name__ == "__main__":
    cli()
