"""Show effective settings command implementation."""

import click
import yaml

from msideploy.commands.utils import get_settings


@click.command(name="show")
@click.pass_context
def config_show(ctx):
    """Print the effective settings as YAML."""
    settings = get_settings(ctx)
    click.echo(yaml.safe_dump(settings.to_dict(), default_flow_style=False, sort_keys=False), nl=False)
