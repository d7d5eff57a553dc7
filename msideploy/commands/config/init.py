"""Initialize settings command implementation."""

import sys

import click

from msideploy.config import DEFAULT_SETTINGS_TEMPLATE
from msideploy.paths import get_config_path


@click.command(name="init")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Force re-initialization, overwriting existing settings",
)
@click.pass_context
def config_init(ctx, force: bool):
    """Write a settings file with the default values.

    Creates ~/.config/msideploy/settings.yaml (or the file named by
    --config / MSIDEPLOY_CONFIG). Use --force to overwrite an existing file
    (creates backup first).
    """
    config_path = ctx.obj.get("config_path") or get_config_path()

    if config_path.exists() and not force:
        click.echo(f"Settings file already exists: {config_path}")
        click.echo("Use --force to re-initialize (creates backup first).")
        sys.exit(1)

    if config_path.exists():
        backup_path = config_path.with_suffix(config_path.suffix + ".bak")
        click.echo(f"Backing up existing settings to {backup_path}...")
        config_path.replace(backup_path)
        click.echo("✅ Backup created")

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_SETTINGS_TEMPLATE, encoding="utf-8")
    click.echo(f"✅ Settings initialized at {config_path}")
