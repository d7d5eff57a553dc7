"""Show command implementation."""

import json

import click

from msideploy import DeployError, load_manifest, setup_logging
from msideploy.commands.utils import get_settings, report_fatal, root_option


@click.command()
@root_option
@click.option("--json", "as_json", is_flag=True, help="Print the manifest as JSON")
@click.pass_context
def show(ctx, root, as_json: bool):
    """Load and display the package manifest."""
    setup_logging(ctx.obj.get("debug", False))
    settings = get_settings(ctx)
    root = root if root is not None else settings.root

    try:
        manifest = load_manifest(root)
    except DeployError as e:
        report_fatal(e)

    if as_json:
        click.echo(json.dumps(manifest.to_dict(), indent=2))
        return

    package_type = manifest.package_type
    if manifest.known_package_type is None:
        package_type += " (unsupported)"

    click.echo(f"Package:   {manifest.id} {manifest.version}")
    click.echo(f"Type:      {package_type}")
    click.echo(f"Installer: {manifest.installer_path(root)}")

    click.echo(f"\nPreambles ({len(manifest.preambles)}):")
    for preamble in manifest.preambles:
        suffix = "" if preamble.is_uninstall else " (ignored)"
        click.echo(f"  • {preamble.kind}: {preamble.product_identifier}{suffix}")

    click.echo(f"\nPrerequisites ({len(manifest.prereqs)}):")
    for prereq in manifest.prereqs:
        click.echo(
            f"  • HKLM\\{prereq.registry_check_key}\\{prereq.check_value_name} "
            f">= {prereq.required_value}"
        )
        click.echo(f"    installer: {prereq.installer_path}")
