"""Shared helpers for commands."""

import json
import sys
from pathlib import Path
from typing import Callable, NoReturn

import click
import yaml

from msideploy import (
    DeployError,
    NotFoundError,
    Settings,
    format_error,
    format_suggestion,
    load_settings,
    run_process,
)
from msideploy.installer import StepResult, has_failures, results_to_dicts, summarize_results

EXIT_FATAL = 1
EXIT_PARTIAL = 2

_STATUS_ICONS = {
    "success": "✅",
    "reboot-required": "🔁",
    "dry-run": "📝",
    "skipped": "⚪",
}

root_option = click.option(
    "--root",
    "-r",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Package root holding package.manifest (default: configured root)",
)

dry_run_option = click.option(
    "--dry-run",
    "-n",
    is_flag=True,
    help="Show what would be executed without launching anything",
)

report_option = click.option(
    "--report",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write step results to a YAML file (JSON if the name ends in .json)",
)


def report_fatal(error: DeployError) -> NoReturn:
    """Print a fatal error and exit."""
    if isinstance(error, NotFoundError):
        message = format_suggestion(
            str(error), "pass --root or set 'root' in the settings file"
        )
    else:
        message = format_error(str(error))
    click.echo(message, err=True)
    sys.exit(EXIT_FATAL)


def get_settings(ctx: click.Context) -> Settings:
    """Return the settings for this invocation, loading them on first use."""
    obj = ctx.ensure_object(dict)
    if obj.get("settings") is None:
        try:
            obj["settings"] = load_settings(obj.get("config_path"))
        except DeployError as e:
            report_fatal(e)
    return obj["settings"]


def write_report(path: Path, results: list[StepResult]) -> None:
    document = {
        "summary": summarize_results(results),
        "results": results_to_dicts(results),
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            json.dump(document, f, indent=2)
            f.write("\n")
        else:
            yaml.safe_dump(document, f, default_flow_style=False, sort_keys=False)


def echo_results(results: list[StepResult]) -> None:
    if not results:
        click.echo("Nothing to do.")
        return

    for result in results:
        icon = _STATUS_ICONS.get(result.status, "❌")
        line = f"{icon} {result.action.value}: {result.target} [{result.status}]"
        if result.returncode is not None:
            line += f" (exit {result.returncode})"
        click.echo(line)
        if result.message:
            click.echo(f"   {result.message}")

    counts = ", ".join(f"{n} {status}" for status, n in summarize_results(results).items())
    click.echo(f"\n{len(results)} step(s): {counts}")


def run_operation(
    ctx: click.Context,
    operation: Callable[..., list[StepResult]],
    root: Path | None,
    dry_run: bool,
    report: Path | None,
) -> None:
    """Run a deployment operation and exit with a status reflecting its results."""
    settings = get_settings(ctx)
    try:
        results = operation(root, settings=settings, runner=run_process, dry_run=dry_run)
    except DeployError as e:
        report_fatal(e)

    echo_results(results)
    if report is not None:
        write_report(report, results)
        click.echo(f"Report written to {report}")

    if has_failures(results):
        sys.exit(EXIT_PARTIAL)
