"""
reposync — CLI entrypoint.

Usage:
    reposync                 run the sync workflow
    reposync --help
    reposync status
    reposync config check
    reposync self-check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from reposync import __version__
from reposync.core.observability.logging_config import setup_logging

_STATUS_COLORS = {"ok": "green", "partial": "yellow", "failed": "red"}


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=__version__, prog_name="reposync")
@click.option("--verbose", "-v", is_flag=True, help="Show debug detail for external commands.")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to reposync.yml (default: $REPOSYNC_CONFIG, ./reposync.yml, ~/.config/reposync/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """reposync — mirror an upstream RPM into a local repository and keep it installed.

    Run without a command to check upstream for a new release, refresh the
    local repository when it changed, and install or upgrade the package.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug or verbose:
        level = "DEBUG"
    elif quiet:
        level = "WARNING"
    else:
        level = os.environ.get("REPOSYNC_LOG_LEVEL", "INFO")

    setup_logging(
        level=level,
        log_file=os.environ.get("REPOSYNC_LOG_FILE"),
        log_file_level=os.environ.get("REPOSYNC_LOG_FILE_LEVEL"),
    )

    if ctx.invoked_subcommand is None:
        ctx.invoke(sync)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def sync(ctx: click.Context, as_json: bool) -> None:
    """Check upstream and install or upgrade the package (the default)."""
    from reposync.core.use_cases.sync import run_sync

    result = run_sync(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    report = result.report
    click.echo()
    if result.error:
        click.secho(f"❌ {result.error}", fg="red", bold=True)
    else:
        status = report.status if report else "ok"
        label = result.outcome.replace("_", " ") if result.outcome else "done"
        click.secho(f"📦 {label}", fg=_STATUS_COLORS.get(status, "white"), bold=True)
        if result.installed:
            version = f" {result.installed_version}" if result.installed_version else ""
            click.echo(f"   {result.config.target.package}{version} installed")
        if report and report.warnings:
            click.secho(f"   ⚠️  {len(report.warnings)} warning(s):", fg="yellow")
            for record in report.warnings:
                click.echo(f"     • {record.name}: {record.message}")

    if report:
        click.echo(f"   Elapsed: {report.elapsed}")
    click.echo()
    sys.exit(result.exit_code)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show configuration, local files, installed version and the last run."""
    from reposync.core.use_cases.status import get_status

    result = get_status(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    config = result.config
    local = result.local
    assert config is not None and local is not None

    click.secho(f"\n📦 {config.target.package}", fg="cyan", bold=True)
    click.echo(f"   Source:   {config.target.artifact_url}")
    click.echo(f"   Media:    {config.target.media_name}")
    click.echo(f"   Work dir: {result.work_dir}")
    click.echo()

    if local.installed:
        click.secho(f"   ✓ installed {local.installed_version or ''}", fg="green")
    else:
        click.secho("   ✗ not installed", fg="red")
    click.echo(f"   Downloaded artifact: {'yes' if local.artifact_present else 'no'}")
    click.echo(f"   Listing snapshot:    {'yes' if local.snapshot_present else 'no'}")

    state = result.state
    if state and state.last_run.operation_id:
        run = state.last_run
        click.echo()
        click.secho("   Last run:", fg="white", bold=True)
        click.echo(f"     {run.decision or '-'} → ", nl=False)
        click.secho(run.outcome or run.status, fg=_STATUS_COLORS.get(run.status, "white"))
        if run.ended_at:
            click.echo(f"     at {run.ended_at} ({run.elapsed})")
        for warning in run.warnings:
            click.echo(f"     ⚠ {warning}")

    click.echo()


@cli.group()
def config() -> None:
    """Configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate reposync.yml."""
    from reposync.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   File:     {result.path}")
        click.echo(f"   Package:  {result.config.target.package}")
        click.echo(f"   Artifact: {result.config.target.artifact_url}")
        click.echo(f"   Listing:  {result.config.target.listing_url}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    click.echo()
    if not result.valid:
        sys.exit(1)


@cli.command("self-check")
@click.pass_context
def self_check(ctx: click.Context) -> None:
    """Compare this tool's script with the published copy (never replaces it)."""
    from reposync.adapters import default_registry
    from reposync.core.config.loader import ConfigError, load_config
    from reposync.core.services import self_update
    from reposync.core.services.tools import Toolbox

    try:
        cfg = load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    registry = default_registry(elevate_prefix=cfg.tools.elevate)
    check = self_update.compare_with_published(
        cfg.self_update, Toolbox(registry, cfg.tools, Path.cwd())
    )

    if check.outcome == self_update.UP_TO_DATE:
        click.secho(f"✅ {check.message}", fg="green")
    elif check.outcome == self_update.UPDATE_AVAILABLE:
        click.secho(f"⚠️  {check.message}", fg="yellow", bold=True)
        for line in check.diff:
            color = "green" if line.startswith("+") else "red" if line.startswith("-") else None
            click.secho(line, fg=color)
    elif check.outcome == self_update.CHECK_FAILED:
        click.secho(f"⚠️  {check.message}", fg="yellow")
    else:
        click.echo(check.message)


if __name__ == "__main__":
    cli()
