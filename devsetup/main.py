"""
devsetup — CLI entrypoint.

Usage:
    devsetup --help
    devsetup converge --target ./my-app
    devsetup check
    devsetup status
    devsetup config show
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from devsetup import __version__
from devsetup.core.observability.logging_config import resolve_level, setup_logging

_OUTCOME_STYLE = {
    "satisfied": ("✓", "green"),
    "converged": ("↻", "cyan"),
    "failed": ("✗", "red"),
    "blocked": ("⊘", "yellow"),
    "pending": ("…", "yellow"),
}

_STATUS_COLOR = {"ok": "green", "partial": "yellow", "failed": "red"}

target_option = click.option(
    "--target",
    "-t",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory to provision (default: current directory).",
)
json_option = click.option(
    "--json-output", "--json", "as_json", is_flag=True, help="Output as JSON."
)


@click.group()
@click.version_option(version=__version__, prog_name="devsetup")
@click.option("--verbose", "-v", is_flag=True, help="Log every fact as it is processed.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (every command line).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to devsetup.yml (default: <target>/devsetup.yml, else built-in defaults).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: Path | None,
) -> None:
    """devsetup — provision a Node.js + ffmpeg development project."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = config_path

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        quiet_third_party=not debug,
    )


def _print_report(ctx: click.Context, result, title: str) -> None:
    report = result.report
    assert report is not None
    quiet = ctx.obj.get("quiet", False)

    if not quiet:
        click.secho(f"\n⚙️  {title} — {result.target}", fg="cyan", bold=True)
        click.echo()

    for fact_result in report.results:
        outcome = fact_result.outcome.value
        if quiet and outcome == "satisfied":
            continue
        icon, color = _OUTCOME_STYLE.get(outcome, ("?", "white"))
        click.secho(f"   {icon} {fact_result.name}", fg=color, nl=False)
        optional = "" if fact_result.required else " (optional)"
        click.echo(f"  {outcome}{optional}")
        if fact_result.error:
            for line in fact_result.error.splitlines()[:5]:
                click.echo(f"     │ {line}")
        elif ctx.obj.get("verbose") and fact_result.receipt:
            if fact_result.receipt.command:
                click.echo(f"     $ {fact_result.receipt.command}")
            for line in fact_result.receipt.output.splitlines()[:10]:
                click.echo(f"     │ {line}")

    click.echo()
    click.secho(
        f"   Result: {report.satisfied} satisfied, {report.converged} converged, "
        f"{report.failed} failed"
        + (f", {report.pending} pending" if report.dry_run else ""),
        fg=_STATUS_COLOR.get(report.status, "white"),
        bold=True,
    )
    click.echo()


@cli.command()
@target_option
@json_option
@click.option("--dry-run", is_flag=True, help="Check every fact but change nothing.")
@click.option("--mock", is_flag=True, help="Fake apt/npm/nvm (files are still written).")
@click.option("--lenient", is_flag=True, help="Exit 0 even when required facts fail.")
@click.option("--no-save", is_flag=True, help="Don't record the run in .devsetup/.")
@click.pass_context
def converge(
    ctx: click.Context,
    target: Path | None,
    as_json: bool,
    dry_run: bool,
    mock: bool,
    lenient: bool,
    no_save: bool,
) -> None:
    """Bring the machine and the project to the declared state.

    Examples:

        devsetup converge

        devsetup converge --target ./api --lenient

        devsetup --config team.yml converge --dry-run
    """
    from devsetup.core.use_cases.converge import run_convergence

    result = run_convergence(
        target=target,
        config_path=ctx.obj.get("config_path"),
        dry_run=dry_run,
        mock_mode=mock,
        save=not no_save,
        lenient=lenient,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    mode = "[dry-run] " if dry_run else "[mock] " if mock else ""
    _print_report(ctx, result, f"{mode}converge")

    if result.report.fatal and lenient:
        click.secho("   ⚠️  Required facts failed (ignored: --lenient)", fg="yellow")
        click.echo()
    elif result.report.all_ok and not dry_run:
        click.secho("✅ Setup completed successfully.", fg="green", bold=True)

    sys.exit(result.exit_code)


@cli.command()
@target_option
@json_option
@click.pass_context
def check(ctx: click.Context, target: Path | None, as_json: bool) -> None:
    """Report which facts hold and which would converge (no changes)."""
    from devsetup.core.use_cases.converge import run_convergence

    result = run_convergence(
        target=target,
        config_path=ctx.obj.get("config_path"),
        dry_run=True,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    _print_report(ctx, result, "check")


@cli.command()
@target_option
@json_option
@click.pass_context
def facts(ctx: click.Context, target: Path | None, as_json: bool) -> None:
    """List the declared facts in convergence order."""
    from devsetup.core.use_cases.converge import prepare

    result = prepare(
        target=target,
        config_path=ctx.obj.get("config_path"),
        inspect_only=True,
    )

    if as_json:
        payload = result.to_dict()
        payload.pop("exit_code", None)
        payload.pop("state_saved", None)
        click.echo(json.dumps(payload, indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"\n📋 {len(result.facts)} facts — {result.target}", fg="cyan", bold=True)
    for index, fact in enumerate(result.facts, start=1):
        flags = []
        if fact.policy.value != "skip-if-present":
            flags.append(fact.policy.value)
        if not fact.required:
            flags.append("optional")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(f"   {index:>2}. {fact.name} ({fact.kind.value}){suffix}")
        if ctx.obj.get("verbose") and fact.description:
            click.echo(f"       {fact.description}")
    click.echo()


@cli.command()
@target_option
@json_option
@click.pass_context
def status(ctx: click.Context, target: Path | None, as_json: bool) -> None:
    """Show the outcome of the last recorded run."""
    from devsetup.core.use_cases.status import get_status

    result = get_status(target=target)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if not result.has_run:
        click.secho(f"No recorded run in {result.target}", fg="yellow")
        return

    assert result.state is not None
    run = result.state.last_run
    click.secho(f"\n📋 {result.target}", fg="cyan", bold=True)
    click.echo(f"   Last run: {run.run_id} — ", nl=False)
    click.secho(run.status, fg=_STATUS_COLOR.get(run.status, "white"))
    if run.ended_at:
        click.echo(f"   at {run.ended_at}")
    click.echo(
        f"   {run.facts_satisfied} satisfied, {run.facts_converged} converged, "
        f"{run.facts_failed} failed (exit {run.exit_code})"
    )

    failing = [fs for fs in result.state.facts.values() if fs.outcome in ("failed", "blocked")]
    if failing:
        click.echo()
        click.secho("   Not holding:", fg="red")
        for fs in failing:
            click.echo(f"     • {fs.name}: {fs.error or fs.outcome}")
    click.echo()


# ── Register sub-command groups from devsetup/ui/cli/ ─────────────

from devsetup.ui.cli.config import config  # noqa: E402

cli.add_command(config)


if __name__ == "__main__":
    cli()
