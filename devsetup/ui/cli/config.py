"""
CLI commands for provisioning configuration.

Thin wrappers over ``devsetup.core.config.loader``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


@click.group()
def config() -> None:
    """Configuration — validate and show devsetup.yml."""


def _load(ctx: click.Context, target: Path | None):
    from devsetup.core.config.loader import find_config_file, load_config

    config_path: Path | None = ctx.obj.get("config_path")
    source = config_path or find_config_file(target)
    return load_config(config_path, target=target), source


@config.command("check")
@click.option("--target", "-t", type=click.Path(file_okay=False, path_type=Path), default=None)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, target: Path | None, as_json: bool) -> None:
    """Validate the provisioning configuration."""
    from devsetup.core.config.loader import ConfigError

    try:
        cfg, source = _load(ctx, target)
    except ConfigError as e:
        if as_json:
            click.echo(json.dumps({"valid": False, "errors": [str(e)]}, indent=2))
        else:
            click.secho("❌ Configuration errors:", fg="red", bold=True)
            click.echo(f"   • {e}")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({
            "valid": True,
            "source": str(source) if source else None,
            "dependencies": len(cfg.dependencies),
            "dev_dependencies": len(cfg.dev_dependencies),
        }, indent=2))
        return

    click.secho("✅ Configuration is valid", fg="green", bold=True)
    click.echo(f"   Source: {source or 'built-in defaults'}")
    click.echo(f"   System packages: {', '.join(p.name for p in cfg.system_packages) or '-'}")
    click.echo(f"   Dependencies: {', '.join(cfg.dependencies) or '-'}")
    click.echo(f"   Dev dependencies: {', '.join(cfg.dev_dependencies) or '-'}")
    click.echo(f"   Manifest patcher: {cfg.manifest.patcher}")
    click.echo()


@config.command("show")
@click.option("--target", "-t", type=click.Path(file_okay=False, path_type=Path), default=None)
@click.pass_context
def config_show(ctx: click.Context, target: Path | None) -> None:
    """Print the effective configuration as YAML."""
    from devsetup.core.config.loader import ConfigError, dump_config

    try:
        cfg, _ = _load(ctx, target)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.echo(dump_config(cfg), nl=False)
