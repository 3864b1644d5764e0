"""CLI commands: loreguard config show | validate."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich.console import Console

from loreguard.access.allowlist import build_allow_list
from loreguard.core.config import LoreguardConfig, _config_file_path, load_config
from loreguard.core.constants import ExitCode
from loreguard.core.exceptions import AllowListError, ConfigError

console = Console()


@click.group("config")
def config_group() -> None:
    """View and validate loreguard configuration."""


def _cfg_path(ctx: click.Context) -> Path:
    return (ctx.obj or {}).get("config_path") or _config_file_path()


@config_group.command("show")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Display the current configuration."""
    cfg_path = _cfg_path(ctx)
    if not cfg_path.exists():
        console.print(f"[red]Config not found:[/red] {cfg_path}")
        sys.exit(ExitCode.CONFIG_ERROR)

    try:
        cfg = load_config(cfg_path)
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)

    data = _config_to_dict(cfg)
    data["_config_path"] = str(cfg_path)

    if as_json:
        click.echo(json.dumps(data, indent=2))
    else:
        _print_config_rich(data, console)


@config_group.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate the config file and any allow-list file it references."""
    cfg_path = _cfg_path(ctx)
    if not cfg_path.exists():
        console.print(f"[red]Config not found:[/red] {cfg_path}")
        sys.exit(ExitCode.CONFIG_ERROR)

    try:
        cfg = load_config(cfg_path)
        allow_list = build_allow_list(cfg)
    except (ConfigError, AllowListError) as exc:
        console.print(f"[red]Config validation failed:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)

    console.print(
        f"[green]Config is valid:[/green] {cfg_path} "
        f"({len(cfg.access.admin_handles)} admin handle(s), {len(allow_list)} botmaker(s))"
    )


def _config_to_dict(cfg: LoreguardConfig) -> dict[str, object]:
    return cfg.model_dump(mode="json")


def _print_config_rich(data: dict[str, object], con: Console) -> None:
    con.print(f"\n[bold]loreguard config[/bold]  [dim]{data.get('_config_path', '')}[/dim]\n")
    for section, values in data.items():
        if section.startswith("_"):
            continue
        con.print(f"[cyan]\\[{section}][/cyan]")
        if isinstance(values, dict):
            for key, val in values.items():
                con.print(f"  {key} = {val!r}", markup=False, highlight=False)
        con.print()
