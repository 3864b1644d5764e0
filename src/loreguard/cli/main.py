"""
loreguard CLI entry point.

Commands:
  loreguard check HANDLE NAME          — evaluate read/write access to a lorebook
  loreguard import-check HANDLE NAME   — check the naming rule for an import
  loreguard permissions HANDLE         — show a user's permission summary
  loreguard trace tail                 — show recent recorded decisions
  loreguard config show | validate     — inspect the configuration
"""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console

from loreguard import __version__
from loreguard.cli._access_cmd import check_cmd, import_check_cmd, permissions_cmd, trace_group
from loreguard.cli._config_cmd import config_group

console = Console()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "--version", "-V", message="loreguard %(version)s")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: $LOREGUARD_CONFIG or ~/.loreguard/config.toml).",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """loreguard — access control for lorebook files."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


cli.add_command(check_cmd)
cli.add_command(import_check_cmd)
cli.add_command(permissions_cmd)
cli.add_command(trace_group)
cli.add_command(config_group)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
