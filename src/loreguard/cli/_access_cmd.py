"""CLI commands: check, import-check, permissions, trace tail."""

from __future__ import annotations

import json
import sys
from dataclasses import replace

import click
from rich.console import Console
from rich.table import Table

from loreguard.access.explain import explain_decision, format_walk
from loreguard.access.guards import can_import, validate_resource_name
from loreguard.access.model import Identity, parse_resource_name
from loreguard.access.resolver import IdentityResolver, user_permissions
from loreguard.access.trace import DecisionTrace
from loreguard.cli._context import (
    build_engine,
    build_resolver,
    err_console,
    load_cli_allow_list,
    load_cli_config,
)
from loreguard.core.constants import ExitCode
from loreguard.core.exceptions import InvalidResourceNameError

console = Console()


def _identity(resolver: IdentityResolver, handle: str, admin: bool, botmaker: bool) -> Identity:
    """Resolve ``handle`` as if it arrived with a logged-in profile."""
    identity = resolver.resolve({"user": {"profile": {"handle": handle, "admin": admin}}})
    if botmaker and not identity.is_botmaker:
        identity = replace(identity, is_botmaker=True)
    return identity


def _require_name(name: str) -> str:
    try:
        return validate_resource_name(name)
    except InvalidResourceNameError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(ExitCode.ERROR)


def _yes_no(flag: bool) -> str:
    return "[green]yes[/green]" if flag else "[dim]no[/dim]"


@click.command("check")
@click.argument("handle")
@click.argument("name")
@click.option("--write", is_flag=True, default=False, help="Check write (edit/delete) access.")
@click.option("--admin", is_flag=True, default=False, help="Treat the user as an admin.")
@click.option("--botmaker", is_flag=True, default=False, help="Treat the user as a botmaker.")
@click.option("--explain", is_flag=True, default=False, help="Show the rule ladder walk.")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_context
def check_cmd(
    ctx: click.Context,
    handle: str,
    name: str,
    write: bool,
    admin: bool,
    botmaker: bool,
    explain: bool,
    as_json: bool,
) -> None:
    """
    Evaluate access for HANDLE to lorebook NAME.

    Exits 0 when allowed, 5 when denied, 1 when NAME is empty.

    Example::

        loreguard check alice '$$-bob-notes' --write --explain
    """
    ref = parse_resource_name(_require_name(name))
    config = load_cli_config(ctx)
    allow_list = load_cli_allow_list(config)
    engine = build_engine(config, allow_list)
    identity = _identity(build_resolver(config, allow_list), handle, admin, botmaker)

    decision, steps = engine.evaluate_steps(identity, ref, requires_write=write)

    if explain and not as_json:
        click.echo(format_walk(identity, ref, steps, requires_write=write))
        click.echo("")

    if as_json:
        click.echo(json.dumps(decision.to_dict(), indent=2))
    else:
        click.echo(explain_decision(decision))

    if not decision.allowed:
        sys.exit(ExitCode.PERMISSION_ERROR)


@click.command("import-check")
@click.argument("handle")
@click.argument("name")
@click.option("--admin", is_flag=True, default=False, help="Treat the user as an admin.")
@click.pass_context
def import_check_cmd(ctx: click.Context, handle: str, name: str, admin: bool) -> None:
    """Check whether HANDLE may import a lorebook called NAME."""
    _require_name(name)
    config = load_cli_config(ctx)
    allow_list = load_cli_allow_list(config)
    identity = _identity(build_resolver(config, allow_list), handle, admin, False)

    if can_import(identity, name):
        console.print(f"[green]✓[/green]  {handle} may import {name!r}")
        return
    console.print(
        f"[red]✗[/red]  {handle} may not import {name!r}: "
        "personal lorebooks must carry the importer's own prefix"
    )
    sys.exit(ExitCode.PERMISSION_ERROR)


@click.command("permissions")
@click.argument("handle")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_context
def permissions_cmd(ctx: click.Context, handle: str, as_json: bool) -> None:
    """Show the permission summary for HANDLE."""
    config = load_cli_config(ctx)
    allow_list = load_cli_allow_list(config)
    identity = _identity(build_resolver(config, allow_list), handle, False, False)
    summary = user_permissions(identity, allow_list)

    if as_json:
        click.echo(json.dumps(summary, indent=2))
        return

    console.print(f"\n[bold]Permissions for {identity.handle}[/bold]\n")
    console.print(f"  {'admin':<12} {_yes_no(identity.is_admin)}")
    console.print(f"  {'botmaker':<12} {_yes_no(identity.is_botmaker)}")
    books = sorted(allow_list.allowed_for(identity))
    if books:
        console.print("\n  Allow-listed lorebooks:")
        for book in books:
            console.print(f"    {book}", markup=False, highlight=False)
    console.print()


@click.group("trace")
def trace_group() -> None:
    """Inspect the access decision trace."""


@trace_group.command("tail")
@click.option("-n", "limit", default=20, show_default=True, help="Number of entries.")
@click.option("--handle", default=None, help="Only decisions for this user.")
@click.option("--denied", "denied_only", is_flag=True, default=False, help="Only denials.")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_context
def trace_tail(
    ctx: click.Context, limit: int, handle: str | None, denied_only: bool, as_json: bool
) -> None:
    """Show the most recent access decisions."""
    config = load_cli_config(ctx)
    path = config.trace_path
    entries = (
        DecisionTrace(path).tail(limit, handle=handle, denied_only=denied_only)
        if path.exists()
        else []
    )

    if as_json:
        click.echo(json.dumps(entries, indent=2))
        return

    if not entries:
        console.print(f"No decisions recorded yet: {path}")
        return

    table = Table(title=f"Access decisions ({path})")
    for column in ("decided_at", "handle", "resource_name", "access", "outcome", "rule"):
        table.add_column(column)
    for entry in entries:
        outcome = "[green]allowed[/green]" if entry.get("allowed") else "[red]denied[/red]"
        table.add_row(
            str(entry.get("decided_at", "")),
            str(entry.get("handle", "")),
            str(entry.get("resource_name", "")),
            "write" if entry.get("requires_write") else "read",
            outcome,
            str(entry.get("rule", "")),
        )
    console.print(table)
