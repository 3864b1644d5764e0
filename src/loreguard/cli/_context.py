"""Shared CLI plumbing: config loading and engine construction."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console

from loreguard.access.allowlist import StaticAllowList, build_allow_list
from loreguard.access.engine import AccessPolicyEngine
from loreguard.access.resolver import IdentityResolver
from loreguard.access.trace import DecisionTrace
from loreguard.core.config import LoreguardConfig, load_config_or_default
from loreguard.core.constants import ExitCode
from loreguard.core.exceptions import AllowListError, ConfigError
from loreguard.core.log import configure_logging

err_console = Console(stderr=True)


def load_cli_config(ctx: click.Context) -> LoreguardConfig:
    """Load config for the current invocation; exit 2 on a broken config."""
    path: Path | None = (ctx.obj or {}).get("config_path")
    try:
        config = load_config_or_default(path)
    except ConfigError as exc:
        err_console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)
    configure_logging(config.logging)
    return config


def load_cli_allow_list(config: LoreguardConfig) -> StaticAllowList:
    try:
        return build_allow_list(config)
    except AllowListError as exc:
        err_console.print(f"[red]Allow-list error:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)


def build_engine(
    config: LoreguardConfig, allow_list: StaticAllowList
) -> AccessPolicyEngine:
    observer = DecisionTrace(config.trace_path) if config.trace.enabled else None
    return AccessPolicyEngine(allow_list=allow_list, observer=observer)


def build_resolver(config: LoreguardConfig, allow_list: StaticAllowList) -> IdentityResolver:
    return IdentityResolver.from_config(config, allow_list)
