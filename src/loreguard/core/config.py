"""loreguard configuration: Pydantic model, load, and save."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from loreguard.core.constants import (
    CONFIG_FILENAME,
    DEFAULT_ADMIN_HANDLES,
    LOREGUARD_DIR_NAME,
    TRACE_FILENAME,
)
from loreguard.core.exceptions import ConfigError, ConfigNotFoundError


def loreguard_dir() -> Path:
    """Return the loreguard config directory (~/.loreguard), creating it if needed."""
    d = Path.home() / LOREGUARD_DIR_NAME
    d.mkdir(mode=0o700, parents=True, exist_ok=True)
    return d


def _split_csv(v: Any) -> Any:
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class AccessConfig(BaseModel):
    admin_handles: list[str] = Field(default_factory=lambda: sorted(DEFAULT_ADMIN_HANDLES))
    allow_list_file: str = ""  # optional YAML allow-list, merged with [botmakers]

    @field_validator("admin_handles", mode="before")
    @classmethod
    def parse_admin_handles(cls, v: Any) -> Any:
        """Accept both list and comma-separated string."""
        return _split_csv(v)

    @field_validator("admin_handles")
    @classmethod
    def reject_blank_handles(cls, v: list[str]) -> list[str]:
        if any(not h.strip() for h in v):
            raise ValueError("admin_handles must not contain empty handles")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "text"  # "text" | "json"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v.lower() not in ("text", "json"):
            raise ValueError("Log format must be 'text' or 'json'")
        return v.lower()


class TraceConfig(BaseModel):
    enabled: bool = False
    path: str = ""  # empty → use default


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------


class LoreguardConfig(BaseModel):
    """Root loreguard configuration model."""

    access: AccessConfig = Field(default_factory=AccessConfig)
    # botmaker handle → lorebook names that botmaker may access
    botmakers: dict[str, list[str]] = Field(default_factory=dict)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    trace: TraceConfig = Field(default_factory=TraceConfig)

    @field_validator("botmakers")
    @classmethod
    def validate_botmakers(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        for handle, names in v.items():
            if not handle.strip():
                raise ValueError("botmaker handles must be non-empty")
            if any(not n for n in names):
                raise ValueError(f"botmaker {handle!r} has an empty lorebook name")
        return v

    # Computed paths (not stored in config file)
    _config_path: Path | None = None

    @property
    def trace_path(self) -> Path:
        if self.trace.path:
            return Path(self.trace.path).expanduser()
        return loreguard_dir() / TRACE_FILENAME

    @property
    def allow_list_path(self) -> Path | None:
        if self.access.allow_list_file:
            return Path(self.access.allow_list_file).expanduser()
        return None


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def _config_file_path() -> Path:
    if env_path := os.environ.get("LOREGUARD_CONFIG"):
        return Path(env_path)
    return Path.home() / LOREGUARD_DIR_NAME / CONFIG_FILENAME


def load_config(path: Path | None = None) -> LoreguardConfig:
    """
    Load LoreguardConfig from TOML file, overlaid with environment variables.

    Priority (highest to lowest):
      1. Environment variables (LOREGUARD_*)
      2. Config file (~/.loreguard/config.toml)
    """
    import tomllib

    cfg_path = path or _config_file_path()

    if not cfg_path.exists():
        raise ConfigNotFoundError(f"Config file not found: {cfg_path}")

    try:
        with open(cfg_path, "rb") as f:
            data = tomllib.load(f)
    except Exception as exc:
        raise ConfigError(f"Cannot read config file {cfg_path}: {exc}") from exc

    return _validate(data, cfg_path)


def load_config_or_default(path: Path | None = None) -> LoreguardConfig:
    """Like :func:`load_config`, but a missing file yields the defaults (plus env overrides)."""
    cfg_path = path or _config_file_path()
    if not cfg_path.exists():
        return _validate({}, cfg_path)
    return load_config(cfg_path)


def _validate(data: dict[str, Any], cfg_path: Path) -> LoreguardConfig:
    _apply_env_overrides(data)

    try:
        config = LoreguardConfig.model_validate(data)
    except Exception as exc:
        raise ConfigError(f"Invalid config at {cfg_path}: {exc}") from exc

    config._config_path = cfg_path
    return config


def _apply_env_overrides(data: dict[str, Any]) -> None:
    """Overlay LOREGUARD_* environment variables onto the parsed TOML data."""
    if level := os.environ.get("LOREGUARD_LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = level
    if handles := os.environ.get("LOREGUARD_ADMIN_HANDLES"):
        data.setdefault("access", {})["admin_handles"] = handles
    if allow_list := os.environ.get("LOREGUARD_ALLOW_LIST_FILE"):
        data.setdefault("access", {})["allow_list_file"] = allow_list
    if trace_path := os.environ.get("LOREGUARD_TRACE_PATH"):
        trace = data.setdefault("trace", {})
        trace["path"] = trace_path
        trace["enabled"] = True


def save_config(config_data: dict[str, Any], path: Path | None = None) -> Path:
    """Write config dict to TOML file with secure permissions (0600)."""
    import tomli_w

    cfg_path = path or _config_file_path()
    cfg_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    # Write atomically
    tmp_path = cfg_path.with_suffix(".tmp")
    try:
        with open(tmp_path, "wb") as f:
            tomli_w.dump(config_data, f)
        tmp_path.rename(cfg_path)
    except Exception as exc:
        tmp_path.unlink(missing_ok=True)
        raise ConfigError(f"Cannot write config to {cfg_path}: {exc}") from exc

    cfg_path.chmod(0o600)
    return cfg_path
