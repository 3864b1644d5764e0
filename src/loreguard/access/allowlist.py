"""
Botmaker allow-lists — which personal lorebooks a botmaker may touch.

Usage::

    allow_list = StaticAllowList({"alice": ["$$-bob-notes"]})
    allow_list = load_allow_list("~/.loreguard/botmakers.yaml")

YAML layout::

    botmakers:
      alice:
        - $$-bob-notes
        - $$-carol-world
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError, field_validator

from loreguard.access.model import Identity
from loreguard.core.config import LoreguardConfig
from loreguard.core.exceptions import AllowListError


@runtime_checkable
class AllowListProvider(Protocol):
    """Supplies the lorebook names explicitly granted to a botmaker."""

    def allowed_for(self, identity: Identity) -> Collection[str]:
        """Return granted names; an unknown handle yields an empty collection."""
        ...


class StaticAllowList:
    """In-memory allow-list built from a ``handle → names`` table."""

    def __init__(self, table: Mapping[str, Iterable[str]] | None = None) -> None:
        self._table: dict[str, frozenset[str]] = {
            handle: frozenset(names) for handle, names in (table or {}).items()
        }

    def allowed_for(self, identity: Identity) -> frozenset[str]:
        return self._table.get(identity.handle, frozenset())

    @property
    def botmakers(self) -> frozenset[str]:
        """Handles that have an entry in the table."""
        return frozenset(self._table)

    def merged(self, other: StaticAllowList) -> StaticAllowList:
        """Union of both tables, per handle."""
        table: dict[str, set[str]] = {h: set(n) for h, n in self._table.items()}
        for handle, names in other._table.items():
            table.setdefault(handle, set()).update(names)
        return StaticAllowList(table)

    def to_dict(self) -> dict[str, list[str]]:
        return {handle: sorted(names) for handle, names in sorted(self._table.items())}

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"StaticAllowList({self.to_dict()!r})"


class _AllowListFile(BaseModel):
    botmakers: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("botmakers")
    @classmethod
    def non_empty_entries(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        for handle, names in v.items():
            if not handle.strip():
                raise ValueError("botmaker handles must be non-empty")
            if any(not name for name in names):
                raise ValueError(f"botmaker {handle!r} has an empty lorebook name")
        return v


def load_allow_list(path: str | Path) -> StaticAllowList:
    """
    Load and validate an allow-list from a YAML file.

    Raises:
        AllowListError: if the file is missing, unreadable, or invalid.
    """
    p = Path(path).expanduser()
    if not p.exists():
        raise AllowListError(f"Allow-list file not found: {p}")
    try:
        content = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise AllowListError(f"Cannot read allow-list file {p}: {exc}") from exc
    return parse_allow_list(content, source=str(p))


def parse_allow_list(yaml_text: str, source: str = "<string>") -> StaticAllowList:
    """Parse and validate a YAML allow-list string."""
    import yaml

    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError as exc:
        raise AllowListError(f"YAML syntax error in {source}: {exc}") from exc

    if data is None:
        return StaticAllowList()
    if not isinstance(data, dict):
        raise AllowListError(
            f"Allow-list {source} must be a YAML mapping (got {type(data).__name__})"
        )

    try:
        parsed = _AllowListFile.model_validate(data)
    except ValidationError as exc:
        lines = [f"Allow-list validation failed in {source}:"]
        for err in exc.errors():
            loc = " → ".join(str(x) for x in err["loc"]) if err["loc"] else "(root)"
            lines.append(f"  {loc}: {err['msg']}")
        raise AllowListError("\n".join(lines)) from exc

    return StaticAllowList(parsed.botmakers)


def build_allow_list(config: LoreguardConfig) -> StaticAllowList:
    """Inline ``[botmakers]`` table merged with the optional YAML allow-list file."""
    allow_list = StaticAllowList(config.botmakers)
    if config.allow_list_path is not None:
        allow_list = allow_list.merged(load_allow_list(config.allow_list_path))
    return allow_list
