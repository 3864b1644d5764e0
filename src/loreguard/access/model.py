"""
Access data model — identities, parsed lorebook names, and decisions.

Lorebook names encode ownership and visibility as string conventions::

    "world-lore"            global, readable and writable by everyone
    "$$-alice-notes"        personal lorebook owned by "alice"
    "secret#hidden#book"    admin-only, whatever else the name says

:func:`parse_resource_name` turns such a name into a :class:`ResourceRef`
once, at the boundary, so the engine never does string surgery itself.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from loreguard.core.constants import HANDLE_SEPARATOR, HIDDEN_MARKER, PERSONAL_PREFIX


@dataclass(frozen=True)
class Identity:
    """The requester, resolved once per request."""

    handle: str
    is_admin: bool = False
    is_botmaker: bool = False


@dataclass(frozen=True)
class ResourceRef:
    """A lorebook name with its naming conventions decoded."""

    name: str
    is_hidden: bool
    is_personal: bool

    def is_owned_by(self, handle: str) -> bool:
        """True if the name carries ``$$-<handle>-`` as its prefix."""
        return self.name.startswith(personal_prefix_for(handle))

    @property
    def owner_hint(self) -> str | None:
        """Best-effort owner for display.

        Handles may themselves contain the separator ("default-user"), so
        this is never used to decide ownership; see :meth:`is_owned_by`.
        """
        if not self.is_personal:
            return None
        rest = self.name[len(PERSONAL_PREFIX) :]
        owner, sep, _ = rest.partition(HANDLE_SEPARATOR)
        return owner if sep and owner else None


def personal_prefix_for(handle: str) -> str:
    return f"{PERSONAL_PREFIX}{handle}{HANDLE_SEPARATOR}"


def parse_resource_name(name: str) -> ResourceRef:
    """Decode the legacy lorebook naming conventions."""
    return ResourceRef(
        name=name,
        is_hidden=HIDDEN_MARKER in name,
        is_personal=name.startswith(PERSONAL_PREFIX),
    )


class AccessRule(StrEnum):
    """Which rule of the access ladder produced a decision."""

    ADMIN_OVERRIDE = "admin_override"
    HIDDEN_RESOURCE = "hidden_resource"
    OWN_PERSONAL = "own_personal"
    GLOBAL_RESOURCE = "global_resource"
    BOTMAKER_ALLOWED = "botmaker_allowed"
    BOTMAKER_NOT_LISTED = "botmaker_not_listed"
    DEFAULT_DENY = "default_deny"


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of a single access check. Never persisted by the engine."""

    allowed: bool
    rule: AccessRule
    handle: str
    resource_name: str
    requires_write: bool
    explanation: str
    decided_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def __bool__(self) -> bool:
        return self.allowed

    @property
    def outcome(self) -> str:
        return "allowed" if self.allowed else "denied"

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["rule"] = self.rule.value
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))
