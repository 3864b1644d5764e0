"""
Caller-side guards for the lorebook handlers.

The policy engine answers yes/no. The handlers around it need a little more:
reject missing names before asking, turn a denial into a user-facing error
that does not reveal which rule fired, and enforce the naming rule for newly
imported lorebooks. These helpers do that.

Usage::

    decision = require_access(engine, identity, body.get("name"), LorebookAction.DELETE)
    require_import(identity, world_name)
"""

from __future__ import annotations

import logging
from enum import StrEnum

from loreguard.access.engine import AccessPolicyEngine
from loreguard.access.model import AccessDecision, Identity, parse_resource_name
from loreguard.core.exceptions import (
    AccessDeniedError,
    ImportNotAllowedError,
    InvalidResourceNameError,
)

logger = logging.getLogger(__name__)


class LorebookAction(StrEnum):
    GET = "get"
    EDIT = "edit"
    DELETE = "delete"

    @property
    def requires_write(self) -> bool:
        return self is not LorebookAction.GET


_DENIED_MESSAGES: dict[LorebookAction, str] = {
    LorebookAction.GET: "You do not have permission to access this lorebook",
    LorebookAction.EDIT: "You do not have permission to edit this lorebook",
    LorebookAction.DELETE: "You do not have permission to delete this lorebook",
}

IMPORT_DENIED_MESSAGE = "You can only import lorebooks with your own username prefix"


def validate_resource_name(name: object) -> str:
    """Return ``name`` unchanged unless it is missing or all whitespace."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidResourceNameError("Lorebook name is required")
    return name


def require_access(
    engine: AccessPolicyEngine,
    identity: Identity,
    name: object,
    action: LorebookAction,
) -> AccessDecision:
    """
    Check ``action`` on ``name`` for ``identity``.

    Raises:
        InvalidResourceNameError: if ``name`` is missing or blank.
        AccessDeniedError: if the policy denies the action.
    """
    resource_name = validate_resource_name(name)
    decision = engine.evaluate(identity, resource_name, requires_write=action.requires_write)
    if not decision.allowed:
        logger.info(
            "Denied %s of %r for %s (rule=%s)",
            action.value,
            resource_name,
            identity.handle,
            decision.rule.value,
        )
        raise AccessDeniedError(_DENIED_MESSAGES[action], action=action.value)
    return decision


def can_import(identity: Identity, name: str) -> bool:
    """Creation-time naming rule for imported lorebooks.

    A personal name must carry the importer's own handle unless the importer
    is an admin. Global and hidden names are not restricted here.
    """
    if identity.is_admin:
        return True
    ref = parse_resource_name(name)
    return not ref.is_personal or ref.is_owned_by(identity.handle)


def require_import(identity: Identity, name: object) -> str:
    """Validate an import name; returns it on success."""
    resource_name = validate_resource_name(name)
    if not can_import(identity, resource_name):
        logger.info("Denied import of %r for %s", resource_name, identity.handle)
        raise ImportNotAllowedError(IMPORT_DENIED_MESSAGE, action="import")
    return resource_name
