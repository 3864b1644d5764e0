"""
Lorebook access control.

Public API::

    from loreguard.access import AccessPolicyEngine, Identity, StaticAllowList

    engine = AccessPolicyEngine(allow_list=StaticAllowList({"alice": ["$$-bob-notes"]}))
    engine.can_access(Identity("alice", is_botmaker=True), "$$-bob-notes")
"""

from loreguard.access.allowlist import (
    AllowListProvider,
    StaticAllowList,
    build_allow_list,
    load_allow_list,
    parse_allow_list,
)
from loreguard.access.engine import AccessPolicyEngine
from loreguard.access.guards import (
    LorebookAction,
    can_import,
    require_access,
    require_import,
    validate_resource_name,
)
from loreguard.access.model import (
    AccessDecision,
    AccessRule,
    Identity,
    ResourceRef,
    parse_resource_name,
)
from loreguard.access.resolver import IdentityResolver, is_admin_profile, user_permissions
from loreguard.access.trace import DecisionTrace

__all__ = [
    "AccessDecision",
    "AccessPolicyEngine",
    "AccessRule",
    "AllowListProvider",
    "DecisionTrace",
    "Identity",
    "IdentityResolver",
    "LorebookAction",
    "ResourceRef",
    "StaticAllowList",
    "build_allow_list",
    "can_import",
    "is_admin_profile",
    "load_allow_list",
    "parse_allow_list",
    "parse_resource_name",
    "require_access",
    "require_import",
    "user_permissions",
    "validate_resource_name",
]
