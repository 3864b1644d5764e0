"""
Access policy engine — deterministic first-match-wins lorebook authorization.

Usage::

    engine = AccessPolicyEngine(allow_list=StaticAllowList({"alice": ["$$-bob-notes"]}))
    engine.can_access(Identity("alice", is_botmaker=True), "$$-bob-notes", requires_write=True)

Rule ladder (first match wins):

    1. admin             → allow   (even hidden lorebooks)
    2. #hidden# in name  → deny
    3. $$-<own handle>-  → allow
    4. no $$- prefix     → allow   (global lorebook)
    5. botmaker          → allow iff the name is on the botmaker's allow-list
    6. otherwise         → deny

``requires_write`` is recorded on every decision but read and write share
one rule set.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from loreguard.access.allowlist import AllowListProvider
from loreguard.access.model import (
    AccessDecision,
    AccessRule,
    Identity,
    ResourceRef,
    parse_resource_name,
    personal_prefix_for,
)
from loreguard.core.constants import HIDDEN_MARKER, PERSONAL_PREFIX

logger = logging.getLogger(__name__)

DecisionObserver = Callable[[AccessDecision], None]

_ALLOWING_RULES = frozenset(
    {
        AccessRule.ADMIN_OVERRIDE,
        AccessRule.OWN_PERSONAL,
        AccessRule.GLOBAL_RESOURCE,
        AccessRule.BOTMAKER_ALLOWED,
    }
)


class LadderStep:
    """Result of evaluating one rung of the ladder."""

    __slots__ = ("name", "rule", "reason")

    def __init__(self, name: str, rule: AccessRule | None, reason: str) -> None:
        self.name = name
        self.rule = rule
        self.reason = reason

    @property
    def matched(self) -> bool:
        return self.rule is not None


class AccessPolicyEngine:
    """
    Stateless lorebook access policy.

    Parameters
    ----------
    allow_list:
        Botmaker allow-list provider. Queried on every botmaker check, never
        cached. ``None`` means no botmaker has any grant.
    observer:
        Called with every decision (e.g. a :class:`DecisionTrace`). Observer
        failures are logged and never change the decision.
    """

    def __init__(
        self,
        allow_list: AllowListProvider | None = None,
        observer: DecisionObserver | None = None,
    ) -> None:
        self._allow_list = allow_list
        self._observer = observer

    def can_access(
        self, identity: Identity, resource_name: str, requires_write: bool = False
    ) -> bool:
        return self.evaluate(identity, resource_name, requires_write).allowed

    def evaluate(
        self, identity: Identity, resource_name: str, requires_write: bool = False
    ) -> AccessDecision:
        """Evaluate the rule ladder for a raw lorebook name."""
        return self.evaluate_ref(identity, parse_resource_name(resource_name), requires_write)

    def evaluate_ref(
        self, identity: Identity, ref: ResourceRef, requires_write: bool = False
    ) -> AccessDecision:
        """Evaluate the rule ladder for an already-parsed name."""
        return self.evaluate_steps(identity, ref, requires_write)[0]

    def evaluate_steps(
        self, identity: Identity, ref: ResourceRef, requires_write: bool = False
    ) -> tuple[AccessDecision, list[LadderStep]]:
        """
        Evaluate ``ref`` once and return the decision with the rungs walked.

        The observer is notified exactly once, as for :meth:`evaluate_ref`.
        """
        logger.debug(
            "[RBAC] Checking access for user: %s, lorebook: %s, requiresWrite: %s",
            identity.handle,
            ref.name,
            requires_write,
        )
        steps = self.walk(identity, ref)
        final = steps[-1]
        rule = final.rule or AccessRule.DEFAULT_DENY
        decision = AccessDecision(
            allowed=rule in _ALLOWING_RULES,
            rule=rule,
            handle=identity.handle,
            resource_name=ref.name,
            requires_write=requires_write,
            explanation=final.reason,
        )
        logger.debug(
            "[RBAC] Access %s for %s to %s (rule=%s)",
            decision.outcome,
            identity.handle,
            ref.name,
            rule.value,
        )
        self._notify(decision)
        return decision, steps

    def walk(self, identity: Identity, ref: ResourceRef) -> list[LadderStep]:
        """Evaluate rungs in order, stopping at the first match.

        The last step is always a match; the default-deny rung catches
        everything the earlier rungs let through.
        """
        steps: list[LadderStep] = []
        for name, check in _LADDER:
            rule, reason = check(self, identity, ref)
            steps.append(LadderStep(name, rule, reason))
            if rule is not None:
                break
        return steps

    def allowed_for(self, identity: Identity) -> frozenset[str]:
        """Names granted to ``identity``; provider failures yield the empty set."""
        if self._allow_list is None:
            return frozenset()
        try:
            return frozenset(self._allow_list.allowed_for(identity))
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "[RBAC] Allow-list lookup failed for %s, treating as empty: %s",
                identity.handle,
                exc,
            )
            return frozenset()

    def _notify(self, decision: AccessDecision) -> None:
        if self._observer is None:
            return
        try:
            self._observer(decision)
        except Exception:  # noqa: BLE001
            logger.exception("[RBAC] Decision observer failed for %s", decision.resource_name)


# ---------------------------------------------------------------------------
# Ladder rungs
# ---------------------------------------------------------------------------

_Check = Callable[[AccessPolicyEngine, Identity, ResourceRef], tuple[AccessRule | None, str]]


def _check_admin(
    engine: AccessPolicyEngine, identity: Identity, ref: ResourceRef
) -> tuple[AccessRule | None, str]:
    if identity.is_admin:
        return AccessRule.ADMIN_OVERRIDE, f"{identity.handle!r} is an admin"
    return None, f"{identity.handle!r} is not an admin"


def _check_hidden(
    engine: AccessPolicyEngine, identity: Identity, ref: ResourceRef
) -> tuple[AccessRule | None, str]:
    if ref.is_hidden:
        return AccessRule.HIDDEN_RESOURCE, f"name contains {HIDDEN_MARKER!r} (admin-only)"
    return None, f"name does not contain {HIDDEN_MARKER!r}"


def _check_own(
    engine: AccessPolicyEngine, identity: Identity, ref: ResourceRef
) -> tuple[AccessRule | None, str]:
    prefix = personal_prefix_for(identity.handle)
    if ref.is_owned_by(identity.handle):
        return AccessRule.OWN_PERSONAL, f"name starts with {prefix!r} (own personal lorebook)"
    return None, f"name does not start with {prefix!r}"


def _check_global(
    engine: AccessPolicyEngine, identity: Identity, ref: ResourceRef
) -> tuple[AccessRule | None, str]:
    if not ref.is_personal:
        return AccessRule.GLOBAL_RESOURCE, f"no {PERSONAL_PREFIX!r} prefix (global lorebook)"
    return None, f"{PERSONAL_PREFIX!r} prefix (another user's personal lorebook)"


def _check_botmaker(
    engine: AccessPolicyEngine, identity: Identity, ref: ResourceRef
) -> tuple[AccessRule | None, str]:
    if not identity.is_botmaker:
        return None, f"{identity.handle!r} is not a botmaker"
    if ref.name in engine.allowed_for(identity):
        return AccessRule.BOTMAKER_ALLOWED, "name is on the botmaker's allow-list"
    return AccessRule.BOTMAKER_NOT_LISTED, "name is not on the botmaker's allow-list"


def _check_default(
    engine: AccessPolicyEngine, identity: Identity, ref: ResourceRef
) -> tuple[AccessRule | None, str]:
    return AccessRule.DEFAULT_DENY, "no rule grants access (default deny)"


_LADDER: tuple[tuple[str, _Check], ...] = (
    ("admin", _check_admin),
    ("hidden", _check_hidden),
    ("own_personal", _check_own),
    ("global", _check_global),
    ("botmaker", _check_botmaker),
    ("default", _check_default),
)
