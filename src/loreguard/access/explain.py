"""
Access explain — human-readable output for ``loreguard check --explain``.

Usage::

    print(explain_decision(decision))

    # Or walk the whole rule ladder for one request:
    print(explain_access(engine, identity, "$$-bob-notes", requires_write=True))
"""

from __future__ import annotations

from loreguard.access.engine import AccessPolicyEngine, LadderStep
from loreguard.access.model import AccessDecision, Identity, ResourceRef, parse_resource_name


def _roles(identity: Identity) -> str:
    flags = (("admin", identity.is_admin), ("botmaker", identity.is_botmaker))
    roles = [name for name, on in flags if on]
    return ", ".join(roles) or "user"


def explain_decision(decision: AccessDecision) -> str:
    """
    Format an AccessDecision as a human-readable explanation.

    Returns a multi-line string suitable for CLI output.
    """
    lines = [
        f"Decision:      {decision.outcome.upper()}",
        f"Rule:          {decision.rule.value}",
        f"User:          {decision.handle}",
        f"Lorebook:      {decision.resource_name}",
        f"Access:        {'write' if decision.requires_write else 'read'}",
        f"Decided at:    {decision.decided_at}",
        "",
        f"Explanation:   {decision.explanation}",
    ]
    return "\n".join(lines)


def explain_access(
    engine: AccessPolicyEngine,
    identity: Identity,
    resource_name: str,
    requires_write: bool = False,
) -> str:
    """Show which rungs of the ladder were skipped and which one decided."""
    ref = parse_resource_name(resource_name)
    return format_walk(identity, ref, engine.walk(identity, ref), requires_write)


def format_walk(
    identity: Identity,
    ref: ResourceRef,
    steps: list[LadderStep],
    requires_write: bool = False,
) -> str:
    """Render rungs already walked, e.g. from ``engine.evaluate_steps``."""
    lines = [
        f"User:     {identity.handle!r}  ({_roles(identity)})",
        f"Lorebook: {ref.name!r}  hidden={ref.is_hidden}  personal={ref.is_personal}"
        + (f"  owner~{ref.owner_hint!r}" if ref.owner_hint else ""),
        f"Access:   {'write' if requires_write else 'read'}",
        "",
    ]
    for step in steps:
        status = "MATCH" if step.matched else "skip"
        lines.append(f"  Rule {step.name!r:16s} [{status}]")
        lines.append(f"      {step.reason}")
        if step.matched and step.rule is not None:
            lines.append(f"      → {step.rule.value}")
            if step.name != "default":
                lines.append("")
                lines.append("  (Remaining rules not evaluated; first match wins)")
    return "\n".join(lines)
