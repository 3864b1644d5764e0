"""Unit tests for human-readable access explanations."""

from __future__ import annotations

from loreguard.access.allowlist import StaticAllowList
from loreguard.access.engine import AccessPolicyEngine
from loreguard.access.explain import explain_access, explain_decision, format_walk
from loreguard.access.model import AccessDecision, Identity, parse_resource_name


class _CountingAllowList:
    def __init__(self, names: list[str]) -> None:
        self.names = names
        self.calls = 0

    def allowed_for(self, identity: Identity) -> list[str]:
        self.calls += 1
        return self.names


class TestExplainDecision:
    def test_allowed(self) -> None:
        decision = AccessPolicyEngine().evaluate(Identity("alice"), "$$-alice-notes")
        out = explain_decision(decision)
        assert "Decision:      ALLOWED" in out
        assert "Rule:          own_personal" in out
        assert "Access:        read" in out

    def test_denied_write(self) -> None:
        decision = AccessPolicyEngine().evaluate(Identity("alice"), "$$-bob-notes", True)
        out = explain_decision(decision)
        assert "DENIED" in out
        assert "default_deny" in out
        assert "Access:        write" in out


class TestExplainAccess:
    def test_walk_stops_at_match(self) -> None:
        out = explain_access(AccessPolicyEngine(), Identity("alice"), "global-lore")
        assert "'global'" in out
        assert "[MATCH]" in out
        assert "first match wins" in out
        assert "'botmaker'" not in out

    def test_default_rung(self) -> None:
        out = explain_access(AccessPolicyEngine(), Identity("alice"), "$$-bob-notes")
        assert out.count("[skip]") == 5
        assert "default_deny" in out
        assert "first match wins" not in out

    def test_roles_and_owner_hint(self) -> None:
        engine = AccessPolicyEngine(StaticAllowList({"alice": ["$$-bob-notes"]}))
        out = explain_access(
            engine, Identity("alice", is_botmaker=True), "$$-bob-notes", requires_write=True
        )
        assert "(botmaker)" in out
        assert "owner~'bob'" in out
        assert "Access:   write" in out
        assert "botmaker_allowed" in out

    def test_does_not_notify_observer(self) -> None:
        seen: list[AccessDecision] = []
        engine = AccessPolicyEngine(observer=seen.append)
        explain_access(engine, Identity("alice"), "global-lore")
        assert seen == []


class TestFormatWalk:
    def test_one_evaluation_feeds_both_views(self) -> None:
        provider = _CountingAllowList(["$$-bob-notes"])
        seen: list[AccessDecision] = []
        engine = AccessPolicyEngine(provider, observer=seen.append)
        ident = Identity("alice", is_botmaker=True)
        ref = parse_resource_name("$$-bob-notes")

        decision, steps = engine.evaluate_steps(ident, ref, requires_write=True)
        walk = format_walk(ident, ref, steps, requires_write=True)

        assert provider.calls == 1
        assert seen == [decision]
        assert decision.rule.value in walk
        assert "Access:   write" in walk

    def test_matches_explain_access(self) -> None:
        engine = AccessPolicyEngine()
        ident = Identity("alice")
        ref = parse_resource_name("$$-alice-notes")
        _, steps = engine.evaluate_steps(ident, ref)
        assert format_walk(ident, ref, steps) == explain_access(engine, ident, ref.name)
