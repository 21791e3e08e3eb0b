from __future__ import annotations

from core.models import ChatAddress
from core.policy import (
    RoutePolicyConfig,
    RoutePolicyRule,
    build_route_policy,
    evaluate_route_policy,
)


def _policy(allow: list[dict], default: str = "deny") -> RoutePolicyConfig:
    policy = build_route_policy({"allow": allow, "default": default})
    assert policy is not None
    return policy


def test_absent_policy_has_no_opinion() -> None:
    source = ChatAddress("telegram", "1")
    target = ChatAddress("telegram", "-100")
    assert evaluate_route_policy(source, target, None) is None
    assert build_route_policy(None) is None


def test_allow_rule_permits_matching_target() -> None:
    policy = _policy([{"from": "telegram", "to": "telegram:-100"}])

    decision = evaluate_route_policy(
        ChatAddress("telegram", "1"), ChatAddress("telegram", "-100"), policy
    )

    assert decision is not None
    assert decision.allowed
    assert decision.reason == "matched rule telegram→telegram:-100"


def test_unmatched_target_falls_back_to_deny_default() -> None:
    policy = _policy([{"from": "telegram", "to": "telegram:-100"}])

    decision = evaluate_route_policy(
        ChatAddress("telegram", "1"), ChatAddress("telegram", "-200"), policy
    )

    assert decision is not None
    assert not decision.allowed
    assert "default=deny" in decision.reason
    assert "telegram:1 → telegram:-200" in decision.reason


def test_default_allow_applies_when_nothing_matches() -> None:
    policy = _policy([], default="allow")

    decision = evaluate_route_policy(
        ChatAddress("telegram", "1"), ChatAddress("discord", "general"), policy
    )

    assert decision is not None
    assert decision.allowed
    assert "default=allow" in decision.reason


def test_first_matching_rule_wins() -> None:
    policy = RoutePolicyConfig(
        allow=(
            RoutePolicyRule(from_pattern="telegram", to_pattern="telegram"),
            RoutePolicyRule(
                from_pattern="telegram:1",
                to_pattern="telegram:-100",
                chat_ids=frozenset({"-999"}),
            ),
        ),
        default="deny",
    )

    decision = evaluate_route_policy(
        ChatAddress("telegram", "1"), ChatAddress("telegram", "-100"), policy
    )

    assert decision is not None
    assert decision.allowed
    assert decision.reason == "matched rule telegram→telegram"


def test_chat_ids_restrict_destination() -> None:
    policy = _policy([{"from": "telegram", "to": "telegram:*", "chat_ids": ["-100", " -300 "]}])
    source = ChatAddress("telegram", "1")

    allowed = evaluate_route_policy(source, ChatAddress("telegram", "-300"), policy)
    denied = evaluate_route_policy(source, ChatAddress("telegram", "-200"), policy)

    assert allowed is not None and allowed.allowed
    assert denied is not None and not denied.allowed


def test_empty_chat_ids_do_not_restrict() -> None:
    policy = _policy([{"from": "telegram", "to": "telegram", "chat_ids": []}])

    decision = evaluate_route_policy(
        ChatAddress("telegram", "1"), ChatAddress("telegram", "-777"), policy
    )

    assert decision is not None and decision.allowed


def test_alias_patterns_resolve_through_alias_table() -> None:
    policy = _policy([{"from": "telegram:me-dm", "to": "telegram:dev-team"}])
    aliases = {"dev-team": "-100123", "me-dm": "42"}

    decision = evaluate_route_policy(
        ChatAddress("telegram", "42"), ChatAddress("telegram", "-100123"), policy, aliases
    )

    assert decision is not None and decision.allowed


def test_alias_casing_in_policy_patterns() -> None:
    source = ChatAddress("telegram", "1")
    target = ChatAddress("telegram", "-100")

    mixed_case_pattern = _policy([{"from": "telegram", "to": "telegram:Dev-Team"}])
    allowed = evaluate_route_policy(source, target, mixed_case_pattern, {"dev-team": "-100"})
    assert allowed is not None and allowed.allowed

    mixed_case_alias = _policy([{"from": "telegram", "to": "telegram:DevTeam"}])
    denied = evaluate_route_policy(source, target, mixed_case_alias, {"DevTeam": "-100"})
    assert denied is not None and not denied.allowed


def test_source_must_match_as_well() -> None:
    policy = _policy([{"from": "telegram:42", "to": "telegram"}])

    decision = evaluate_route_policy(
        ChatAddress("telegram", "43"), ChatAddress("telegram", "-100"), policy
    )

    assert decision is not None and not decision.allowed


def test_malformed_entries_are_skipped_at_load() -> None:
    policy = build_route_policy(
        {
            "allow": [
                "telegram",
                {"from": "telegram"},
                {"from": 5, "to": "telegram"},
                {"from": "telegram", "to": "telegram", "chat_ids": "-100"},
                {"from": "telegram", "to": "telegram:-100"},
            ],
            "default": "maybe",
        }
    )

    assert policy is not None
    assert len(policy.allow) == 1
    assert policy.allow[0].to_pattern == "telegram:-100"
    assert policy.default == "deny"


def test_non_object_policy_fails_closed() -> None:
    policy = build_route_policy(["telegram"])

    decision = evaluate_route_policy(
        ChatAddress("telegram", "1"), ChatAddress("telegram", "2"), policy
    )

    assert decision is not None and not decision.allowed
