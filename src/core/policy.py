"""Cross-context route policy (core domain).

Decides whether an agent may send a message from the chat its session is
bound to into another chat. The allow list is read from configuration only
and cannot be changed at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Iterable, List, Mapping, Optional

from core.models import ChatAddress, RouteDecision
from core.patterns import matches_route_pattern

LOGGER = logging.getLogger(__name__)

DEFAULT_ACTIONS = ("allow", "deny")


@dataclass(frozen=True)
class RoutePolicyRule:
    """One entry of the ordered allow list."""

    from_pattern: str
    to_pattern: str
    chat_ids: frozenset[str] = frozenset()


@dataclass(frozen=True)
class RoutePolicyConfig:
    """Parsed cross_context_routes block."""

    allow: tuple[RoutePolicyRule, ...] = ()
    default: str = "deny"


def _string_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return []
    if not isinstance(value, list):
        return None
    items: List[str] = []
    for item in value:
        if isinstance(item, (str, int)) and not isinstance(item, bool):
            items.append(str(item).strip())
        else:
            return None
    return items


def _build_policy_rule(entry: Any) -> Optional[RoutePolicyRule]:
    if not isinstance(entry, dict):
        return None
    from_pattern = entry.get("from")
    to_pattern = entry.get("to")
    if not isinstance(from_pattern, str) or not from_pattern.strip():
        return None
    if not isinstance(to_pattern, str) or not to_pattern.strip():
        return None
    chat_ids = _string_list(entry.get("chat_ids"))
    if chat_ids is None:
        return None
    return RoutePolicyRule(
        from_pattern=from_pattern,
        to_pattern=to_pattern,
        chat_ids=frozenset(chat_id for chat_id in chat_ids if chat_id),
    )


def build_route_policy(raw: Any) -> Optional[RoutePolicyConfig]:
    """Parse the raw cross_context_routes block.

    Returns None when the block is absent so callers keep their previous
    authorization behaviour. A block that is present but unusable fails
    closed: it becomes an empty allow list with the "deny" default.
    """

    if raw is None:
        return None
    if not isinstance(raw, dict):
        LOGGER.warning("cross_context_routes must be an object, denying all routes")
        return RoutePolicyConfig()

    raw_allow = raw.get("allow", [])
    if not isinstance(raw_allow, list):
        LOGGER.warning("cross_context_routes.allow must be a list, ignoring it")
        raw_allow = []

    rules: List[RoutePolicyRule] = []
    for index, entry in enumerate(raw_allow):
        rule = _build_policy_rule(entry)
        if rule is None:
            LOGGER.warning("Skipping malformed cross_context_routes.allow[%s]: %r", index, entry)
            continue
        rules.append(rule)

    default = raw.get("default", "deny")
    if default not in DEFAULT_ACTIONS:
        LOGGER.warning("Unknown cross_context_routes.default %r, using 'deny'", default)
        default = "deny"

    return RoutePolicyConfig(allow=tuple(rules), default=default)


def _rule_matches(
    rule: RoutePolicyRule,
    source: ChatAddress,
    target: ChatAddress,
    aliases: Optional[Mapping[str, str]],
) -> bool:
    if not matches_route_pattern(rule.from_pattern, source.channel, source.chat_id, aliases):
        return False
    if not matches_route_pattern(rule.to_pattern, target.channel, target.chat_id, aliases):
        return False
    # The explicit id list narrows the destination beyond the "to" pattern.
    if rule.chat_ids and target.chat_id.strip() not in rule.chat_ids:
        return False
    return True


def evaluate_route_policy(
    source: ChatAddress,
    target: ChatAddress,
    policy: Optional[RoutePolicyConfig],
    aliases: Optional[Mapping[str, str]] = None,
) -> Optional[RouteDecision]:
    """Evaluate whether a cross-context send is permitted.

    Returns None when no policy is configured ("no opinion"). Otherwise the
    allow list is scanned in order and the first matching rule wins; the
    default action only applies when nothing matched.
    """

    if policy is None:
        return None

    rule = first_matching_rule(source, target, policy.allow, aliases)
    if rule is not None:
        return RouteDecision(
            allowed=True,
            reason=f"matched rule {rule.from_pattern}→{rule.to_pattern}",
        )

    return RouteDecision(
        allowed=policy.default == "allow",
        reason=f"default={policy.default}, no rule matched {source} → {target}",
    )


def first_matching_rule(
    source: ChatAddress,
    target: ChatAddress,
    rules: Iterable[RoutePolicyRule],
    aliases: Optional[Mapping[str, str]] = None,
) -> Optional[RoutePolicyRule]:
    """Return the rule that would authorize the route, if any."""

    for rule in rules:
        if _rule_matches(rule, source, target, aliases):
            return rule
    return None
