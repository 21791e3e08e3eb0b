"""Route pattern matching (core domain).

Pattern forms:
- "telegram"          any chat on the telegram channel
- "telegram:*"        same, explicit wildcard
- "telegram:-1001"    exactly the chat with id "-1001"
- "telegram:dev-team" the chat the "dev-team" alias resolves to
"""

from __future__ import annotations

from typing import Mapping, Optional

from core.aliases import resolve_chat_alias

WILDCARD = "*"


def matches_route_pattern(
    pattern: str,
    channel: str,
    chat_id: str,
    aliases: Optional[Mapping[str, str]] = None,
) -> bool:
    """Return True when pattern covers the (channel, chat_id) pair."""

    # The whole pattern is lower-cased, so alias keys are looked up lower-case.
    normalized = pattern.strip().lower()
    normalized_channel = channel.strip().lower()
    pattern_channel, sep, selector = normalized.partition(":")

    if not sep:
        return normalized == normalized_channel

    if pattern_channel.strip() != normalized_channel:
        return False

    selector = selector.strip()
    if not selector or selector == WILDCARD:
        return True

    # Aliases win over literal ids when both spell the same string.
    resolved = resolve_chat_alias(aliases, selector)
    return resolved.strip().lower() == chat_id.strip().lower()


def matches_source_pattern(
    pattern: str,
    channel: str,
    chat_id: str,
    aliases: Optional[Mapping[str, str]] = None,
) -> bool:
    """Forwarding variant: a bare "*" also matches every channel."""

    if pattern.strip() == WILDCARD:
        return True
    return matches_route_pattern(pattern, channel, chat_id, aliases)
