"""Chat alias resolution (core domain)."""

from __future__ import annotations

from typing import Mapping, Optional


def resolve_chat_alias(aliases: Optional[Mapping[str, str]], alias_or_id: str) -> str:
    """Return the chat id configured for an alias, or the input unchanged.

    A missing alias is not an error: the value is treated as a literal chat id.
    """

    if not aliases or not alias_or_id:
        return alias_or_id
    return aliases.get(alias_or_id, alias_or_id)


def alias_for_chat_id(aliases: Optional[Mapping[str, str]], chat_id: str) -> Optional[str]:
    """Reverse lookup: the first alias name pointing at chat_id."""

    if not aliases:
        return None
    for alias, target in aliases.items():
        if target == chat_id:
            return alias
    return None
