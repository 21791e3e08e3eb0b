"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core routing engine.
"""

from __future__ import annotations

from typing import Any, Optional

from core.models import MessageContext

CHANNEL = "telegram"


def chat_title(chat: Any) -> str:
    """Return a display title for a chat, user or channel entity."""

    title = getattr(chat, "title", None)
    if title:
        return str(title)
    first = getattr(chat, "first_name", None)
    last = getattr(chat, "last_name", None)
    if first or last:
        return " ".join(part for part in [first, last] if part)
    username = getattr(chat, "username", None)
    if username:
        return f"@{username}"
    entity_id = getattr(chat, "id", None)
    return str(entity_id or "unknown")


def chat_type(chat: Any, is_private: bool = False) -> str:
    """Classify a chat entity as dm, group, supergroup or channel."""

    if is_private or getattr(chat, "first_name", None) is not None:
        return "dm"
    if getattr(chat, "broadcast", False):
        return "channel"
    if getattr(chat, "megagroup", False):
        return "supergroup"
    return "group"


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


async def build_context(event: Any) -> MessageContext:
    """Build a core MessageContext from a Telethon NewMessage event."""

    message = event.message
    chat = await event.get_chat()
    sender = await event.get_sender()

    sender_id = getattr(message, "sender_id", None)
    if sender_id is None and sender is not None:
        sender_id = getattr(sender, "id", None)

    return MessageContext(
        channel=CHANNEL,
        chat_id=str(event.chat_id),
        chat_title=chat_title(chat) if chat is not None else str(event.chat_id),
        sender_id=str(sender_id) if sender_id is not None else "",
        # Media-only messages carry no text; the forwarder skips them unless
        # a transform adds some.
        text=message.raw_text or None,
        sender_first_name=_optional_str(getattr(sender, "first_name", None)),
        sender_last_name=_optional_str(getattr(sender, "last_name", None)),
        sender_username=_optional_str(getattr(sender, "username", None)),
        message_id=message.id,
        chat_type=chat_type(chat, bool(getattr(event, "is_private", False))),
    )
