"""Telegram sender adapter backed by the logged-in Telethon client.

Messages are sent from the user's own account, so forwards look like they
were posted by the account running the router.
"""

from __future__ import annotations

from typing import Optional

from telethon import errors

from core.ports import DeliveryError


def _entity_ref(target: str):
    # Telethon resolves numeric ids as peers and everything else as usernames.
    try:
        return int(target)
    except ValueError:
        return target


class TelegramClientSender:
    """Sender adapter that delivers through client.send_message."""

    def __init__(self, client) -> None:
        self._client = client

    async def send(
        self,
        channel: str,
        target: str,
        text: str,
        *,
        media: Optional[str] = None,
        thread_id: Optional[int] = None,
        reply_to: Optional[int] = None,
    ) -> None:
        """Send text (and optional media) to the target chat."""

        # Forum topics are addressed by replying to the topic's root message.
        reply_ref = reply_to if reply_to is not None else thread_id
        try:
            await self._client.send_message(
                _entity_ref(target),
                text,
                file=media,
                reply_to=reply_ref,
            )
        except (errors.RPCError, ValueError) as e:
            raise DeliveryError(f"Telegram send to {target} failed: {e}") from e
