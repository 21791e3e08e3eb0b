"""Channel multiplexing sender.

Routes each send to the adapter registered for its channel name.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from core.ports import DeliveryError, SenderPort

LOGGER = logging.getLogger(__name__)


class ChannelSender:
    """SenderPort that dispatches on the channel name (case-insensitive)."""

    def __init__(self, senders: Mapping[str, SenderPort]) -> None:
        self._senders = {name.lower(): sender for name, sender in senders.items()}

    @property
    def channels(self) -> list[str]:
        return sorted(self._senders)

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
        sender = self._senders.get(channel.lower())
        if sender is None:
            raise DeliveryError(f"No sender configured for channel '{channel}'")
        try:
            await sender.send(
                channel,
                target,
                text,
                media=media,
                thread_id=thread_id,
                reply_to=reply_to,
            )
        except DeliveryError:
            LOGGER.warning("Delivery to %s:%s failed", channel, target)
            raise
