"""Telegram Bot API sender adapter.

Uses the Bot API for delivery so forwards can be posted by a bot account.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional
import urllib.error
import urllib.request

from core.ports import DeliveryError


class TelegramBotSender:
    """Sender adapter that posts messages via the Telegram Bot API."""

    def __init__(self, bot_token: str, timeout: float = 10) -> None:
        self._bot_token = bot_token
        self._timeout = timeout

    def _endpoint(self, method: str) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/{method}"

    @staticmethod
    def build_request(
        target: str,
        text: str,
        media: Optional[str] = None,
        thread_id: Optional[int] = None,
        reply_to: Optional[int] = None,
    ) -> tuple[str, dict[str, Any]]:
        """Return the Bot API method and JSON payload for one send."""

        if media:
            method = "sendDocument"
            payload: dict[str, Any] = {"chat_id": target, "document": media}
            if text:
                payload["caption"] = text
        else:
            method = "sendMessage"
            payload = {
                "chat_id": target,
                "text": text,
                "disable_web_page_preview": True,
            }
        if thread_id is not None:
            payload["message_thread_id"] = thread_id
        if reply_to is not None:
            payload["reply_to_message_id"] = reply_to
        return method, payload

    def _post(self, method: str, payload: dict[str, Any]) -> None:
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(method), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(request, timeout=self._timeout):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise DeliveryError(f"Bot API error {e.code}: {body}") from e
        except urllib.error.URLError as e:
            raise DeliveryError(f"Bot API unreachable: {e.reason}") from e

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
        """Send the message via the Bot API."""

        method, payload = self.build_request(target, text, media, thread_id, reply_to)
        # urllib blocks, so the call runs in a worker thread to keep the
        # forwarding fan-out concurrent.
        await asyncio.to_thread(self._post, method, payload)
