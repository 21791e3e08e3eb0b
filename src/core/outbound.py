"""Agent-initiated cross-chat sends (core domain).

Sends requested by an agent may target a chat other than the one its session
is bound to. Every target is alias-resolved and checked against the route
policy before the sender port is invoked.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional

from core.aliases import resolve_chat_alias
from core.config import RouterConfig
from core.models import BroadcastResult, ChatAddress, RouteDecision, SendResult
from core.policy import evaluate_route_policy
from core.ports import SenderPort

LOGGER = logging.getLogger(__name__)

MAX_BROADCAST_TARGETS = 10


class RouteDeniedError(PermissionError):
    """Raised when the route policy blocks an agent send."""

    def __init__(self, decision: RouteDecision) -> None:
        super().__init__(
            f"send_to_chat blocked: {decision.reason}. "
            "Add an entry to cross_context_routes.allow in your config to permit this route."
        )
        self.decision = decision


def check_route(
    config: RouterConfig,
    source: ChatAddress,
    target: ChatAddress,
) -> Optional[RouteDecision]:
    """Evaluate the configured policy for a single route."""

    decision = evaluate_route_policy(source, target, config.route_policy, config.aliases)
    if decision is not None:
        LOGGER.info(
            "Route %s -> %s %s (%s)",
            source,
            target,
            "allowed" if decision.allowed else "denied",
            decision.reason,
        )
    return decision


class CrossChatMessenger:
    """Policy-gated sends on behalf of an agent session."""

    def __init__(self, sender: SenderPort, send_timeout: Optional[float] = None) -> None:
        self._sender = sender
        self._send_timeout = send_timeout

    async def _send(
        self,
        channel: str,
        target: str,
        text: str,
        media: Optional[str],
        thread_id: Optional[int],
        reply_to: Optional[int],
    ) -> None:
        send = self._sender.send(
            channel,
            target,
            text,
            media=media,
            thread_id=thread_id,
            reply_to=reply_to,
        )
        if self._send_timeout is None:
            await send
        else:
            await asyncio.wait_for(send, timeout=self._send_timeout)

    async def send_to_chat(
        self,
        config: RouterConfig,
        source: ChatAddress,
        channel: str,
        chat_id: str,
        text: Optional[str] = None,
        media: Optional[str] = None,
        thread_id: Optional[int] = None,
        reply_to: Optional[int] = None,
    ) -> SendResult:
        """Send one message to an explicit chat.

        Raises RouteDeniedError when the policy blocks the route. Delivery
        errors from the sender propagate to the caller.
        """

        if not channel or not chat_id:
            raise ValueError("send_to_chat: 'channel' and 'chat_id' are required.")
        if not text and not media:
            raise ValueError("send_to_chat: provide at least 'text' or 'media'.")

        resolved = resolve_chat_alias(config.aliases, chat_id)
        decision = check_route(config, source, ChatAddress(channel, resolved))
        if decision is not None and not decision.allowed:
            raise RouteDeniedError(decision)

        await self._send(channel, resolved, text or "", media, thread_id, reply_to)
        return SendResult(chat_id=chat_id, resolved_id=resolved, ok=True)

    async def _broadcast_one(
        self,
        config: RouterConfig,
        source: ChatAddress,
        channel: str,
        chat_id: str,
        text: Optional[str],
        media: Optional[str],
        thread_id: Optional[int],
    ) -> SendResult:
        resolved = resolve_chat_alias(config.aliases, chat_id)
        decision = check_route(config, source, ChatAddress(channel, resolved))
        if decision is not None and not decision.allowed:
            return SendResult(
                chat_id=chat_id,
                resolved_id=resolved,
                ok=False,
                error=f"blocked: {decision.reason}",
            )
        await self._send(channel, resolved, text or "", media, thread_id, None)
        return SendResult(chat_id=chat_id, resolved_id=resolved, ok=True)

    async def broadcast(
        self,
        config: RouterConfig,
        source: ChatAddress,
        channel: str,
        chat_ids: Iterable[str],
        text: Optional[str] = None,
        media: Optional[str] = None,
        thread_id: Optional[int] = None,
    ) -> BroadcastResult:
        """Send the same message to several chats concurrently.

        Each target is checked on its own; blocked or failed targets are
        reported in the result instead of raising.
        """

        targets: List[str] = [chat_id for chat_id in chat_ids if chat_id]
        if not channel:
            raise ValueError("broadcast_to_chats: 'channel' is required.")
        if not targets:
            raise ValueError("broadcast_to_chats: 'chat_ids' must be a non-empty list.")
        if len(targets) > MAX_BROADCAST_TARGETS:
            raise ValueError(
                f"broadcast_to_chats: too many targets ({len(targets)}). "
                f"Maximum is {MAX_BROADCAST_TARGETS}."
            )
        if not text and not media:
            raise ValueError("broadcast_to_chats: provide at least 'text' or 'media'.")

        outcomes = await asyncio.gather(
            *(
                self._broadcast_one(config, source, channel, chat_id, text, media, thread_id)
                for chat_id in targets
            ),
            return_exceptions=True,
        )

        results: List[SendResult] = []
        for chat_id, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                LOGGER.warning("Broadcast to %s:%s failed: %r", channel, chat_id, outcome)
                results.append(
                    SendResult(
                        chat_id=chat_id,
                        resolved_id=resolve_chat_alias(config.aliases, chat_id),
                        ok=False,
                        error=str(outcome) or type(outcome).__name__,
                    )
                )
            else:
                results.append(outcome)
        return BroadcastResult(results=tuple(results))
