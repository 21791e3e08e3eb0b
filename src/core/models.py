"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MessageContext:
    """Inbound message context used by the forwarding engine.

    Built once per inbound event by a channel adapter and consumed once.
    Chat and sender ids are kept as strings so every provider fits.
    """

    channel: str
    chat_id: str
    chat_title: str
    sender_id: str
    text: Optional[str] = None
    sender_first_name: Optional[str] = None
    sender_last_name: Optional[str] = None
    sender_username: Optional[str] = None
    message_id: Optional[int] = None
    chat_type: Optional[str] = None

    @property
    def sender_display_name(self) -> str:
        """First + last name, falling back to the sender id."""

        parts = [part for part in (self.sender_first_name, self.sender_last_name) if part]
        return " ".join(parts) or self.sender_id

    @property
    def sender_handle(self) -> str:
        return f"@{self.sender_username}" if self.sender_username else ""


@dataclass(frozen=True)
class ChatAddress:
    """A concrete (channel, chat id) pair."""

    channel: str
    chat_id: str

    def __str__(self) -> str:
        return f"{self.channel}:{self.chat_id}"


@dataclass(frozen=True)
class RouteDecision:
    """Outcome of a route policy evaluation.

    The reason is always populated so it can be used in audit logs and in the
    error returned to whoever requested a blocked send.
    """

    allowed: bool
    reason: str


@dataclass(frozen=True)
class ForwardReport:
    """Counters collected from one forwarding fan-out."""

    attempted: int
    delivered: int
    failed: int


@dataclass(frozen=True)
class SendResult:
    """Per-target outcome of an agent-initiated send."""

    chat_id: str
    resolved_id: str
    ok: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class BroadcastResult:
    """Aggregated outcome of a broadcast to several chats."""

    results: tuple[SendResult, ...]

    @property
    def sent(self) -> int:
        return sum(1 for result in self.results if result.ok)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if not result.ok)

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.results)
