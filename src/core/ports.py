"""Ports (interfaces) used by the core routing engine.

Ports define the minimal contracts for delivery adapters so that the core
can be reused with different transports.
"""

from __future__ import annotations

from typing import Optional, Protocol


class DeliveryError(RuntimeError):
    """Raised by sender adapters when a message could not be delivered."""


class SenderPort(Protocol):
    """Outbound delivery required by the forwarding engine and agent sends."""

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
        ...
