"""Core configuration dataclasses.

Raw JSON is parsed once, at load time, into this immutable snapshot. Every
evaluation receives the snapshot explicitly so concurrent events can share
it without locking, and a reload simply produces a new snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from core.forwarding import ForwardRule, build_forward_rules
from core.policy import RoutePolicyConfig, build_route_policy

LOGGER = logging.getLogger(__name__)

DEFAULT_SENDER_METHOD = "client"
DEFAULT_SEND_TIMEOUT = 15.0


@dataclass(frozen=True)
class RouterConfig:
    """Aliases, route policy and forwarding rules consumed by the core."""

    aliases: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    route_policy: Optional[RoutePolicyConfig] = None
    forward_rules: tuple[ForwardRule, ...] = ()


@dataclass(frozen=True)
class SenderConfig:
    """Delivery settings consumed by the sender adapters."""

    method: str
    timeout_seconds: Optional[float]
    batch_timeout_seconds: Optional[float] = None


def build_aliases(raw: Any) -> Mapping[str, str]:
    """Normalize chat_aliases into a read-only name -> chat id mapping."""

    if raw is None:
        return MappingProxyType({})
    if not isinstance(raw, dict):
        LOGGER.warning("chat_aliases must be an object, ignoring it")
        return MappingProxyType({})

    aliases: dict[str, str] = {}
    for name, chat_id in raw.items():
        if isinstance(chat_id, bool) or not isinstance(chat_id, (str, int)):
            LOGGER.warning("Skipping chat alias %r with non-string id", name)
            continue
        if not name or not str(chat_id).strip():
            continue
        aliases[str(name)] = str(chat_id).strip()
    return MappingProxyType(aliases)


def build_router_config(raw: Mapping[str, Any]) -> RouterConfig:
    """Build the routing snapshot from the top-level config mapping."""

    return RouterConfig(
        aliases=build_aliases(raw.get("chat_aliases")),
        route_policy=build_route_policy(raw.get("cross_context_routes")),
        forward_rules=tuple(build_forward_rules(raw.get("message_routes"))),
    )


def _read_seconds(sender: Mapping[str, Any], key: str, default: Optional[float]) -> Optional[float]:
    value = sender.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        LOGGER.warning("sender.%s must be a number, using %s", key, default)
        return default
    # Zero or less disables the bound.
    return float(value) if value > 0 else None


def build_sender_config(raw: Mapping[str, Any]) -> SenderConfig:
    """Read the sender block, defaulting to the logged-in client."""

    sender = raw.get("sender")
    if sender is None:
        sender = {}
    elif not isinstance(sender, dict):
        LOGGER.warning("sender must be an object, using the defaults")
        sender = {}

    method = sender.get("method", DEFAULT_SENDER_METHOD)
    if not isinstance(method, str) or not method.strip():
        LOGGER.warning("sender.method must be a string, using %r", DEFAULT_SENDER_METHOD)
        method = DEFAULT_SENDER_METHOD

    return SenderConfig(
        method=method.strip(),
        timeout_seconds=_read_seconds(sender, "timeout_seconds", DEFAULT_SEND_TIMEOUT),
        batch_timeout_seconds=_read_seconds(sender, "batch_timeout_seconds", None),
    )
