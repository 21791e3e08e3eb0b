"""Config-driven message forwarding (core domain).

Evaluates forwarding rules against an inbound message and fans matching
messages out to their target chats through the sender port. Runs entirely
without agent involvement.

Template variables in transform.prefix / transform.suffix:
- {chatTitle}  display name of the source chat
- {chatId}     id of the source chat
- {sender}     sender first + last name, or the sender id
- {username}   @username of the sender, empty when not set
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Any, Iterable, List, Mapping, Optional

from core.aliases import resolve_chat_alias
from core.models import ForwardReport, MessageContext
from core.patterns import matches_source_pattern
from core.ports import SenderPort

LOGGER = logging.getLogger(__name__)

DEFAULT_CHANNEL = "telegram"


@dataclass(frozen=True)
class ForwardFilter:
    """Optional sender and keyword restrictions. Keywords are lower-cased."""

    keywords: tuple[str, ...] = ()
    senders: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ForwardTransform:
    prefix: str = ""
    suffix: str = ""


@dataclass(frozen=True)
class ForwardRule:
    """Compiled forwarding rule."""

    from_pattern: str
    to: str
    channel: str = DEFAULT_CHANNEL
    enabled: bool = True
    filter: ForwardFilter = ForwardFilter()
    transform: ForwardTransform = ForwardTransform()


@dataclass(frozen=True)
class PlannedForward:
    """A forward that passed every check and is ready to be sent."""

    rule: ForwardRule
    channel: str
    target: str
    text: str


def _string_items(value: Any) -> Optional[List[str]]:
    if value is None:
        return []
    if not isinstance(value, list):
        return None
    items: List[str] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (str, int)):
            return None
        items.append(str(item))
    return items


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return ""
    if not isinstance(value, str):
        return None
    return value


def _build_forward_rule(entry: Any) -> Optional[ForwardRule]:
    if not isinstance(entry, dict):
        return None

    from_pattern = entry.get("from")
    to = entry.get("to")
    if not isinstance(from_pattern, str) or not from_pattern.strip():
        return None
    if isinstance(to, int) and not isinstance(to, bool):
        to = str(to)
    if not isinstance(to, str) or not to.strip():
        return None

    channel = entry.get("channel", DEFAULT_CHANNEL)
    if not isinstance(channel, str) or not channel.strip():
        return None
    enabled = entry.get("enabled", True)
    if not isinstance(enabled, bool):
        return None

    raw_filter = entry.get("filter") or {}
    raw_transform = entry.get("transform") or {}
    if not isinstance(raw_filter, dict) or not isinstance(raw_transform, dict):
        return None

    keywords = _string_items(raw_filter.get("keywords"))
    senders = _string_items(raw_filter.get("senders"))
    prefix = _optional_str(raw_transform.get("prefix"))
    suffix = _optional_str(raw_transform.get("suffix"))
    if keywords is None or senders is None or prefix is None or suffix is None:
        return None

    return ForwardRule(
        from_pattern=from_pattern.strip(),
        to=to.strip(),
        channel=channel.strip(),
        enabled=enabled,
        filter=ForwardFilter(
            keywords=tuple(k.lower() for k in keywords if k),
            senders=frozenset(senders),
        ),
        transform=ForwardTransform(prefix=prefix, suffix=suffix),
    )


def build_forward_rules(rules_config: Any) -> List[ForwardRule]:
    """Normalize raw message_routes entries into compiled rules.

    Entries that cannot be interpreted are skipped with a warning so one typo
    never disables the remaining rules. Disabled rules are kept so the
    configuration can be listed back faithfully.
    """

    if rules_config is None:
        return []
    if not isinstance(rules_config, list):
        LOGGER.warning("message_routes must be a list, ignoring it")
        return []

    compiled: List[ForwardRule] = []
    for index, entry in enumerate(rules_config):
        rule = _build_forward_rule(entry)
        if rule is None:
            LOGGER.warning("Skipping malformed message_routes[%s]: %r", index, entry)
            continue
        compiled.append(rule)
    return compiled


def passes_filter(rule_filter: ForwardFilter, context: MessageContext) -> bool:
    """Apply the sender allow list, then the keyword list."""

    if rule_filter.senders and context.sender_id not in rule_filter.senders:
        return False

    if rule_filter.keywords:
        body = (context.text or "").lower()
        if not any(keyword in body for keyword in rule_filter.keywords):
            return False

    return True


def render_template(template: str, context: MessageContext) -> str:
    """Replace the template variables with values from the context."""

    return (
        template.replace("{chatTitle}", context.chat_title)
        .replace("{chatId}", context.chat_id)
        .replace("{sender}", context.sender_display_name)
        .replace("{username}", context.sender_handle)
    )


def build_forwarded_text(transform: ForwardTransform, context: MessageContext) -> Optional[str]:
    """Return prefix + text + suffix, or None when there is nothing to send."""

    text = context.text or ""
    if transform.prefix:
        text = render_template(transform.prefix, context) + text
    if transform.suffix:
        text = text + render_template(transform.suffix, context)
    text = text.strip()
    return text or None


def plan_forward(
    rule: ForwardRule,
    context: MessageContext,
    aliases: Optional[Mapping[str, str]] = None,
) -> Optional[PlannedForward]:
    """Run every check of a single rule against the context."""

    if not rule.enabled:
        return None
    if rule.channel.lower() != context.channel.lower():
        return None
    if not matches_source_pattern(rule.from_pattern, context.channel, context.chat_id, aliases):
        return None
    if not passes_filter(rule.filter, context):
        return None

    target = resolve_chat_alias(aliases, rule.to)
    if target == context.chat_id:
        LOGGER.debug("Skipping forward of %s back into itself", context.chat_id)
        return None

    # Media-only messages without transform text have nothing to forward.
    text = build_forwarded_text(rule.transform, context)
    if text is None:
        return None

    return PlannedForward(rule=rule, channel=rule.channel, target=target, text=text)


def plan_forwards(
    context: MessageContext,
    rules: Iterable[ForwardRule],
    aliases: Optional[Mapping[str, str]] = None,
) -> List[PlannedForward]:
    """Return every forward the rules produce for this message, in rule order."""

    planned: List[PlannedForward] = []
    for rule in rules:
        forward = plan_forward(rule, context, aliases)
        if forward is not None:
            planned.append(forward)
    return planned


class MessageForwarder:
    """Fans an inbound message out to every matching forwarding rule.

    Each send is independent: a failing, slow or cancelled send is logged and
    counted but never delays or breaks the other forwards, and never reaches
    the caller. An optional batch timeout, or cancelling the caller, cancels
    the sends still in flight and counts them as failed.
    """

    def __init__(self, sender: SenderPort, send_timeout: Optional[float] = None) -> None:
        self._sender = sender
        self._send_timeout = send_timeout

    async def _deliver(self, forward: PlannedForward) -> None:
        send = self._sender.send(forward.channel, forward.target, forward.text)
        if self._send_timeout is None:
            await send
        else:
            await asyncio.wait_for(send, timeout=self._send_timeout)

    async def forward(
        self,
        context: MessageContext,
        rules: Iterable[ForwardRule],
        aliases: Optional[Mapping[str, str]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> ForwardReport:
        """Send every planned forward concurrently and wait for them to settle."""

        planned = plan_forwards(context, rules, aliases)
        if not planned:
            return ForwardReport(attempted=0, delivered=0, failed=0)

        tasks = [asyncio.create_task(self._deliver(forward)) for forward in planned]
        try:
            _, pending = await asyncio.wait(tasks, timeout=timeout)
        except asyncio.CancelledError:
            LOGGER.warning(
                "Forwarding from %s:%s was cancelled", context.channel, context.chat_id
            )
            pending = {task for task in tasks if not task.done()}
        else:
            if pending:
                LOGGER.warning(
                    "Forwarding from %s:%s hit the %ss batch timeout",
                    context.channel,
                    context.chat_id,
                    timeout,
                )

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        failed = 0
        for forward, task in zip(planned, tasks):
            if task.cancelled():
                error: Optional[BaseException] = asyncio.CancelledError()
            else:
                error = task.exception()
            if error is not None:
                failed += 1
                LOGGER.warning(
                    "Forward %s:%s -> %s failed: %r",
                    context.channel,
                    context.chat_id,
                    forward.target,
                    error,
                )

        report = ForwardReport(
            attempted=len(planned),
            delivered=len(planned) - failed,
            failed=failed,
        )
        LOGGER.info(
            "Forwarded message from %s:%s (attempted=%s, delivered=%s, failed=%s)",
            context.channel,
            context.chat_id,
            report.attempted,
            report.delivered,
            report.failed,
        )
        return report

    async def route(
        self,
        context: MessageContext,
        rules: Iterable[ForwardRule],
        aliases: Optional[Mapping[str, str]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> int:
        """Forward the message and return the number of attempted forwards."""

        report = await self.forward(context, rules, aliases, timeout=timeout)
        return report.attempted
