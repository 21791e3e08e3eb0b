"""Application entry point for the crossroute router."""

from __future__ import annotations

import argparse
import logging
import os
from typing import Any, Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.channel_sender import ChannelSender
from adapters.chat_registry import ChatRegistry, ChatRegistryEntry
from adapters.telegram_bot_sender import TelegramBotSender
from adapters.telegram_mapper import CHANNEL, build_context, chat_title, chat_type
from adapters.telegram_sender import TelegramClientSender
from client import authorize, build_client
from core.aliases import alias_for_chat_id, resolve_chat_alias
from core.forwarding import MessageForwarder
from core.models import ChatAddress, MessageContext
from core.outbound import CrossChatMessenger, RouteDeniedError, check_route
from core.ports import SenderPort
from logging_setup import configure_logging

NAME = "CROSSROUTE"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging() -> None:
    # Secrets to redact may only be defined in .env.
    load_dotenv()
    configure_logging(settings.LOGGING, settings.PROJECT_ROOT)


def _build_sender(client) -> SenderPort:
    """Select the Telegram delivery adapter from the sender config."""

    method = settings.SENDER_CONFIG.method
    if method == "bot":
        load_dotenv()
        bot_token = os.getenv("BOT_API")
        if not bot_token:
            raise RuntimeError("BOT_API is required when sender.method=bot")
        telegram: SenderPort = TelegramBotSender(bot_token)
    elif method == "client":
        telegram = TelegramClientSender(client)
    else:
        raise RuntimeError("sender.method must be 'client' or 'bot'")
    logging.getLogger(__name__).info("Selected sender method - %s", method)
    return ChannelSender({CHANNEL: telegram})


def _update_registry(registry: ChatRegistry, context: MessageContext) -> None:
    entry = ChatRegistryEntry(
        chat_id=context.chat_id,
        title=context.chat_title,
        type=context.chat_type or "group",
        alias=alias_for_chat_id(settings.ROUTER_CONFIG.aliases, context.chat_id),
    )
    try:
        if registry.upsert(entry):
            logging.getLogger(__name__).info("Chat registry updated for %s", context.chat_id)
    except OSError:
        logging.getLogger(__name__).exception("Failed to update chat registry %s", registry.path)


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting crossroute")
    router_config = settings.ROUTER_CONFIG
    logger.info(
        "%s forwarding rules are loaded, route policy %s",
        len(router_config.forward_rules),
        "enabled" if router_config.route_policy is not None else "not configured",
    )

    client = build_client()
    client.loop.run_until_complete(client.connect())
    client.loop.run_until_complete(authorize(client))

    forwarder = MessageForwarder(
        _build_sender(client),
        send_timeout=settings.SENDER_CONFIG.timeout_seconds,
    )
    batch_timeout = settings.SENDER_CONFIG.batch_timeout_seconds
    registry = ChatRegistry(settings.CHAT_REGISTRY_PATH) if settings.CHAT_REGISTRY_ENABLED else None

    # Only incoming messages are routed, so our own forwards never loop back.
    @client.on(events.NewMessage(incoming=True))
    async def handler(event) -> None:
        try:
            context = await build_context(event)
            if registry is not None:
                _update_registry(registry, context)
            await forwarder.route(
                context,
                router_config.forward_rules,
                router_config.aliases,
                timeout=batch_timeout,
            )
        except Exception:
            logger.exception("Error while routing message")

    client.start()
    logger.info("Client connected. Listening for incoming messages...")
    client.run_until_disconnected()


def _check(args: argparse.Namespace) -> None:
    source = ChatAddress(args.from_channel, args.from_chat)
    target = ChatAddress(args.to_channel, args.to_chat)
    decision = check_route(settings.ROUTER_CONFIG, source, target)
    if decision is None:
        print("No cross_context_routes configured: no opinion (default channel policy applies).")
        return
    verdict = "ALLOW" if decision.allowed else "DENY"
    print(f"{verdict}: {decision.reason}")
    if not decision.allowed:
        raise SystemExit(1)


def _send(args: argparse.Namespace) -> None:
    _configure_logging()
    client = build_client()

    async def _run_send() -> None:
        await client.connect()
        await authorize(client)
        messenger = CrossChatMessenger(
            _build_sender(client),
            send_timeout=settings.SENDER_CONFIG.timeout_seconds,
        )
        source = ChatAddress(args.from_channel, args.from_chat)
        try:
            if len(args.chat) == 1:
                result = await messenger.send_to_chat(
                    settings.ROUTER_CONFIG,
                    source,
                    args.channel,
                    args.chat[0],
                    text=args.text,
                    media=args.media,
                    thread_id=args.thread_id,
                )
                print(f"sent to {result.resolved_id}")
            else:
                broadcast = await messenger.broadcast(
                    settings.ROUTER_CONFIG,
                    source,
                    args.channel,
                    args.chat,
                    text=args.text,
                    media=args.media,
                    thread_id=args.thread_id,
                )
                for item in broadcast.results:
                    status = "sent" if item.ok else f"failed ({item.error})"
                    print(f"{item.chat_id} -> {item.resolved_id}: {status}")
                print(f"sent={broadcast.sent} failed={broadcast.failed}")
        except RouteDeniedError as e:
            print(str(e))
        finally:
            await client.disconnect()

    client.loop.run_until_complete(_run_send())


def _dialog_type(dialog: Any) -> str:
    return chat_type(getattr(dialog, "entity", None), bool(getattr(dialog, "is_user", False)))


async def _list_dialogs(client, limit: int) -> None:
    aliases = settings.ROUTER_CONFIG.aliases
    index = 0
    async for dialog in client.iter_dialogs(limit=limit):
        index += 1
        chat_id = str(dialog.id)
        alias = alias_for_chat_id(aliases, chat_id)
        alias_label = f" | alias: {alias}" if alias else ""
        title = chat_title(dialog.entity) if dialog.entity is not None else dialog.name
        print(f"{index}. {_dialog_type(dialog)} | {title} | {CHANNEL}:{chat_id}{alias_label}")

    if not index:
        print("No dialogs found.")


def _discover(args: argparse.Namespace) -> None:
    _print_banner()
    client = build_client()

    async def _run_discover() -> None:
        await client.connect()
        if not await client.is_user_authorized():
            print("Authorization required. Starting login...")
            await authorize(client)
        await _list_dialogs(client, args.limit)
        await client.disconnect()

    client.loop.run_until_complete(_run_discover())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="crossroute")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the forwarding router")

    check = subparsers.add_parser("check", help="Evaluate the route policy for one send")
    check.add_argument("from_channel")
    check.add_argument("from_chat")
    check.add_argument("to_channel")
    check.add_argument("to_chat", help="Chat id or alias")

    send = subparsers.add_parser("send", help="Send a policy-checked message to one or more chats")
    send.add_argument("channel")
    send.add_argument("chat", nargs="+", help="Target chat ids or aliases (max 10)")
    send.add_argument("--text")
    send.add_argument("--media")
    send.add_argument("--thread-id", type=int)
    send.add_argument("--from-channel", default=CHANNEL)
    send.add_argument("--from-chat", default="", help="Chat the send originates from")

    discover = subparsers.add_parser("discover", help="List chats with their ids and aliases")
    discover.add_argument("--limit", type=int, default=100)

    args = parser.parse_args(argv)
    if args.command == "check":
        # Alias resolution mirrors what the send path does.
        args.to_chat = resolve_chat_alias(settings.ROUTER_CONFIG.aliases, args.to_chat)
        _check(args)
        return
    if args.command == "send":
        _send(args)
        return
    if args.command == "discover":
        _discover(args)
        return
    _run()


if __name__ == "__main__":
    main()
