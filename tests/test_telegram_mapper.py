from __future__ import annotations

import asyncio

from adapters.telegram_mapper import build_context, chat_title, chat_type


class DummyEntity:
    def __init__(self, **attrs) -> None:
        self.id = attrs.pop("id", 1)
        for key, value in attrs.items():
            setattr(self, key, value)


class DummyMessage:
    def __init__(self, *, message_id: int, text: str, sender_id: "int | None") -> None:
        self.id = message_id
        self.raw_text = text
        self.sender_id = sender_id


class DummyEvent:
    def __init__(self, *, chat_id: int, message: DummyMessage, chat, sender, is_private=False) -> None:
        self.chat_id = chat_id
        self.message = message
        self.is_private = is_private
        self._chat = chat
        self._sender = sender

    async def get_chat(self):
        return self._chat

    async def get_sender(self):
        return self._sender


def test_build_context_from_group_message() -> None:
    event = DummyEvent(
        chat_id=-100123,
        message=DummyMessage(message_id=10, text="hello", sender_id=42),
        chat=DummyEntity(id=123, title="Ops", megagroup=True),
        sender=DummyEntity(id=42, first_name="Ann", last_name="Lee", username="ann"),
    )

    context = asyncio.run(build_context(event))

    assert context.channel == "telegram"
    assert context.chat_id == "-100123"
    assert context.chat_title == "Ops"
    assert context.chat_type == "supergroup"
    assert context.sender_id == "42"
    assert context.sender_display_name == "Ann Lee"
    assert context.sender_handle == "@ann"
    assert context.text == "hello"
    assert context.message_id == 10


def test_build_context_media_only_private_message() -> None:
    sender = DummyEntity(id=7, first_name="Bob", last_name=None, username=None)
    event = DummyEvent(
        chat_id=7,
        message=DummyMessage(message_id=3, text="", sender_id=None),
        chat=sender,
        sender=sender,
        is_private=True,
    )

    context = asyncio.run(build_context(event))

    assert context.text is None
    assert context.sender_id == "7"
    assert context.sender_username is None
    assert context.chat_title == "Bob"
    assert context.chat_type == "dm"


def test_chat_title_and_type_fallbacks() -> None:
    assert chat_title(DummyEntity(id=5, username="news")) == "@news"
    assert chat_title(DummyEntity(id=5)) == "5"
    assert chat_type(DummyEntity(broadcast=True)) == "channel"
    assert chat_type(DummyEntity()) == "group"
