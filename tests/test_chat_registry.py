from __future__ import annotations

from adapters.chat_registry import (
    REGISTRY_HEADER,
    ChatRegistry,
    ChatRegistryEntry,
    build_entry_line,
)


def test_entry_line_format() -> None:
    line = build_entry_line(ChatRegistryEntry(chat_id="-100123", title="Dev", type="supergroup", alias="dev-team"))
    assert line == "- **-100123** — Dev (supergroup) | alias: **dev-team**"
    assert build_entry_line(ChatRegistryEntry(chat_id="7", title="Bob", type="dm")) == "- **7** — Bob (DM)"


def test_upsert_bootstraps_appends_and_updates(tmp_path) -> None:
    registry = ChatRegistry(str(tmp_path / "workspace" / "CHATS.md"))

    assert registry.upsert(ChatRegistryEntry(chat_id="-1", title="Ops"))
    assert registry.upsert(ChatRegistryEntry(chat_id="-2", title="Dev"))
    assert not registry.upsert(ChatRegistryEntry(chat_id="-1", title="Ops"))
    assert registry.upsert(ChatRegistryEntry(chat_id="-1", title="Ops Room"))

    content = (tmp_path / "workspace" / "CHATS.md").read_text(encoding="utf-8")
    assert content.startswith(REGISTRY_HEADER)
    assert registry.entries() == [
        "- **-1** — Ops Room (group)",
        "- **-2** — Dev (group)",
    ]


def test_ids_sharing_a_prefix_do_not_collide(tmp_path) -> None:
    registry = ChatRegistry(str(tmp_path / "CHATS.md"))

    registry.upsert(ChatRegistryEntry(chat_id="-100", title="A"))
    registry.upsert(ChatRegistryEntry(chat_id="-1001", title="B"))

    assert len(registry.entries()) == 2
