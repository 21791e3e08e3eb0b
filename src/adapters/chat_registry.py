"""Markdown chat directory adapter.

Maintains CHATS.md so operators (and agents reading the file) can look up
the ids and alias names of every chat the router has seen.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional

CHAT_REGISTRY_FILENAME = "CHATS.md"

REGISTRY_HEADER = "\n".join(
    [
        "# Chat Registry",
        "",
        "Known chats this assistant has seen. Use these ids (or alias names) as send targets.",
        "",
    ]
)

_TYPE_LABELS = {
    "dm": "DM",
    "supergroup": "supergroup",
    "channel": "channel",
}


@dataclass(frozen=True)
class ChatRegistryEntry:
    chat_id: str
    title: str
    type: str = "group"
    alias: Optional[str] = None


def build_entry_line(entry: ChatRegistryEntry) -> str:
    type_label = _TYPE_LABELS.get(entry.type, "group")
    alias_suffix = f" | alias: **{entry.alias}**" if entry.alias else ""
    return f"- **{entry.chat_id}** — {entry.title} ({type_label}){alias_suffix}"


class ChatRegistry:
    """Upserts one line per chat id in a markdown file."""

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def _write(self, content: str) -> None:
        # Write to a sibling temp file first so readers never see a partial file.
        tmp_path = f"{self._path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp_path, self._path)

    def upsert(self, entry: ChatRegistryEntry) -> bool:
        """Insert or update the entry. Returns True when the file changed."""

        new_line = build_entry_line(entry)
        id_prefix = f"- **{entry.chat_id}**"

        existing = ""
        if os.path.exists(self._path):
            with open(self._path, "r", encoding="utf-8") as handle:
                existing = handle.read()

        if not existing.strip():
            directory = os.path.dirname(self._path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self._write(f"{REGISTRY_HEADER}{new_line}\n")
            return True

        lines = existing.split("\n")
        for index, line in enumerate(lines):
            if line.startswith(f"{id_prefix} "):
                if line == new_line:
                    return False
                lines[index] = new_line
                self._write("\n".join(lines))
                return True

        self._write(f"{existing.rstrip()}\n{new_line}\n")
        return True

    def entries(self) -> list[str]:
        """Return the raw entry lines currently in the registry."""

        if not os.path.exists(self._path):
            return []
        with open(self._path, "r", encoding="utf-8") as handle:
            return [line for line in handle.read().split("\n") if line.startswith("- **")]
