"""Static configuration for crossroute.

All user-editable settings (aliases, route policy, forwarding rules, sender,
logging) live in a single JSON file for quick edits without touching Python.
"""

import json
import os

from core.config import build_router_config, build_sender_config

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# The config path can be overridden for running several routers side by side.
CONFIG_PATH = os.getenv("CROSSROUTE_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Routing snapshot (aliases, cross-context policy, forwarding rules) parsed
# once here; the core only ever sees this immutable object.
ROUTER_CONFIG = build_router_config(_CONFIG)

# Sender selection: "client" sends from the logged-in account, "bot" uses
# the Bot API token from BOT_API.
SENDER_CONFIG = build_sender_config(_CONFIG)

# Chat registry keeps CHATS.md current with every chat that sends a message.
_chat_registry = _CONFIG.get("chat_registry", {})
CHAT_REGISTRY_ENABLED = bool(_chat_registry.get("enabled", False))
CHAT_REGISTRY_PATH = _resolve_path(_chat_registry.get("path", "CHATS.md"))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
