"""Integration adapters for crossroute.

Adapters translate between Telegram (Telethon and the Bot API), the local
filesystem and the core ports.
"""
