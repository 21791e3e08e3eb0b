"""Logging configuration driven by the "logging" block of config.json.

Secrets named in logging.redact.patterns are read from the environment and
masked in every formatted line, tracebacks included.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from typing import Any, Mapping, Optional, Pattern

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_PATH = "logs/crossroute.log"
DEFAULT_SECRET_NAMES = ("API_HASH", "BOT_API")
MASK = "***"


class RedactingFormatter(logging.Formatter):
    """Formatter that replaces known secret values with a mask."""

    def __init__(self, secrets: list[str], fmt: str = LOG_FORMAT, datefmt: Optional[str] = DATE_FORMAT) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._pattern = _secret_pattern(secrets)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if self._pattern is None:
            return line
        return self._pattern.sub(MASK, line)


def _secret_pattern(secrets: list[str]) -> Optional[Pattern[str]]:
    # Longest first, so a secret containing another is masked whole.
    unique = sorted({secret for secret in secrets if secret}, key=len, reverse=True)
    if not unique:
        return None
    return re.compile("|".join(re.escape(secret) for secret in unique))


def secret_values(config: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None) -> list[str]:
    """Return the environment values that must never reach a log line."""

    redact = config.get("redact") or {}
    if not isinstance(redact, dict) or not redact.get("enabled", False):
        return []
    env = os.environ if environ is None else environ
    names = redact.get("patterns", DEFAULT_SECRET_NAMES)
    return [env[name] for name in names if env.get(name)]


def build_handlers(config: Mapping[str, Any], project_root: str, formatter: logging.Formatter) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if config.get("console", True):
        handlers.append(logging.StreamHandler())

    file_cfg = config.get("file") or {}
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", DEFAULT_LOG_PATH)
        if not os.path.isabs(path):
            path = os.path.join(project_root, path)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(config: Optional[Mapping[str, Any]], project_root: str) -> bool:
    """Install handlers on the root logger. Returns False when logging is off."""

    config = config or {}
    if not config.get("enabled", False):
        return False

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = RedactingFormatter(secret_values(config))
    handlers = build_handlers(config, project_root, formatter)
    if not handlers:
        return False

    for handler in handlers:
        handler.setLevel(level)
    logging.basicConfig(level=level, handlers=handlers)
    return True
