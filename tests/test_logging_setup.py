from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from logging_setup import RedactingFormatter, build_handlers, configure_logging, secret_values


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("crossroute", logging.INFO, __file__, 1, message, None, None)


def test_formatter_masks_every_secret() -> None:
    formatter = RedactingFormatter(["abc", "abcdef", ""], fmt="%(message)s")

    assert formatter.format(_record("token=abcdef hash=abc")) == "token=*** hash=***"
    assert formatter.format(_record("nothing to hide")) == "nothing to hide"


def test_formatter_escapes_regex_characters() -> None:
    formatter = RedactingFormatter(["a.b+c"], fmt="%(message)s")

    assert formatter.format(_record("a.b+c axbbc")) == "*** axbbc"


def test_secret_values_read_named_environment_variables() -> None:
    environ = {"API_HASH": "hash-value", "BOT_API": "", "OTHER": "x"}
    config = {"redact": {"enabled": True, "patterns": ["API_HASH", "BOT_API", "MISSING"]}}

    assert secret_values(config, environ) == ["hash-value"]
    assert secret_values({"redact": {"enabled": False}}, environ) == []
    assert secret_values({}, environ) == []


def test_file_handler_is_created_under_project_root(tmp_path) -> None:
    config = {"console": False, "file": {"enabled": True, "path": "logs/out.log", "backup_count": 2}}

    handlers = build_handlers(config, str(tmp_path), RedactingFormatter([]))
    try:
        assert len(handlers) == 1
        assert isinstance(handlers[0], RotatingFileHandler)
        assert handlers[0].backupCount == 2
        assert (tmp_path / "logs").is_dir()
    finally:
        for handler in handlers:
            handler.close()


def test_disabled_logging_installs_nothing(tmp_path) -> None:
    assert configure_logging(None, str(tmp_path)) is False
    assert configure_logging({"enabled": False}, str(tmp_path)) is False
    assert configure_logging({"enabled": True, "console": False}, str(tmp_path)) is False
