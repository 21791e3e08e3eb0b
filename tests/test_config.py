from __future__ import annotations

import pytest

from core.config import build_aliases, build_router_config, build_sender_config


def test_build_router_config_full() -> None:
    config = build_router_config(
        {
            "chat_aliases": {"dev-team": -1001234567890, "alerts": " -100999 "},
            "cross_context_routes": {
                "allow": [{"from": "telegram", "to": "telegram:dev-team", "chat_ids": [-1001234567890]}],
                "default": "allow",
            },
            "message_routes": [
                {
                    "from": "telegram:-100111",
                    "to": "dev-team",
                    "filter": {"keywords": ["Urgent"], "senders": [42]},
                    "transform": {"prefix": "{sender}: "},
                }
            ],
        }
    )

    assert dict(config.aliases) == {"dev-team": "-1001234567890", "alerts": "-100999"}
    assert config.route_policy is not None
    assert config.route_policy.default == "allow"
    assert config.route_policy.allow[0].chat_ids == frozenset({"-1001234567890"})

    (rule,) = config.forward_rules
    assert rule.channel == "telegram"
    assert rule.enabled
    assert rule.filter.keywords == ("urgent",)
    assert rule.filter.senders == frozenset({"42"})
    assert rule.transform.prefix == "{sender}: "
    assert rule.transform.suffix == ""


def test_empty_config_is_inert() -> None:
    config = build_router_config({})

    assert dict(config.aliases) == {}
    assert config.route_policy is None
    assert config.forward_rules == ()


def test_aliases_are_read_only() -> None:
    aliases = build_aliases({"ops": "-1", "bad": None, "flag": True})

    assert dict(aliases) == {"ops": "-1"}
    with pytest.raises(TypeError):
        aliases["new"] = "-2"  # type: ignore[index]


def test_sender_config_defaults() -> None:
    sender = build_sender_config({})
    assert sender.method == "client"
    assert sender.timeout_seconds == 15.0

    no_timeout = build_sender_config({"sender": {"method": "bot", "timeout_seconds": 0}})
    assert no_timeout.method == "bot"
    assert no_timeout.timeout_seconds is None
    assert no_timeout.batch_timeout_seconds is None


def test_sender_config_batch_timeout() -> None:
    sender = build_sender_config({"sender": {"timeout_seconds": 5, "batch_timeout_seconds": 30}})
    assert sender.timeout_seconds == 5.0
    assert sender.batch_timeout_seconds == 30.0


@pytest.mark.parametrize(
    "block",
    [
        "bot",
        ["client"],
        {"method": 3, "timeout_seconds": "fast"},
        {"method": "", "timeout_seconds": True, "batch_timeout_seconds": "later"},
    ],
)
def test_malformed_sender_block_falls_back_to_defaults(block, caplog) -> None:
    with caplog.at_level("WARNING", logger="core.config"):
        sender = build_sender_config({"sender": block})

    assert sender.method == "client"
    assert sender.timeout_seconds == 15.0
    assert sender.batch_timeout_seconds is None
    assert caplog.records
