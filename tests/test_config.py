"""Tests for configuration loading and validation."""

from __future__ import annotations

import pytest

from slack_bridge.core.config import Config, load_config, parse_page_size, parse_ttl
from slack_bridge.core.errors import ConfigError
from slack_bridge.core.validators import validate_slack_app_token, validate_slack_bot_token

ENV_VARS = [
    "SLACK_BOT_TOKEN",
    "SLACK_APP_TOKEN",
    "SLACK_CONVERSATION_CACHE_TTL_MS",
    "SLACK_API_PAGE_SIZE",
    "SLACK_DISABLE_USER_SYNC",
    "SLACK_PROXY",
    "SLACK_BOT_ALIAS",
    "SLACK_STRICT_STARTUP",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so variables loaded from .env files are removed again on teardown
    for var in ENV_VARS:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


@pytest.fixture
def config_dir(tmp_path):
    (tmp_path / ".env").write_text("SLACK_BOT_TOKEN=xoxb-from-file\nSLACK_APP_TOKEN=xapp-from-file\n")
    return tmp_path


def test_load_config_reads_env_file_and_yaml(config_dir, monkeypatch):
    (config_dir / "adapter.yaml").write_text(
        "conversation_cache_ttl_ms: 1000\napi_page_size: 50\ndisable_user_sync: true\nalias: '!'\n"
    )
    monkeypatch.setenv("SLACK_API_PAGE_SIZE", "25")

    config = load_config(config_dir)

    assert config.slack_bot_token == "xoxb-from-file"
    assert config.slack_app_token == "xapp-from-file"
    assert config.conversation_cache_ttl_ms == 1000
    assert config.api_page_size == 25
    assert config.disable_user_sync is True
    assert config.alias == "!"
    assert config.strict_startup is False
    assert config.config_dir == config_dir.resolve()


def test_load_config_defaults(config_dir):
    config = load_config(config_dir)

    assert config.conversation_cache_ttl_ms == 300_000
    assert config.api_page_size == 100
    assert config.proxy is None
    assert config.token_problems() == []


def test_invalid_ttl_is_fatal(config_dir, monkeypatch):
    monkeypatch.setenv("SLACK_CONVERSATION_CACHE_TTL_MS", "five minutes")

    with pytest.raises(ConfigError):
        load_config(config_dir)


@pytest.mark.parametrize("raw", ["-1", "1.5", True])
def test_parse_ttl_rejects_invalid_values(raw):
    with pytest.raises(ConfigError):
        parse_ttl(raw)


def test_parse_ttl_accepts_zero_and_defaults():
    assert parse_ttl("0") == 0
    assert parse_ttl(None) == 300_000


def test_invalid_page_size_falls_back_to_default():
    assert parse_page_size("lots") == 100
    assert parse_page_size("0") == 100
    assert parse_page_size(" 200 ") == 200


def test_malformed_yaml_is_fatal(config_dir):
    (config_dir / "adapter.yaml").write_text("alias: [unclosed\n")

    with pytest.raises(ConfigError):
        load_config(config_dir)


def test_missing_explicit_config_dir_is_fatal(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing")


@pytest.mark.parametrize(
    ("token", "valid"),
    [("xoxb-123", True), ("xoxp-123", True), ("xapp-123", False), ("", False), (None, False)],
)
def test_validate_bot_token(token, valid):
    assert validate_slack_bot_token(token)[0] is valid


@pytest.mark.parametrize(("token", "valid"), [("xapp-1-A", True), ("xoxb-123", False), ("", False)])
def test_validate_app_token(token, valid):
    assert validate_slack_app_token(token)[0] is valid


def test_token_problems_lists_each_bad_token():
    config = Config(slack_bot_token="bad", slack_app_token="")

    assert config.token_problems() == [
        "Invalid botToken provided, it must start with 'xoxb-' or 'xoxp-'",
        "No appToken provided",
    ]
