"""Configuration loader."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

from .conversation_cache import DEFAULT_TTL_MS
from .errors import ConfigError
from .user_directory import DEFAULT_PAGE_SIZE
from .validators import (
    validate_non_negative_int,
    validate_slack_app_token,
    validate_slack_bot_token,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path("~/.slack-bridge").expanduser()
ENV_FILE_NAME = ".env"
ADAPTER_FILE = "adapter.yaml"

TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Config:
    slack_bot_token: str
    slack_app_token: str
    conversation_cache_ttl_ms: int = DEFAULT_TTL_MS
    api_page_size: int = DEFAULT_PAGE_SIZE
    disable_user_sync: bool = False
    proxy: str | None = None
    alias: str | None = None
    strict_startup: bool = False
    config_dir: Path | None = None

    def token_problems(self) -> list[str]:
        """Return human-readable problems with the configured credentials."""
        problems = []
        for valid, message in (
            validate_slack_bot_token(self.slack_bot_token),
            validate_slack_app_token(self.slack_app_token),
        ):
            if not valid:
                problems.append(message)
        return problems


def resolve_config_dir(config_dir: Path | str | None) -> Path | None:
    """Resolve the directory holding .env and adapter.yaml, or None to use the environment only."""
    target = (
        Path(config_dir).expanduser() if config_dir else DEFAULT_CONFIG_DIR
    ).resolve()
    if not target.exists():
        if config_dir:
            raise ConfigError(f"Config directory {target} does not exist")
        LOGGER.info("No config directory at %s; relying on shell environment.", target)
        return None
    if not target.is_dir():
        raise ConfigError(f"Config directory {target} is not a directory")
    return target


def load_config(config_dir: Path | str | None = None) -> Config:
    """Load Slack Bridge configuration from the provided or default directory."""
    root = resolve_config_dir(config_dir)
    settings: Dict[str, Any] = {}
    if root is not None:
        _load_env_file(root / ENV_FILE_NAME)
        settings = _load_adapter_file(root / ADAPTER_FILE)

    return Config(
        slack_bot_token=os.getenv("SLACK_BOT_TOKEN", ""),
        slack_app_token=os.getenv("SLACK_APP_TOKEN", ""),
        conversation_cache_ttl_ms=parse_ttl(
            _setting("SLACK_CONVERSATION_CACHE_TTL_MS", settings, "conversation_cache_ttl_ms")
        ),
        api_page_size=parse_page_size(_setting("SLACK_API_PAGE_SIZE", settings, "api_page_size")),
        disable_user_sync=_parse_flag(
            _setting("SLACK_DISABLE_USER_SYNC", settings, "disable_user_sync")
        ),
        proxy=_setting("SLACK_PROXY", settings, "proxy") or None,
        alias=_setting("SLACK_BOT_ALIAS", settings, "alias") or None,
        strict_startup=_parse_flag(_setting("SLACK_STRICT_STARTUP", settings, "strict_startup")),
        config_dir=root,
    )


def parse_ttl(value: Any) -> int:
    """Parse the conversation cache TTL; anything but a non-negative integer is fatal."""
    if value is None or value == "":
        return DEFAULT_TTL_MS
    valid, message = validate_non_negative_int(value)
    if not valid:
        raise ConfigError(
            f"SLACK_CONVERSATION_CACHE_TTL_MS must be a number. It could not be parsed: {message}"
        )
    return int(str(value).strip())


def parse_page_size(value: Any) -> int:
    if value is None or value == "":
        return DEFAULT_PAGE_SIZE
    valid, message = validate_non_negative_int(value)
    if not valid or int(str(value).strip()) == 0:
        LOGGER.warning(
            "Ignoring invalid SLACK_API_PAGE_SIZE %r (%s); using %s",
            value,
            message or "must be positive",
            DEFAULT_PAGE_SIZE,
        )
        return DEFAULT_PAGE_SIZE
    return int(str(value).strip())


def _setting(env_name: str, settings: Dict[str, Any], key: str) -> Any:
    value = os.getenv(env_name)
    if value is not None:
        return value
    return settings.get(key)


def _parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY


def _load_env_file(path: Path) -> None:
    if not path.exists():
        LOGGER.warning("No .env file found at %s; relying on shell environment.", path)
        return
    load_dotenv(dotenv_path=path, override=False)


def _load_adapter_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid adapter.yaml structure at {path}")
    return data
