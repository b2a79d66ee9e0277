"""Validation of Slack credentials and numeric settings."""

from __future__ import annotations

BOT_TOKEN_PREFIXES = ("xoxb-", "xoxp-")
APP_TOKEN_PREFIXES = ("xapp-",)


def validate_slack_bot_token(token: str | None) -> tuple[bool, str]:
    """Validate SLACK_BOT_TOKEN format (xoxb-* or xoxp-*)."""
    if not token:
        return False, "No botToken provided"
    if not token.startswith(BOT_TOKEN_PREFIXES):
        return False, "Invalid botToken provided, it must start with 'xoxb-' or 'xoxp-'"
    return True, ""


def validate_slack_app_token(token: str | None) -> tuple[bool, str]:
    """Validate SLACK_APP_TOKEN format (xapp-*)."""
    if not token:
        return False, "No appToken provided"
    if not token.startswith(APP_TOKEN_PREFIXES):
        return False, "Invalid appToken provided, it must start with 'xapp-'"
    return True, ""


def validate_non_negative_int(value: object) -> tuple[bool, str]:
    """Validate that a raw setting parses as an integer >= 0."""
    if isinstance(value, bool):
        return False, f"{value!r} is not an integer"
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return False, f"{value!r} is not an integer"
    if parsed < 0:
        return False, f"{parsed} must not be negative"
    return True, ""
