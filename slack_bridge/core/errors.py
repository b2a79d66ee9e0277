"""Custom exception hierarchy for Slack Bridge."""


class SlackBridgeError(Exception):
    """Base error type."""


class ConfigError(SlackBridgeError):
    pass


class SlackError(SlackBridgeError):
    """A Slack Web API call failed."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class ConversationLookupError(SlackError):
    """Raised when conversation metadata cannot be fetched."""
    pass


class UserLoadError(SlackError):
    """Raised when a page of the workspace user list fails to load."""
    pass


class NormalizationError(SlackBridgeError):
    """Raised when an inbound event cannot be turned into a message."""
    pass


def error_code(exc: BaseException) -> str | None:
    """Extract the machine-readable Slack error code from an API failure, if any."""
    if isinstance(exc, SlackError):
        return exc.code
    response = getattr(exc, "response", None)
    if response is None:
        return None
    try:
        return response.get("error")
    except AttributeError:
        return None
