"""Slack Web API client with a ceiling on concurrent requests."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import aiohttp
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient
from slack_sdk.web.async_slack_response import AsyncSlackResponse

LOGGER = logging.getLogger(__name__)

# Everything a Web API call can raise: platform errors plus transport failures.
SLACK_CALL_ERRORS = (SlackApiError, aiohttp.ClientError, asyncio.TimeoutError)


class SerializedWebClient:
    """Wraps :class:`AsyncWebClient` so at most ``max_concurrency`` calls are in flight."""

    def __init__(
        self,
        token: str,
        *,
        max_concurrency: int = 1,
        proxy: Optional[str] = None,
        client: Optional[AsyncWebClient] = None,
    ) -> None:
        self._client = client or AsyncWebClient(token=token, proxy=proxy)
        self._semaphore = asyncio.Semaphore(max_concurrency)

    @property
    def raw(self) -> AsyncWebClient:
        return self._client

    async def _call(self, method: str, **kwargs: Any) -> AsyncSlackResponse:
        async with self._semaphore:
            LOGGER.debug("Slack API call %s", method)
            return await getattr(self._client, method)(**kwargs)

    async def auth_test(self) -> AsyncSlackResponse:
        return await self._call("auth_test")

    async def users_info(self, *, user: str) -> AsyncSlackResponse:
        return await self._call("users_info", user=user)

    async def users_list(self, *, limit: int, cursor: Optional[str] = None) -> AsyncSlackResponse:
        kwargs: dict[str, Any] = {"limit": limit}
        if cursor:
            kwargs["cursor"] = cursor
        return await self._call("users_list", **kwargs)

    async def conversations_info(self, *, channel: str) -> AsyncSlackResponse:
        return await self._call("conversations_info", channel=channel)

    async def chat_postMessage(self, **kwargs: Any) -> AsyncSlackResponse:
        return await self._call("chat_postMessage", **kwargs)

    async def conversations_setTopic(self, *, channel: str, topic: str) -> AsyncSlackResponse:
        return await self._call("conversations_setTopic", channel=channel, topic=topic)
