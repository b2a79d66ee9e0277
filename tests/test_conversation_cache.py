"""Tests for the TTL-bounded conversation cache."""

from __future__ import annotations

import pytest

from slack_bridge.core.conversation_cache import DEFAULT_TTL_MS, ConversationCache
from slack_bridge.core.errors import ConversationLookupError

from .conftest import api_error, connection_error


@pytest.mark.asyncio
async def test_resolve_within_ttl_does_not_refetch(conversations, slack_api, clock):
    first = await conversations.resolve("C123")
    clock.advance(59_999)
    second = await conversations.resolve("C123")

    assert first == second == {"id": "C123", "name": "general", "is_channel": True}
    assert len(slack_api.calls_to("conversations_info")) == 1


@pytest.mark.asyncio
async def test_resolve_after_ttl_fetches_exactly_once_more(conversations, slack_api, clock):
    await conversations.resolve("C123")
    clock.advance(60_000)
    slack_api.conversations["C123"] = {"id": "C123", "name": "renamed"}

    refreshed = await conversations.resolve("C123")
    again = await conversations.resolve("C123")

    assert refreshed["name"] == "renamed"
    assert again is refreshed
    assert len(slack_api.calls_to("conversations_info")) == 2


@pytest.mark.asyncio
async def test_expired_entry_is_purged_even_when_refetch_fails(conversations, slack_api, clock):
    await conversations.resolve("C123")
    clock.advance(60_000)
    slack_api.errors["conversations_info"] = api_error("ratelimited")

    with pytest.raises(ConversationLookupError) as excinfo:
        await conversations.resolve("C123")

    assert excinfo.value.code == "ratelimited"
    assert "C123" not in conversations


@pytest.mark.asyncio
async def test_fetch_failure_is_not_cached(conversations, slack_api):
    with pytest.raises(ConversationLookupError):
        await conversations.resolve("C404")

    slack_api.conversations["C404"] = {"id": "C404", "name": "late"}
    resolved = await conversations.resolve("C404")

    assert resolved["name"] == "late"
    assert len(slack_api.calls_to("conversations_info")) == 2


@pytest.mark.asyncio
async def test_connection_failure_raises_lookup_error(conversations, slack_api):
    slack_api.errors["conversations_info"] = connection_error()

    with pytest.raises(ConversationLookupError):
        await conversations.resolve("C123")

    assert "C123" not in conversations


@pytest.mark.asyncio
async def test_zero_ttl_always_fetches(web_client, slack_api, clock):
    cache = ConversationCache(web_client, ttl_ms=0, clock=clock)

    await cache.resolve("C123")
    await cache.resolve("C123")

    assert len(slack_api.calls_to("conversations_info")) == 2


def test_default_ttl_is_five_minutes(web_client):
    assert ConversationCache(web_client).ttl_ms == DEFAULT_TTL_MS == 300_000
