"""TTL-bounded cache of Slack conversation metadata."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from .errors import ConversationLookupError, error_code
from .models import ConversationEntry
from .web_client import SLACK_CALL_ERRORS, SerializedWebClient

LOGGER = logging.getLogger(__name__)

DEFAULT_TTL_MS = 5 * 60 * 1000


def _now_ms() -> float:
    return time.time() * 1000


class ConversationCache:
    """Maps conversation IDs to ``conversations.info`` results.

    Entries expire lazily: a stale entry is dropped the next time it is asked
    for, and nothing sweeps the cache in the background.
    """

    def __init__(
        self,
        web_client: SerializedWebClient,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._web_client = web_client
        self._ttl_ms = ttl_ms
        self._clock = clock or _now_ms
        self._entries: Dict[str, ConversationEntry] = {}

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def __contains__(self, conversation_id: str) -> bool:
        entry = self._entries.get(conversation_id)
        return entry is not None and entry.is_fresh(self._clock(), self._ttl_ms)

    async def resolve(self, conversation_id: str) -> Dict[str, Any]:
        entry = self._entries.get(conversation_id)
        if entry is not None:
            if entry.is_fresh(self._clock(), self._ttl_ms):
                return entry.metadata
            LOGGER.debug("Conversation %s expired from cache", conversation_id)
            del self._entries[conversation_id]

        try:
            response = await self._web_client.conversations_info(channel=conversation_id)
        except SLACK_CALL_ERRORS as exc:
            raise ConversationLookupError(
                f"Failed to fetch conversation {conversation_id}: {exc}",
                code=error_code(exc),
            ) from exc

        metadata = response.get("channel")
        if not metadata:
            raise ConversationLookupError(f"No conversation returned for {conversation_id}")

        self._entries[conversation_id] = ConversationEntry(
            conversation_id=conversation_id,
            metadata=metadata,
            fetched_at_ms=self._clock(),
        )
        return metadata
