"""Outbound messages and topic changes sent through the Slack Web API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

from .conversation_cache import ConversationCache
from .errors import SlackError, error_code
from .models import Envelope
from .web_client import SLACK_CALL_ERRORS, SerializedWebClient

LOGGER = logging.getLogger(__name__)

Payload = Union[str, Mapping[str, Any]]


def build_message_options(room: str, payload: Payload, thread_ts: Optional[str] = None) -> Dict[str, Any]:
    """Build ``chat.postMessage`` arguments.

    Fields on a structured payload win over the computed defaults, except for
    ``channel`` which always points at the resolved room.
    """
    if isinstance(payload, str):
        options: Dict[str, Any] = {"channel": room, "text": payload}
        if thread_ts:
            options["thread_ts"] = thread_ts
        return options

    options = {"text": payload.get("text")}
    if thread_ts:
        options["thread_ts"] = thread_ts
    options.update(payload)
    options["channel"] = room
    return options


class OutboundGateway:
    """Best-effort delivery: every call is attempted once and failures are only logged."""

    def __init__(self, web_client: SerializedWebClient, conversations: ConversationCache) -> None:
        self._web_client = web_client
        self._conversations = conversations

    async def send(self, envelope: Envelope, payload: Payload) -> None:
        room = envelope.room or envelope.id
        if not room:
            LOGGER.error(
                "Cannot send message without a valid room. Envelopes should contain a room "
                "property set to a Slack conversation ID."
            )
            return

        options = build_message_options(room, payload, envelope.thread_ts)
        LOGGER.debug("Sending message to %s: %s", room, options.get("text"))
        try:
            await self._web_client.chat_postMessage(**options)
        except SLACK_CALL_ERRORS as exc:
            LOGGER.error("Failed to send Slack message to %s (%s): %s", room, error_code(exc), exc)
            return
        LOGGER.debug("Successfully sent message to %s", room)

    async def set_topic(self, conversation_id: str, topic: str) -> None:
        LOGGER.debug("Setting topic in %s to %s", conversation_id, topic)
        try:
            conversation = await self._conversations.resolve(conversation_id)
        except SlackError as exc:
            LOGGER.error("Error setting topic in conversation %s: %s", conversation_id, exc)
            return

        if conversation.get("is_im") or conversation.get("is_mpim"):
            LOGGER.debug(
                "Conversation %s is a DM or MPDM. These conversation types do not have topics.",
                conversation_id,
            )
            return

        try:
            await self._web_client.conversations_setTopic(channel=conversation_id, topic=topic)
        except SLACK_CALL_ERRORS as exc:
            LOGGER.error(
                "Error setting topic in conversation %s (%s): %s",
                conversation_id,
                error_code(exc),
                exc,
            )
