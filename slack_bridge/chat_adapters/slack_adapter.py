"""Slack adapter using the official Slack SDK."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Mapping, Optional, Set

from slack_sdk.socket_mode.aiohttp import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse

from .i_chat_adapter import IChatAdapter
from ..core.config import Config
from ..core.conversation_cache import ConversationCache
from ..core.errors import ConfigError, SlackError, UserLoadError, error_code
from ..core.formatter import TextMessageBuilder
from ..core.models import Dropped, Envelope, EventType, InboundEvent, SelfIdentity
from ..core.normalizer import EventNormalizer
from ..core.outbound import OutboundGateway, Payload
from ..core.runtime import BotRuntime
from ..core.user_directory import UserDirectory
from ..core.web_client import SLACK_CALL_ERRORS, SerializedWebClient

LOGGER = logging.getLogger(__name__)


class SlackAdapter(IChatAdapter):
    def __init__(
        self,
        config: Config,
        runtime: BotRuntime,
        web_client: Optional[SerializedWebClient] = None,
        socket_client: Optional[SocketModeClient] = None,
    ) -> None:
        self._config = config
        self._runtime = runtime
        self._web_client = web_client or SerializedWebClient(
            config.slack_bot_token, max_concurrency=1, proxy=config.proxy
        )
        self._socket = socket_client
        self._users = UserDirectory(self._web_client, runtime.brain, page_size=config.api_page_size)
        self._conversations = ConversationCache(
            self._web_client, ttl_ms=config.conversation_cache_ttl_ms
        )
        self._normalizer = EventNormalizer(
            self._users,
            TextMessageBuilder(self._users, self._conversations),
            alias=config.alias or runtime.alias,
        )
        self._gateway = OutboundGateway(self._web_client, self._conversations)
        self._identity: Optional[SelfIdentity] = None
        self._brain_is_loaded = False
        self._stopping = False
        self._stop_event = asyncio.Event()
        self._background_tasks: Set[asyncio.Task] = set()

    @property
    def identity(self) -> Optional[SelfIdentity]:
        return self._identity

    async def run(self) -> bool:
        problems = self._config.token_problems()
        if problems:
            for problem in problems:
                LOGGER.error(problem)
            if self._config.strict_startup:
                raise ConfigError("; ".join(problems))
            return False

        socket = self._ensure_socket()
        socket.socket_mode_request_listeners.append(self._handle_socket_request)
        socket.on_error_listeners.append(self._on_error)
        socket.on_close_listeners.append(self._on_close)

        # The store fires "loaded" on first connect to its storage; only the first one syncs.
        self._runtime.brain.on_loaded(self._on_brain_loaded)
        if self._config.disable_user_sync:
            self._brain_is_loaded = True
        else:
            self._schedule_user_sync()

        await self._authenticated()
        LOGGER.info("Connecting to Slack via Socket Mode")
        await socket.connect()
        self._opened()
        return True

    async def start(self) -> None:
        if not await self.run():
            LOGGER.error("Slack adapter did not start; check the configured tokens")
            return
        await self._stop_event.wait()

    async def stop(self) -> None:
        self._stopping = True
        if not self._stop_event.is_set():
            self._stop_event.set()
        LOGGER.info("Disconnected from Slack Socket")
        if self._socket is not None:
            await self._socket.disconnect()
            await self._socket.close()
        tasks = list(self._background_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def send(self, envelope: Envelope, *messages: Payload) -> List[Any]:
        LOGGER.debug("Sending message to Slack")
        return await asyncio.gather(
            *(self._gateway.send(envelope, message) for message in messages if message != "")
        )

    async def reply(self, envelope: Envelope, *messages: Payload) -> List[Any]:
        LOGGER.debug("Replying to message")
        room = envelope.room or ""
        if envelope.user is None or room.startswith("D"):
            return await self.send(envelope, *messages)
        prefix = f"<@{envelope.user.id}>: "
        addressed: List[Payload] = []
        for message in messages:
            if message == "":
                continue
            if isinstance(message, Mapping):
                addressed.append({**message, "text": prefix + (message.get("text") or "")})
            else:
                addressed.append(prefix + message)
        return await self.send(envelope, *addressed)

    async def set_topic(self, envelope: Envelope, *lines: str) -> None:
        room = envelope.room or envelope.id
        if not room:
            LOGGER.error("Cannot set a topic without a room")
            return
        await self._gateway.set_topic(room, "\n".join(lines))

    async def sync_users(self) -> None:
        """Load all workspace users into the runtime's store."""
        try:
            users = await self._users.bulk_load()
        except UserLoadError as exc:
            LOGGER.error("Can't fetch users (%s): %s", exc.code, exc)
            return
        if not users:
            LOGGER.error("Can't fetch users: the workspace returned no members")

    def _ensure_socket(self) -> SocketModeClient:
        if self._socket is None:
            self._socket = SocketModeClient(
                app_token=self._config.slack_app_token,
                web_client=self._web_client.raw,
                proxy=self._config.proxy,
            )
        return self._socket

    def _schedule_user_sync(self) -> None:
        task = asyncio.create_task(self.sync_users())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    def _on_brain_loaded(self) -> None:
        if self._brain_is_loaded:
            return
        self._brain_is_loaded = True
        self._schedule_user_sync()

    def _opened(self) -> None:
        LOGGER.info("Connected to Slack Socket")
        self._runtime.emit("connected")

    async def _authenticated(self) -> None:
        if self._identity is not None:
            return
        try:
            response = await self._web_client.auth_test()
        except SLACK_CALL_ERRORS as exc:
            raise SlackError(f"Slack authentication failed: {exc}", code=error_code(exc)) from exc
        self._identity = SelfIdentity.from_auth_test(response)
        self._normalizer.set_identity(self._identity)
        self._runtime.name = self._identity.user
        LOGGER.info("Logged in as @%s in workspace %s", self._identity.user, self._identity.team)

    async def _on_close(self, *args: Any) -> None:
        socket = self._socket
        if socket is not None and socket.auto_reconnect_enabled and not self._stopping:
            LOGGER.info("Disconnected from Slack Socket")
            LOGGER.info("Waiting for reconnect...")
        else:
            LOGGER.info("Disconnected from Slack Socket")

    async def _on_error(self, error: Any) -> None:
        LOGGER.error("SlackBot error: %s", error)
        self._runtime.emit("error", error)

    async def _handle_socket_request(
        self,
        client: SocketModeClient,
        req: SocketModeRequest,
    ) -> None:
        async def _ack() -> None:
            await client.send_socket_mode_response(SocketModeResponse(envelope_id=req.envelope_id))

        if req.type != "events_api":
            await _ack()
            return

        payload = req.payload or {}
        event_time = payload.get("event_time")
        inbound = InboundEvent(
            event=payload.get("event") or {},
            body=payload,
            ts=str(event_time) if event_time is not None else None,
            ack=_ack,
        )
        await self.handle_event(inbound)

    async def handle_event(self, inbound: InboundEvent) -> None:
        """Acknowledge, normalize and hand an event to the runtime. Never raises."""
        try:
            await inbound.acknowledge()
        except Exception:
            LOGGER.exception("Failed to acknowledge Slack event")

        LOGGER.debug("Slack event %s", inbound.event)
        try:
            if inbound.type == EventType.USER_CHANGE:
                self._users.update_from_event(inbound.event)
                return

            result = await self._normalizer.normalize(inbound)
            if isinstance(result, Dropped):
                LOGGER.debug("Dropped %s event: %s", inbound.event.get("type"), result.reason.value)
                return
            await self._runtime.receive(result)
        except Exception:
            LOGGER.exception("An error occurred while processing a Slack event")
