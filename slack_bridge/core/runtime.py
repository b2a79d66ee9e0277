"""Bot runtime contract consumed by the adapter, plus an in-memory implementation."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

from .models import NormalizedMessage, User

LOGGER = logging.getLogger(__name__)

Listener = Callable[..., Any]


class UserStore:
    """Key-value store of users with merge-on-set semantics.

    Fires ``loaded`` listeners every time :meth:`mark_loaded` is called, the
    same way a persistent brain signals that its backing storage is ready.
    """

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._loaded_listeners: List[Listener] = []

    def get(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def set(self, user_id: str, user: User) -> User:
        user = user.merged_over(self._users.get(user_id))
        self._users[user_id] = user
        return user

    def users(self) -> Dict[str, User]:
        return dict(self._users)

    def on_loaded(self, listener: Listener) -> None:
        self._loaded_listeners.append(listener)

    def mark_loaded(self) -> None:
        for listener in list(self._loaded_listeners):
            listener()


class BotRuntime(Protocol):
    name: str
    alias: Optional[str]
    brain: UserStore

    async def receive(self, message: NormalizedMessage) -> None:
        ...

    def emit(self, event: str, *args: Any) -> None:
        ...


class InMemoryRuntime:
    """Minimal runtime that records and logs every message it receives."""

    def __init__(self, name: str = "bot", alias: Optional[str] = None) -> None:
        self.name = name
        self.alias = alias
        self.brain = UserStore()
        self.received: List[NormalizedMessage] = []
        self._listeners: Dict[str, List[Listener]] = {}

    async def receive(self, message: NormalizedMessage) -> None:
        self.received.append(message)
        LOGGER.info("Received %s message: %s", message.kind.value, message)

    def on(self, event: str, listener: Listener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def emit(self, event: str, *args: Any) -> None:
        LOGGER.debug("Runtime event %s", event)
        for listener in self._listeners.get(event, []):
            listener(*args)
