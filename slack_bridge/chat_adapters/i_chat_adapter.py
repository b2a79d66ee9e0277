"""Chat adapter abstraction."""

from __future__ import annotations

import abc
from typing import Any, List

from ..core.models import Envelope
from ..core.outbound import Payload


class IChatAdapter(abc.ABC):
    """Abstraction between a bot runtime and a chat platform."""

    @abc.abstractmethod
    async def run(self) -> bool:
        """Authenticate and connect. Returns False when startup was refused."""

    @abc.abstractmethod
    async def send(self, envelope: Envelope, *messages: Payload) -> List[Any]:
        """Send one or more messages to the envelope's room."""

    @abc.abstractmethod
    async def reply(self, envelope: Envelope, *messages: Payload) -> List[Any]:
        """Send messages addressed to the envelope's user."""

    @abc.abstractmethod
    async def set_topic(self, envelope: Envelope, *lines: str) -> None:
        """Set the topic of the envelope's room."""

    @abc.abstractmethod
    async def start(self) -> None:
        """Begin listening for events and block until stopped."""

    @abc.abstractmethod
    async def stop(self) -> None:
        """Shutdown the adapter."""
