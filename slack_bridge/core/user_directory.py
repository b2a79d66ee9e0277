"""Write-through directory of Slack users backed by the runtime's user store."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, List

from .errors import SlackError, UserLoadError, error_code
from .models import EventType, User
from .runtime import UserStore
from .web_client import SLACK_CALL_ERRORS, SerializedWebClient

LOGGER = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


class UserDirectory:
    def __init__(
        self,
        web_client: SerializedWebClient,
        store: UserStore,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._web_client = web_client
        self._store = store
        self._page_size = page_size

    async def resolve(self, user_id: str) -> User:
        """Return the stored user, fetching it from Slack on a miss."""
        user = self._store.get(user_id)
        if user is not None:
            return user
        try:
            response = await self._web_client.users_info(user=user_id)
        except SLACK_CALL_ERRORS as exc:
            raise SlackError(
                f"Failed to fetch user {user_id}: {exc}", code=error_code(exc)
            ) from exc
        payload = response.get("user")
        if not payload:
            raise SlackError(f"No user returned for {user_id}")
        return self.update_from_event(payload)

    def update_from_event(self, payload: Dict[str, Any]) -> User:
        """Merge a user sighting, either a ``user_change`` event or a bare user object."""
        if payload.get("type") == EventType.USER_CHANGE.value:
            payload = payload["user"]
        fresh = User.from_slack(payload)
        return self._store.set(fresh.id, fresh)

    async def bulk_load(self) -> List[User]:
        """Load every workspace member, merging them into the store once all pages arrive."""
        members: List[Dict[str, Any]] = []
        async for page in self._iter_pages():
            members.extend(page)
        LOGGER.info("Loaded %s workspace member(s)", len(members))
        return [self.update_from_event(member) for member in members]

    async def _iter_pages(self) -> AsyncIterator[List[Dict[str, Any]]]:
        cursor: str | None = None
        while True:
            try:
                response = await self._web_client.users_list(limit=self._page_size, cursor=cursor)
            except SLACK_CALL_ERRORS as exc:
                raise UserLoadError(
                    f"Failed to load workspace users: {exc}", code=error_code(exc)
                ) from exc
            yield response.get("members") or []
            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return
