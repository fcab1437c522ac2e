"""
Messaging REST API — fetch pages of messages and post locally composed ones.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError

from treetracker_messaging.errors import MalformedResponseError
from treetracker_messaging.models.message import MessagesPage, PostMessageBody
from treetracker_messaging.store.schema import MessageRecord
from treetracker_messaging.timestamps import format_timestamp
from treetracker_messaging.transport.http import HttpClient

MESSAGES_PATH = "messaging/message"


def next_page_path(cursor: str) -> str:
    """The API returns `next` relative to the messaging root."""
    cursor = cursor.lstrip("/")
    if cursor.startswith("messaging/"):
        return cursor
    return f"messaging/{cursor}"


def post_body(record: MessageRecord, author_handle: Optional[str]) -> dict[str, Any]:
    return PostMessageBody(
        id=record.message_id,
        author_handle=author_handle,
        recipient_handle=record.to_handle,
        type=record.type,
        body=record.body,
        composed_at=format_timestamp(record.composed_at),
        survey_response=record.survey_response,
        survey_id=record.survey_id,
    ).model_dump()


class MessagesAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    @staticmethod
    def _page(data: Any) -> MessagesPage:
        try:
            return MessagesPage.model_validate(data if data is not None else {})
        except ValidationError as e:
            raise MalformedResponseError(f"Unexpected messages payload: {e.error_count()} error(s)", {"errors": e.errors()})

    async def fetch_messages(self, wallet_handle: str, since: datetime, limit: Optional[int] = None) -> MessagesPage:
        """First page of messages for a handle composed after `since`."""
        params: dict[str, Any] = {"handle": wallet_handle, "since": format_timestamp(since)}
        if limit is not None:
            params["limit"] = limit
        return self._page(await self._http.get(MESSAGES_PATH, params=params))

    async def fetch_next_messages(self, cursor: str) -> MessagesPage:
        return self._page(await self._http.get(next_page_path(cursor)))

    async def post_message(self, record: MessageRecord, author_handle: Optional[str]) -> None:
        await self._http.post(MESSAGES_PATH, post_body(record, author_handle))
