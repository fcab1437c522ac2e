"""Shared fixtures: a throwaway SQLite store and an in-memory messaging API."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from treetracker_messaging.errors import TransportError
from treetracker_messaging.models.message import Links, Message, MessagesPage
from treetracker_messaging.models.partition import Partition, PlanterIdentity
from treetracker_messaging.store.database import Database

BASE_TIME = datetime(2023, 4, 3, 10, 0, tzinfo=timezone.utc)


class FakeMessagesAPI:
    """Serves canned pages and records every call.

    `first_page` answers fetch_messages; `pages` maps cursors to pages.
    `fail_post_on` holds 1-based attempt numbers at which post_message raises.
    """

    def __init__(self) -> None:
        self.first_page = MessagesPage()
        self.pages: dict[str, MessagesPage] = {}
        self.fail_fetch_on: Optional[str] = None
        self.fail_post_on: set[int] = set()
        self.fetch_calls: list[dict[str, Any]] = []
        self.next_calls: list[str] = []
        self.post_attempts: list[str] = []
        self.posted: list[tuple[str, Optional[str]]] = []

    async def fetch_messages(self, wallet_handle, since, limit=None):
        self.fetch_calls.append({"handle": wallet_handle, "since": since, "limit": limit})
        if self.fail_fetch_on == "first":
            raise TransportError("HTTP 503: unavailable", status_code=503)
        return self.first_page

    async def fetch_next_messages(self, cursor):
        self.next_calls.append(cursor)
        if self.fail_fetch_on == cursor:
            raise TransportError("connection reset")
        return self.pages[cursor]

    async def post_message(self, record, author_handle):
        self.post_attempts.append(record.message_id)
        if len(self.post_attempts) in self.fail_post_on:
            raise TransportError("HTTP 500: boom", status_code=500)
        self.posted.append((record.message_id, author_handle))


def page(messages: list[Message], next: Optional[str] = None) -> MessagesPage:
    return MessagesPage(messages=messages, links=Links(next=next))


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'messages.db'}")
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture
def partition():
    return Partition(key="planter-1", identity=PlanterIdentity(wallet_handle="joe"))


@pytest.fixture
def anonymous_partition():
    return Partition(key="planter-1")


@pytest.fixture
def fake_api():
    return FakeMessagesAPI()


@pytest.fixture
def make_page():
    return page


@pytest.fixture
def make_message():
    def _make(
        message_id: str,
        minutes: int = 0,
        type: str = "message",
        survey_id: Optional[str] = None,
        answered: bool = False,
        body: Optional[str] = "hello",
        sender: str = "admin",
    ) -> Message:
        data: dict[str, Any] = {
            "id": message_id,
            "from": sender,
            "to": "joe",
            "body": body,
            "type": type,
            "composed_at": (BASE_TIME + timedelta(minutes=minutes)).isoformat(),
        }
        if survey_id is not None:
            data["survey"] = {
                "id": survey_id,
                "title": "Nursery check",
                "questions": [{"prompt": "Seedlings healthy?", "choices": ["Yes", "No"]}],
                "response": answered,
            }
        return Message.model_validate(data)

    return _make
