"""
AsyncMessagingClient / MessagingClient — wire settings, transport, store and service.
"""

import asyncio
from typing import Any, Iterable, Optional

import httpx

from treetracker_messaging.config import Settings
from treetracker_messaging.messages_api import MessagesAPI
from treetracker_messaging.models.partition import Partition, PlanterIdentity
from treetracker_messaging.service import MessagingService
from treetracker_messaging.store.database import Database
from treetracker_messaging.store.schema import MessageRecord
from treetracker_messaging.sync.checkpoint import DerivedCheckpoint, LastSyncTimeStore, PersistedCheckpoint
from treetracker_messaging.sync.result import SyncResult
from treetracker_messaging.transport.http import HttpClient


class AsyncMessagingClient:
    """Async messaging client (primary)."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **overrides: Any,
    ):
        self.settings = settings or Settings.load(**overrides)
        self.http = HttpClient(base_url=self.settings.base_url, timeout=self.settings.timeout, transport=transport)
        self.api = MessagesAPI(self.http)
        self.database = Database(self.settings.database_url)
        self.database.init_db()

        if self.settings.checkpoint_mode == "persisted":
            checkpoints = PersistedCheckpoint(LastSyncTimeStore(self.settings.state_file), self.database)
        else:
            checkpoints = DerivedCheckpoint(self.database)

        self.service = MessagingService(
            self.api, self.database, checkpoints=checkpoints, page_limit=self.settings.page_limit,
        )

    @property
    def partition(self) -> Partition:
        """The partition named in settings, with an identity when a wallet handle is configured."""
        handle = self.settings.wallet_handle
        identity = PlanterIdentity(wallet_handle=handle) if handle else None
        return Partition(key=self.settings.partition, identity=identity)

    async def sync(self, partition: Optional[Partition] = None) -> SyncResult:
        return await self.service.sync_messages(partition or self.partition)

    def messages(
        self, offset: int = 0, types: Optional[Iterable[str]] = None, partition: Optional[Partition] = None,
    ) -> list[MessageRecord]:
        return self.service.get_messages_for_display(partition or self.partition, offset, types=types)

    def send(self, text: str, partition: Optional[Partition] = None) -> MessageRecord:
        """Compose a message; it is uploaded on the next sync."""
        return self.service.create_message(partition or self.partition, text)

    def respond(self, survey_id: str, choices: Iterable[str], partition: Optional[Partition] = None) -> MessageRecord:
        return self.service.create_survey_response(partition or self.partition, survey_id, choices)

    def mark_read(self, records: list[MessageRecord], partition: Optional[Partition] = None) -> list[MessageRecord]:
        return list(self.service.update_unread_messages(partition or self.partition, records))

    def unread_count(self, partition: Optional[Partition] = None) -> int:
        return self.service.unread_count(partition or self.partition)

    async def close(self) -> None:
        await self.http.close()
        self.database.dispose()


class MessagingClient:
    """Sync wrapper around AsyncMessagingClient. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._async = AsyncMessagingClient(**kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def settings(self) -> Settings:
        return self._async.settings

    @property
    def partition(self) -> Partition:
        return self._async.partition

    @property
    def service(self) -> MessagingService:
        return self._async.service

    def sync(self, partition: Optional[Partition] = None) -> SyncResult:
        return self._run(self._async.sync(partition))

    def messages(
        self, offset: int = 0, types: Optional[Iterable[str]] = None, partition: Optional[Partition] = None,
    ) -> list[MessageRecord]:
        return self._async.messages(offset, types, partition)

    def send(self, text: str, partition: Optional[Partition] = None) -> MessageRecord:
        return self._async.send(text, partition)

    def respond(self, survey_id: str, choices: Iterable[str], partition: Optional[Partition] = None) -> MessageRecord:
        return self._async.respond(survey_id, choices, partition)

    def mark_read(self, records: list[MessageRecord], partition: Optional[Partition] = None) -> list[MessageRecord]:
        return self._async.mark_read(records, partition)

    def unread_count(self, partition: Optional[Partition] = None) -> int:
        return self._async.unread_count(partition)

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
