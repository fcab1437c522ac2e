"""
PaginationWalker — fetch pages until the API stops returning a `next` cursor.
"""

import asyncio
import logging
from typing import Optional, Union

from treetracker_messaging.errors import MissingIdentifierError
from treetracker_messaging.messages_api import MessagesAPI
from treetracker_messaging.models.message import MessagesPage
from treetracker_messaging.models.partition import Partition
from treetracker_messaging.sync.checkpoint import DerivedCheckpoint, PersistedCheckpoint
from treetracker_messaging.sync.reconciler import Reconciler
from treetracker_messaging.timestamps import utcnow

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 50

CheckpointSource = Union[DerivedCheckpoint, PersistedCheckpoint]


class WalkSummary:
    __slots__ = ("pages", "fetched", "inserted")

    def __init__(self, pages: int = 0, fetched: int = 0, inserted: int = 0):
        self.pages = pages
        self.fetched = fetched
        self.inserted = inserted

    def __repr__(self) -> str:
        return f"WalkSummary(pages={self.pages}, fetched={self.fetched}, inserted={self.inserted})"


class PaginationWalker:
    def __init__(
        self,
        api: MessagesAPI,
        reconciler: Reconciler,
        checkpoints: CheckpointSource,
        page_limit: Optional[int] = DEFAULT_PAGE_LIMIT,
    ):
        self._api = api
        self._reconciler = reconciler
        self._checkpoints = checkpoints
        self._page_limit = page_limit

    async def drain_all(self, partition: Partition, initial_cursor: Optional[str] = None) -> WalkSummary:
        """Fetch and reconcile every page for the partition.

        Without `initial_cursor` the walk starts from the partition checkpoint.
        Transport errors propagate; pages reconciled before the error stay stored.
        Store work runs in a worker thread so the event loop is not blocked.
        """
        started = utcnow()
        summary = WalkSummary()

        if initial_cursor is not None:
            page = await self._api.fetch_next_messages(initial_cursor)
        else:
            handle = partition.wallet_handle
            if not handle:
                raise MissingIdentifierError()
            since = await asyncio.to_thread(self._checkpoints.since, partition.key)
            logger.debug("Fetching messages for %s since %s", handle, since.isoformat())
            page = await self._api.fetch_messages(handle, since, self._page_limit)

        while True:
            await self._absorb(partition, page, summary)
            cursor = page.next
            if not cursor:
                break
            page = await self._api.fetch_next_messages(cursor)

        await asyncio.to_thread(self._checkpoints.mark_synced, partition.key, started)
        logger.info("Fetched %d remote message(s) in %d page(s)", summary.fetched, summary.pages)
        return summary

    async def _absorb(self, partition: Partition, page: MessagesPage, summary: WalkSummary) -> None:
        summary.pages += 1
        summary.fetched += len(page.messages)
        summary.inserted += await asyncio.to_thread(self._reconciler.reconcile, partition, page.messages)
