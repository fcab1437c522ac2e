"""
MessagingService — the operations exposed to callers.

A sync pass runs checkpoint → paginated fetch → upload for one partition and
reports a single SyncResult. Only one pass per partition may run at a time.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Optional, Sequence

from treetracker_messaging.errors import (
    MessagingError,
    MissingIdentifierError,
    SurveyAnsweredError,
    SurveyNotFoundError,
    SyncInProgressError,
)
from treetracker_messaging.messages_api import MessagesAPI
from treetracker_messaging.models.message import Message, MessageType, Question, Survey
from treetracker_messaging.models.partition import Partition
from treetracker_messaging.store import messages as store
from treetracker_messaging.store.database import Database
from treetracker_messaging.store.schema import MessageRecord
from treetracker_messaging.sync.checkpoint import DerivedCheckpoint
from treetracker_messaging.sync.pagination import DEFAULT_PAGE_LIMIT, CheckpointSource, PaginationWalker
from treetracker_messaging.sync.reconciler import Reconciler, pair_surveys
from treetracker_messaging.sync.result import SyncResult
from treetracker_messaging.sync.uploader import Uploader
from treetracker_messaging.timestamps import utcnow

logger = logging.getLogger(__name__)

DISPLAY_PAGE_SIZE = 40
ADMIN_HANDLE = "admin"


def _require_handle(partition: Partition) -> str:
    handle = partition.wallet_handle
    if not handle:
        raise MissingIdentifierError()
    return handle


class MessagingService:
    def __init__(
        self,
        api: MessagesAPI,
        database: Database,
        checkpoints: Optional[CheckpointSource] = None,
        page_limit: Optional[int] = DEFAULT_PAGE_LIMIT,
    ):
        self._database = database
        self.reconciler = Reconciler(database)
        self.walker = PaginationWalker(
            api, self.reconciler, checkpoints or DerivedCheckpoint(database), page_limit=page_limit,
        )
        self.uploader = Uploader(api, database)
        self._active: set[str] = set()

    # ---------- Sync ----------

    async def sync_messages(self, partition: Partition) -> SyncResult:
        """Run one sync pass. Messaging errors become a failed result; store errors propagate."""
        if partition.key in self._active:
            logger.warning("Sync already running for %s, rejecting", partition.key)
            return SyncResult(error=SyncInProgressError(partition.key))

        self._active.add(partition.key)
        result = SyncResult()
        try:
            _require_handle(partition)
            walk = await self.walker.drain_all(partition)
            result.pages, result.fetched, result.inserted = walk.pages, walk.fetched, walk.inserted
            result.uploaded = await self.uploader.flush_pending(partition)
        except MessagingError as e:
            logger.error("Sync failed for %s: [%s] %s", partition.key, e.code, e)
            result.error = e
        finally:
            self._active.discard(partition.key)

        logger.info("Sync finished for %s: %r", partition.key, result)
        return result

    def is_syncing(self, partition: Partition) -> bool:
        return partition.key in self._active

    # ---------- Reading ----------

    def get_saved_messages(self, partition: Partition) -> list[MessageRecord]:
        with self._database.session() as db:
            return store.list_messages(db, partition.key)

    def get_messages_for_display(
        self,
        partition: Partition,
        offset: int = 0,
        page_size: int = DISPLAY_PAGE_SIZE,
        types: Optional[Iterable[str]] = None,
    ) -> list[MessageRecord]:
        """A window of visible messages, newest first in the store, returned oldest first.

        `types` narrows the feed, e.g. to ["message"] for plain conversation.
        """
        with self._database.session() as db:
            window = store.list_messages(
                db, partition.key, hidden=False, types=types, newest_first=True, limit=page_size, offset=offset,
            )
        window.reverse()
        return window

    def update_unread_messages(self, partition: Partition, records: Sequence[MessageRecord]) -> Sequence[MessageRecord]:
        unread_ids = [r.message_id for r in records if r.unread]
        if unread_ids:
            with self._database.session() as db:
                store.mark_read(db, partition.key, unread_ids)
        for record in records:
            record.unread = False
        return records

    def unread_count(self, partition: Partition) -> int:
        with self._database.session() as db:
            return store.count_unread(db, partition.key)

    # ---------- Composing ----------

    def create_message(self, partition: Partition, text: str, to: str = ADMIN_HANDLE) -> MessageRecord:
        handle = _require_handle(partition)
        message = Message(
            id=str(uuid.uuid4()),
            from_=handle,
            to=to,
            body=text,
            type=MessageType.MESSAGE,
            composed_at=utcnow(),
        )
        record = store.build_record(message, partition.key, uploaded=False, unread=False)
        with self._database.session() as db:
            store.add_records(db, [record])
        logger.debug("Composed message %s for %s", record.message_id, partition.key)
        return record

    def create_survey_response(self, partition: Partition, survey_id: str, choices: Iterable[str]) -> MessageRecord:
        """Answer a stored survey; the survey and the response are paired and hidden at once.

        A survey that is already paired with a response cannot be answered again.
        """
        handle = _require_handle(partition)
        with self._database.session() as db:
            if store.survey_is_paired(db, partition.key, survey_id):
                raise SurveyAnsweredError(survey_id)
            prompt = store.find_survey_prompt(db, partition.key, survey_id)
            if prompt is None or prompt.survey is None:
                raise SurveyNotFoundError(survey_id)

            message = Message(
                id=str(uuid.uuid4()),
                parent_message_id=prompt.message_id,
                from_=handle,
                to=prompt.from_handle,
                type=MessageType.SURVEY_RESPONSE,
                composed_at=utcnow(),
                survey=Survey(
                    id=survey_id,
                    title=prompt.survey.title,
                    questions=[Question(prompt=q.prompt, choices=list(q.choices)) for q in prompt.survey.questions],
                    response=True,
                ),
                survey_response=list(choices),
            )
            record = store.build_record(message, partition.key, uploaded=False, unread=False)
            prompt.survey.answered = True
            store.add_records(db, [record])
            db.flush()
            pair_surveys(db, partition.key)

        logger.debug("Composed response %s to survey %s", record.message_id, survey_id)
        return record
