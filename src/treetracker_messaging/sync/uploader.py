"""
Uploader — send locally composed messages, one at a time.
"""

import asyncio
import logging

from treetracker_messaging.errors import MessagingError, MissingIdentifierError
from treetracker_messaging.messages_api import MessagesAPI
from treetracker_messaging.models.partition import Partition
from treetracker_messaging.store import messages as store
from treetracker_messaging.store.database import Database
from treetracker_messaging.store.schema import MessageRecord

logger = logging.getLogger(__name__)


class Uploader:
    def __init__(self, api: MessagesAPI, database: Database):
        self._api = api
        self._database = database

    async def flush_pending(self, partition: Partition) -> int:
        """Upload pending records oldest first; returns how many were accepted.

        Each accepted record is committed as uploaded before the next send. The
        first failure stops the batch and propagates, so every record before it
        is uploaded and every record from it onwards is still pending.
        """
        pending = await asyncio.to_thread(self._pending, partition.key)
        if not pending:
            logger.debug("No messages to upload for %s", partition.key)
            return 0

        handle = partition.wallet_handle
        if not handle:
            raise MissingIdentifierError()

        logger.info("Uploading %d pending message(s) for %s", len(pending), partition.key)
        uploaded = 0
        for record in pending:
            try:
                await self._api.post_message(record, handle)
            except MessagingError as e:
                logger.error(
                    "Upload of %s failed after %d of %d message(s): %s", record.message_id, uploaded, len(pending), e,
                )
                raise
            await asyncio.to_thread(self._mark_uploaded, partition.key, record.message_id)
            record.uploaded = True
            uploaded += 1
            logger.debug("Uploaded %s", record.message_id)
        return uploaded

    def _pending(self, partition_key: str) -> list[MessageRecord]:
        with self._database.session() as db:
            return store.pending_uploads(db, partition_key)

    def _mark_uploaded(self, partition_key: str, message_id: str) -> None:
        with self._database.session() as db:
            store.mark_uploaded(db, partition_key, message_id)
