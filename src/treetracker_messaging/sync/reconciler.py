"""
Reconciler — merge remote messages into the local store.

Merging is a dedup-by-id insert: a message whose id is already stored for the
partition is dropped, whatever its content (first write wins). New records are
remote-sourced, so they start uploaded and unread. After the insert the survey
pairing pass hides each survey together with its response. The id lookup,
insert and pairing share one transaction.
"""

import logging
from typing import Iterable

from sqlalchemy.orm import Session

from treetracker_messaging.models.message import Message
from treetracker_messaging.models.partition import Partition
from treetracker_messaging.store import messages as store
from treetracker_messaging.store.database import Database

logger = logging.getLogger(__name__)


def pair_surveys(db: Session, partition_key: str) -> int:
    """Hide and mark read the first two unhidden records sharing each survey id.

    Each survey id is paired at most once per partition: once any record with
    that id is hidden, later copies stay visible and unpaired, whichever pass
    stored them. Returns the number of pairs made.
    """
    records = store.records_with_survey(db, partition_key)
    settled = {r.survey_id for r in records if r.hidden}
    pairs = 0
    for i, record in enumerate(records):
        if record.hidden or record.survey_id in settled:
            continue
        for other in records[i + 1:]:
            if other.hidden or other.survey_id != record.survey_id:
                continue
            for paired in (record, other):
                paired.hidden = True
                paired.unread = False
            settled.add(record.survey_id)
            pairs += 1
            logger.debug(
                "Paired survey %s: %s <-> %s", record.survey_id, record.message_id, other.message_id,
            )
            break
    return pairs


class Reconciler:
    def __init__(self, database: Database):
        self._database = database

    def reconcile(self, partition: Partition, incoming: Iterable[Message]) -> int:
        """Store the messages not seen before and re-run survey pairing.

        Returns the number of new records.
        """
        # Surveys the server already marks answered are echoes, not prompts.
        candidates = [m for m in incoming if not m.is_answered_survey]
        if not candidates:
            return 0

        with self._database.session() as db:
            seen = store.existing_message_ids(db, partition.key)
            fresh = []
            for message in candidates:
                if message.message_id in seen:
                    continue
                seen.add(message.message_id)
                fresh.append(store.build_record(message, partition.key, uploaded=True, unread=True))

            if not fresh:
                logger.debug("No new messages for %s (%d already stored)", partition.key, len(candidates))
                return 0

            store.add_records(db, fresh)
            db.flush()
            pairs = pair_surveys(db, partition.key)

        logger.info(
            "Stored %d new message(s) for %s, skipped %d duplicate(s), paired %d survey(s)",
            len(fresh), partition.key, len(candidates) - len(fresh), pairs,
        )
        return len(fresh)
