"""
Message store queries. Every function takes the caller's session so that
several of them can share one transaction.
"""

from typing import Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from treetracker_messaging.models.message import Message
from treetracker_messaging.store.schema import MessageRecord, QuestionRecord, SurveyRecord
from treetracker_messaging.timestamps import to_storage


def build_record(
    message: Message,
    partition_key: str,
    *,
    uploaded: bool,
    unread: bool,
) -> MessageRecord:
    """Materialize a wire message, survey and questions included, as a new record."""
    record = MessageRecord(
        owner_partition=partition_key,
        message_id=message.message_id,
        parent_message_id=message.parent_message_id,
        from_handle=message.from_,
        to_handle=message.to,
        subject=message.subject,
        body=message.body,
        type=message.type.value,
        composed_at=to_storage(message.composed_at),
        video_link=message.video_link,
        survey_response=list(message.survey_response) if message.survey_response is not None else None,
        uploaded=uploaded,
        unread=unread,
        hidden=False,
    )
    if message.survey is not None:
        record.survey = SurveyRecord(
            survey_id=message.survey.survey_id,
            title=message.survey.title,
            answered=message.survey.answered,
            questions=[
                QuestionRecord(position=i, prompt=q.prompt, choices=list(q.choices))
                for i, q in enumerate(message.survey.questions)
            ],
        )
    else:
        record.survey = None
    return record


def existing_message_ids(db: Session, partition_key: str) -> set[str]:
    rows = db.execute(
        select(MessageRecord.message_id).where(MessageRecord.owner_partition == partition_key)
    ).scalars()
    return set(rows)


def add_records(db: Session, records: Iterable[MessageRecord]) -> None:
    db.add_all(list(records))


def list_messages(
    db: Session,
    partition_key: str,
    *,
    hidden: Optional[bool] = None,
    unread: Optional[bool] = None,
    uploaded: Optional[bool] = None,
    types: Optional[Iterable[str]] = None,
    newest_first: bool = False,
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[MessageRecord]:
    query = select(MessageRecord).where(MessageRecord.owner_partition == partition_key)

    if hidden is not None:
        query = query.where(MessageRecord.hidden == hidden)
    if unread is not None:
        query = query.where(MessageRecord.unread == unread)
    if uploaded is not None:
        query = query.where(MessageRecord.uploaded == uploaded)
    if types is not None:
        query = query.where(MessageRecord.type.in_(list(types)))

    if newest_first:
        query = query.order_by(MessageRecord.composed_at.desc(), MessageRecord.message_id.desc())
    else:
        query = query.order_by(MessageRecord.composed_at.asc(), MessageRecord.message_id.asc())

    if limit is not None:
        query = query.limit(limit)
    if offset:
        query = query.offset(offset)

    return list(db.execute(query).scalars().all())


def records_with_survey(db: Session, partition_key: str) -> list[MessageRecord]:
    query = (
        select(MessageRecord)
        .join(MessageRecord.survey)
        .where(MessageRecord.owner_partition == partition_key)
        .order_by(MessageRecord.composed_at.asc(), MessageRecord.pk.asc())
    )
    return list(db.execute(query).scalars().all())


def pending_uploads(db: Session, partition_key: str) -> list[MessageRecord]:
    """Locally authored records the server has not accepted yet, oldest first."""
    return list_messages(db, partition_key, uploaded=False)


def latest_uploaded(db: Session, partition_key: str) -> Optional[MessageRecord]:
    found = list_messages(db, partition_key, uploaded=True, newest_first=True, limit=1)
    return found[0] if found else None


def find_survey_prompt(db: Session, partition_key: str, survey_id: str) -> Optional[MessageRecord]:
    query = (
        select(MessageRecord)
        .join(MessageRecord.survey)
        .where(
            MessageRecord.owner_partition == partition_key,
            MessageRecord.type == "survey",
            MessageRecord.hidden.is_(False),
            SurveyRecord.survey_id == survey_id,
        )
        .order_by(MessageRecord.composed_at.asc())
        .limit(1)
    )
    return db.execute(query).scalars().first()


def survey_is_paired(db: Session, partition_key: str, survey_id: str) -> bool:
    """True once any record carrying the survey id has been hidden by pairing."""
    query = (
        select(MessageRecord.pk)
        .join(MessageRecord.survey)
        .where(
            MessageRecord.owner_partition == partition_key,
            MessageRecord.hidden.is_(True),
            SurveyRecord.survey_id == survey_id,
        )
        .limit(1)
    )
    return db.execute(query).first() is not None


def mark_uploaded(db: Session, partition_key: str, message_id: str) -> int:
    result = db.execute(
        update(MessageRecord)
        .where(MessageRecord.owner_partition == partition_key, MessageRecord.message_id == message_id)
        .values(uploaded=True)
    )
    return result.rowcount


def mark_read(db: Session, partition_key: str, message_ids: Iterable[str]) -> int:
    ids = list(message_ids)
    if not ids:
        return 0
    result = db.execute(
        update(MessageRecord)
        .where(
            MessageRecord.owner_partition == partition_key,
            MessageRecord.message_id.in_(ids),
            MessageRecord.unread.is_(True),
        )
        .values(unread=False)
    )
    return result.rowcount


def count_unread(db: Session, partition_key: str) -> int:
    return db.execute(
        select(func.count(MessageRecord.pk)).where(
            MessageRecord.owner_partition == partition_key, MessageRecord.unread.is_(True),
        )
    ).scalar() or 0
