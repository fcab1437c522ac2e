"""
Local message schema.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class MessageRecord(Base):
    __tablename__ = "messages"
    __table_args__ = (UniqueConstraint("owner_partition", "message_id", name="uq_messages_partition_message"),)

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_partition: Mapped[str] = mapped_column(String, index=True, nullable=False)
    message_id: Mapped[str] = mapped_column(String, nullable=False)
    parent_message_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    from_handle: Mapped[str] = mapped_column(String, nullable=False)
    to_handle: Mapped[str] = mapped_column(String, nullable=False)
    subject: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String, nullable=False)
    composed_at: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)  # naive UTC
    video_link: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    survey_response: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)

    uploaded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    unread: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    survey: Mapped[Optional[SurveyRecord]] = relationship(
        back_populates="message", cascade="all, delete-orphan", uselist=False, lazy="selectin",
    )

    @property
    def survey_id(self) -> Optional[str]:
        return self.survey.survey_id if self.survey else None

    def __repr__(self) -> str:
        return (
            f"MessageRecord(message_id={self.message_id!r}, type={self.type!r}, "
            f"uploaded={self.uploaded}, unread={self.unread}, hidden={self.hidden})"
        )


class SurveyRecord(Base):
    __tablename__ = "surveys"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_pk: Mapped[int] = mapped_column(ForeignKey("messages.pk", ondelete="CASCADE"), unique=True, nullable=False)
    survey_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    title: Mapped[str] = mapped_column(Text, default="", nullable=False)
    answered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    message: Mapped[MessageRecord] = relationship(back_populates="survey")
    questions: Mapped[list[QuestionRecord]] = relationship(
        back_populates="survey", cascade="all, delete-orphan", order_by="QuestionRecord.position", lazy="selectin",
    )


class QuestionRecord(Base):
    __tablename__ = "survey_questions"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    survey_pk: Mapped[int] = mapped_column(ForeignKey("surveys.pk", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    choices: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    survey: Mapped[SurveyRecord] = relationship(back_populates="questions")
