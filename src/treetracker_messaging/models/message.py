"""
Messaging API wire models.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from treetracker_messaging.timestamps import as_utc


class MessageType(str, Enum):
    MESSAGE = "message"
    ANNOUNCE = "announce"
    SURVEY = "survey"
    SURVEY_RESPONSE = "survey_response"


class Question(BaseModel):
    prompt: str
    choices: list[str] = []


class Survey(BaseModel):
    survey_id: str = Field(alias="id")
    title: str = ""
    questions: list[Question] = []
    answered: bool = Field(default=False, alias="response")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("answered", mode="before")
    @classmethod
    def _null_is_unanswered(cls, v: object) -> object:
        return False if v is None else v


class Message(BaseModel):
    """A message as delivered by GET messaging/message."""
    message_id: str = Field(alias="id")
    parent_message_id: Optional[str] = None
    from_: str = Field(alias="from")
    to: str
    subject: Optional[str] = None
    body: Optional[str] = None
    type: MessageType
    composed_at: datetime
    video_link: Optional[str] = None
    survey: Optional[Survey] = None
    survey_response: Optional[list[str]] = None

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("composed_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @property
    def is_answered_survey(self) -> bool:
        return self.survey is not None and self.survey.answered


class Links(BaseModel):
    prev: Optional[str] = None
    next: Optional[str] = None


class MessagesPage(BaseModel):
    """GET messaging/message response body."""
    messages: list[Message] = []
    links: Links = Links()

    @property
    def next(self) -> Optional[str]:
        return self.links.next or None


class PostMessageBody(BaseModel):
    """POST messaging/message request body."""
    id: str
    author_handle: Optional[str] = None
    recipient_handle: Optional[str] = None
    type: str
    body: Optional[str] = None
    composed_at: str
    survey_response: Optional[list[str]] = None
    survey_id: Optional[str] = None
