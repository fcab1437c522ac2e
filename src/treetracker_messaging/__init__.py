"""
treetracker-messaging — planter message sync for the Treetracker messaging API.

Merges the remote inbox into a local store and uploads locally composed
messages and survey responses.
"""

from treetracker_messaging.client import AsyncMessagingClient, MessagingClient
from treetracker_messaging.config import Settings
from treetracker_messaging.errors import (
    MalformedResponseError,
    MessagingError,
    MissingIdentifierError,
    SurveyAnsweredError,
    SurveyNotFoundError,
    SyncInProgressError,
    TransportError,
)
from treetracker_messaging.messages_api import MessagesAPI
from treetracker_messaging.models.message import Message, MessagesPage, MessageType, Question, Survey
from treetracker_messaging.models.partition import Partition, PlanterIdentity
from treetracker_messaging.service import MessagingService
from treetracker_messaging.sync.result import SyncResult

__version__ = "0.1.0"
__all__ = [
    "AsyncMessagingClient",
    "MessagingClient",
    "Settings",
    "MessagingError",
    "MissingIdentifierError",
    "TransportError",
    "MalformedResponseError",
    "SyncInProgressError",
    "SurveyAnsweredError",
    "SurveyNotFoundError",
    "MessagesAPI",
    "Message",
    "MessagesPage",
    "MessageType",
    "Question",
    "Survey",
    "Partition",
    "PlanterIdentity",
    "MessagingService",
    "SyncResult",
]
