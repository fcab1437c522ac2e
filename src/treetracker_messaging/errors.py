"""
Treetracker messaging error types.
"""

from typing import Any, Optional


class MessagingError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class MissingIdentifierError(MessagingError):
    """The partition has no planter identity to act as."""

    def __init__(self, message: str = "No planter identifier available for this partition"):
        super().__init__("missing_identifier", message)


class TransportError(MessagingError):
    def __init__(
        self,
        message: str,
        code: str = "transport_error",
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(code, message, details)
        self.status_code = status_code


class MalformedResponseError(TransportError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, code="malformed_response", details=details)


class SyncInProgressError(MessagingError):
    def __init__(self, partition_key: str):
        super().__init__(
            "sync_in_progress",
            f"A sync pass is already running for partition {partition_key!r}",
            {"partition": partition_key},
        )


class SurveyNotFoundError(MessagingError):
    def __init__(self, survey_id: str):
        super().__init__("survey_not_found", f"No stored survey with id {survey_id!r}", {"survey_id": survey_id})


class SurveyAnsweredError(MessagingError):
    def __init__(self, survey_id: str):
        super().__init__("survey_answered", f"Survey {survey_id!r} has already been answered", {"survey_id": survey_id})
