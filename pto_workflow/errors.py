"""Error kinds recorded by the entry point error boundary."""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    VALIDATION_FAILURE = "validation_failure"
    LOOKUP_MISS = "lookup_miss"
    MALFORMED_RECORD = "malformed_record"
    PERSISTENCE = "persistence"
    NOTIFICATION = "notification"
    UNEXPECTED = "unexpected"


@dataclass
class Issue:
    """Something that went wrong, or was noteworthy, while handling an event."""

    kind: ErrorKind
    message: str
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class PTOWorkflowError(Exception):
    """Base exception for workflow failures."""

    kind: ErrorKind = ErrorKind.UNEXPECTED
    message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.__class__.message
        self.details = details
        super().__init__(self.message)

    def to_issue(self) -> Issue:
        return Issue(kind=self.kind, message=self.message, details=self.details)


class LookupMiss(PTOWorkflowError):
    kind = ErrorKind.LOOKUP_MISS
    message = "Record not found"


class MalformedRecord(PTOWorkflowError):
    kind = ErrorKind.MALFORMED_RECORD
    message = "Record could not be parsed"


class PersistenceError(PTOWorkflowError):
    kind = ErrorKind.PERSISTENCE
    message = "Store read or write failed"


class NotificationError(PTOWorkflowError):
    kind = ErrorKind.NOTIFICATION
    message = "Notification could not be sent"


class DuplicateRequest(MalformedRecord):
    message = "Request id already exists"
