"""Core type definitions for the conversation creation form.

This module defines the fundamental types used throughout convoform:
- FormField: The editable fields of the form
- ErrorKind: Validation error codes for individual fields
- SubmissionPhase: Lifecycle phases of the submission engine
- EventType: Audit event types for the event stream
- SubmitOutcome: Which branch a submit request took
- ConversationRecord: The created entity returned by the remote mutation
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser


class FormField(str, Enum):
    """Editable fields of the conversation form."""
    TITLE = "title"
    BODY = "body"
    TAGS = "tags"


class ErrorKind(str, Enum):
    """Validation error codes for individual fields.

    ``title`` can fail with any of the three; ``body`` only with REQUIRED.
    """
    REQUIRED = "required"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"


class SubmissionPhase(str, Enum):
    """Submission engine phases.

    There is no terminal phase: every outcome returns to IDLE and the caller
    decides what happens after a success.
    """
    IDLE = "idle"
    SUBMITTING = "submitting"


class EventType(str, Enum):
    """Audit event types for the event stream."""
    FIELD_UPDATED = "field.updated"
    VALIDATION_PASSED = "validation.passed"
    VALIDATION_FAILED = "validation.failed"
    SUBMISSION_BLOCKED = "submission.blocked"
    SUBMISSION_IGNORED = "submission.ignored"
    SUBMISSION_STARTED = "submission.started"
    SUBMISSION_SUCCEEDED = "submission.succeeded"
    SUBMISSION_FAILED = "submission.failed"
    FORM_RESET = "form.reset"


class SubmitOutcome(str, Enum):
    """Result of a single submit request.

    SUCCEEDED and FAILED mean a remote call was made. INVALID, BLOCKED and
    IGNORED mean it was not.
    """
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    INVALID = "invalid"
    BLOCKED = "blocked"
    IGNORED = "ignored"


@dataclass(frozen=True)
class ConversationRecord:
    """A conversation as returned by the ``createConversation`` mutation.

    Opaque to the submission engine beyond being handed to the success
    callback.

    Attributes:
        id: Unique identifier of the conversation
        slug: Human-readable slug used in URLs
        title: Conversation title
        summary: Summary generated by the API from the body
        tags: Tags attached to the conversation (may be empty)
        created_at: Creation timestamp, parsed when the API returns one

    Examples:
        >>> record = ConversationRecord.from_dict({
        ...     "id": "conv_1",
        ...     "slug": "hello-world",
        ...     "title": "Hello world",
        ...     "summary": "content",
        ...     "tags": ["intro"],
        ...     "createdAt": "2020-01-15T10:00:00Z",
        ... })
        >>> record.slug
        'hello-world'
    """
    id: str
    slug: str
    title: str
    summary: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "summary": self.summary,
            "tags": list(self.tags),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationRecord":
        """Create ConversationRecord from the mutation's result payload."""
        created_at = data.get("createdAt")
        if isinstance(created_at, str):
            created_at = date_parser.isoparse(created_at)
        return cls(
            id=data["id"],
            slug=data["slug"],
            title=data["title"],
            summary=data.get("summary"),
            tags=list(data.get("tags") or []),
            created_at=created_at,
        )


__all__ = [
    "FormField",
    "ErrorKind",
    "SubmissionPhase",
    "EventType",
    "SubmitOutcome",
    "ConversationRecord",
]
