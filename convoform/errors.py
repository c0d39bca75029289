"""Structured error types for conversation submission.

Two error categories never mix:

- Field validation errors are plain values (``Dict[FormField, ErrorKind]``)
  computed locally by :mod:`convoform.validation`. They never leave the client.
- Remote mutation failures are represented by :class:`MutationError`, a
  single envelope carrying one human-readable message for display.

Programming errors (bad configuration, illegal phase transitions) raise
exceptions instead.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"


class MutationErrorType(str, Enum):
    """Category of a remote mutation failure."""
    NETWORK = "network"
    GRAPHQL = "graphql"
    UNKNOWN = "unknown"


class FormConfigurationError(ValueError):
    """Raised when the caller-supplied form configuration is unusable."""


@dataclass(frozen=True)
class MutationError:
    """A failed ``createConversation`` call, translated for display.

    Attributes:
        type: Category of failure
        message: Human-readable message rendered to the user
        details: Optional - every message the API returned, in order

    Examples:
        >>> err = MutationError.from_graphql_errors([
        ...     {"message": "You must be logged in to create a conversation"}
        ... ])
        >>> err.message
        'You must be logged in to create a conversation'
    """
    type: MutationErrorType
    message: str
    details: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "type": self.type.value if isinstance(self.type, MutationErrorType) else self.type,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = list(self.details)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MutationError":
        """Create MutationError from dict."""
        error_type = data["type"]
        if isinstance(error_type, str):
            error_type = MutationErrorType(error_type)
        return cls(
            type=error_type,
            message=data["message"],
            details=data.get("details"),
        )

    @classmethod
    def from_graphql_errors(cls, errors: List[Dict[str, Any]]) -> "MutationError":
        """Build an error from the ``errors`` list of a GraphQL response.

        The first message is the one displayed; all of them are kept in
        ``details``.
        """
        messages = [e.get("message") for e in errors if isinstance(e, dict) and e.get("message")]
        return cls(
            type=MutationErrorType.GRAPHQL,
            message=messages[0] if messages else UNKNOWN_ERROR_MESSAGE,
            details=messages or None,
        )

    @classmethod
    def from_exception(cls, exc: BaseException) -> "MutationError":
        """Build an error from an exception raised by the transport.

        Connection and timeout failures are reported as NETWORK, anything
        else as UNKNOWN.
        """
        error_type = (
            MutationErrorType.NETWORK
            if isinstance(exc, (ConnectionError, TimeoutError))
            else MutationErrorType.UNKNOWN
        )
        return cls(type=error_type, message=str(exc) or UNKNOWN_ERROR_MESSAGE)


__all__ = [
    "UNKNOWN_ERROR_MESSAGE",
    "MutationErrorType",
    "MutationError",
    "FormConfigurationError",
]
