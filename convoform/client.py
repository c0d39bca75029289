"""Remote mutation client for creating conversations.

The API transport itself is external: anything that can execute a GraphQL
document asynchronously satisfies :class:`GraphQLTransport`. This module
provides the translation layer on top of it. :class:`ConversationMutationAdapter`
builds the ``createConversation`` variables and turns whatever comes back
into either a :class:`ConversationRecord` or a :class:`MutationError`. It
never raises for remote failures.
"""

import logging
from typing import Any, Dict, Optional, Sequence, Union

from typing_extensions import Protocol, runtime_checkable

from convoform.errors import MutationError, MutationErrorType
from convoform.state_machine import normalize_tags
from convoform.types import ConversationRecord

logger = logging.getLogger(__name__)

CREATE_CONVERSATION_MUTATION = """
  mutation CreateConversation($title: String!, $html: String!, $CollectiveId: String!, $tags: [String]) {
    createConversation(title: $title, html: $html, CollectiveId: $CollectiveId, tags: $tags) {
      id
      slug
      title
      summary
      tags
      createdAt
    }
  }
"""

MutationResult = Union[ConversationRecord, MutationError]


@runtime_checkable
class GraphQLTransport(Protocol):
    """Executes a GraphQL document and returns the raw response body."""

    async def execute(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        ...


@runtime_checkable
class RemoteMutationClient(Protocol):
    """Performs the "create conversation" write."""

    async def create_conversation(
        self,
        collective_id: str,
        title: str,
        body: str,
        tags: Optional[Sequence[str]],
    ) -> MutationResult:
        ...


def build_variables(
    collective_id: str,
    title: str,
    body: str,
    tags: Optional[Sequence[str]],
) -> Dict[str, Any]:
    """Build the mutation variables.

    Empty tags are sent as null, never as an empty list.

    Examples:
        >>> build_variables("col_1", "Hello world", "<p>x</p>", [])
        {'title': 'Hello world', 'html': '<p>x</p>', 'CollectiveId': 'col_1', 'tags': None}
    """
    normalized = normalize_tags(tags)
    return {
        "title": title,
        "html": body,
        "CollectiveId": collective_id,
        "tags": list(normalized) if normalized is not None else None,
    }


class ConversationMutationAdapter:
    """RemoteMutationClient backed by a GraphQL transport.

    Attributes:
        transport: The object used to reach the API
    """

    def __init__(self, transport: GraphQLTransport):
        self.transport = transport

    async def create_conversation(
        self,
        collective_id: str,
        title: str,
        body: str,
        tags: Optional[Sequence[str]],
    ) -> MutationResult:
        variables = build_variables(collective_id, title, body, tags)
        try:
            response = await self.transport.execute(CREATE_CONVERSATION_MUTATION, variables)
        except Exception as exc:
            logger.warning("createConversation transport error: %s", exc)
            return MutationError.from_exception(exc)

        return self.translate_response(response)

    @staticmethod
    def translate_response(response: Any) -> MutationResult:
        """Turn a raw GraphQL response body into a record or an error."""
        if not isinstance(response, dict):
            return MutationError(
                type=MutationErrorType.UNKNOWN,
                message="The API returned an unexpected response",
            )

        if response.get("errors"):
            return MutationError.from_graphql_errors(response["errors"])

        payload = (response.get("data") or {}).get("createConversation")
        if not payload:
            return MutationError(
                type=MutationErrorType.UNKNOWN,
                message="The API did not return the created conversation",
            )

        try:
            return ConversationRecord.from_dict(payload)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed createConversation payload: %r", payload)
            return MutationError(
                type=MutationErrorType.UNKNOWN,
                message=f"The API returned a malformed conversation: {exc}",
            )


__all__ = [
    "CREATE_CONVERSATION_MUTATION",
    "MutationResult",
    "GraphQLTransport",
    "RemoteMutationClient",
    "ConversationMutationAdapter",
    "build_variables",
]
