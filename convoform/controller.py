"""SubmissionController orchestrator for the conversation creation form.

The controller owns one form session. It applies field edits, runs a full
validation pass on every submit request and, only when that pass finds no
errors, issues exactly one ``createConversation`` call. It then surfaces the
created record or the failure.

Usage:
    >>> import asyncio
    >>> from convoform.controller import FormConfig, SubmissionController
    >>> controller = SubmissionController(
    ...     FormConfig(collective_id="col_1", on_success=print),
    ...     client=my_client,
    ... )  # doctest: +SKIP
    >>> controller.set_title("Hello world")  # doctest: +SKIP
    >>> controller.set_body("<p>content</p>")  # doctest: +SKIP
    >>> asyncio.run(controller.submit())  # doctest: +SKIP
    <SubmitOutcome.SUCCEEDED: 'succeeded'>
"""

import asyncio
import inspect
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from convoform.client import RemoteMutationClient
from convoform.errors import FormConfigurationError, MutationError, MutationErrorType
from convoform.events import EventEmitter, FormEvent
from convoform.state_machine import (
    Action,
    BeginSubmit,
    FormState,
    ReplaceErrors,
    Reset,
    SetField,
    SubmitFailed,
    SubmitSucceeded,
    reduce,
)
from convoform.types import ConversationRecord, ErrorKind, EventType, FormField, SubmitOutcome
from convoform.validation import ValidationEngine, ValidationResult

logger = logging.getLogger(__name__)

SuccessHandler = Callable[[ConversationRecord], Any]


@dataclass(frozen=True)
class FormConfig:
    """Caller-supplied options for one form session.

    Attributes:
        collective_id: Collective the conversation will be created under
        on_success: Called with the created ConversationRecord. May return an
            awaitable; it is scheduled but not awaited.
        disabled: Suppresses submission regardless of validity
        loading: Upstream data is not ready yet; placeholders are shown and
            submission is blocked
        suggested_tags: Passed through to the tag input, never validated

    Raises:
        FormConfigurationError: If collective_id is empty or on_success is
            not callable
    """
    collective_id: str
    on_success: SuccessHandler
    disabled: bool = False
    loading: bool = False
    suggested_tags: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.collective_id or not isinstance(self.collective_id, str):
            raise FormConfigurationError("collective_id is required")
        if not callable(self.on_success):
            raise FormConfigurationError("on_success must be callable")
        object.__setattr__(self, "suggested_tags", tuple(self.suggested_tags or ()))


class SubmissionController:
    """Validate-then-submit-once engine for creating a conversation.

    Attributes:
        config: The caller-supplied FormConfig
        client: Remote mutation client performing the write
        emitter: Event emitter every form event is dispatched to

    Examples:
        >>> controller = SubmissionController(
        ...     FormConfig(collective_id="col_1", on_success=lambda record: None),
        ...     client=None,
        ... )
        >>> controller.set_title("Hi")
        >>> controller.validate().errors
        {<FormField.TITLE: 'title'>: <ErrorKind.MIN_LENGTH: 'min_length'>, <FormField.BODY: 'body'>: <ErrorKind.REQUIRED: 'required'>}
    """

    def __init__(
        self,
        config: FormConfig,
        client: RemoteMutationClient,
        emitter: Optional[EventEmitter] = None,
        validation_engine: Optional[ValidationEngine] = None,
    ):
        self.config = config
        self.client = client
        self.emitter = emitter or EventEmitter()
        self._validation_engine = validation_engine or ValidationEngine()
        self._state = FormState()
        self._events: List[FormEvent] = []
        self._pending_callbacks: Set["asyncio.Future[Any]"] = set()

    # -- read-only view -------------------------------------------------

    @property
    def state(self) -> FormState:
        return self._state

    @property
    def errors(self) -> Dict[FormField, ErrorKind]:
        return dict(self._state.errors)

    @property
    def submitting(self) -> bool:
        return self._state.submitting

    @property
    def submit_error(self) -> Optional[MutationError]:
        return self._state.submit_error

    @property
    def loading(self) -> bool:
        return self.config.loading

    @property
    def disabled(self) -> bool:
        return self.config.disabled

    @property
    def suggested_tags(self) -> Tuple[str, ...]:
        return self.config.suggested_tags

    @property
    def can_submit(self) -> bool:
        """Whether the submit control should be enabled."""
        return not (self.config.disabled or self.config.loading or self._state.submitting)

    def get_events(self) -> List[FormEvent]:
        """All events of this session, in chronological order."""
        return list(self._events)

    def update_config(self, **changes: Any) -> None:
        """Replace caller options, e.g. ``update_config(loading=False)``."""
        self.config = replace(self.config, **changes)

    # -- edits ----------------------------------------------------------

    def set_field(self, form_field: FormField, value: Any) -> None:
        """Replace one field's value.

        Edits made while a submission is in flight are kept but do not affect
        the call already issued.
        """
        form_field = FormField(form_field)
        self._dispatch(SetField(form_field, value))
        logger.debug("Field %s updated", form_field.value)
        self._emit(EventType.FIELD_UPDATED, {"field": form_field.value})

    def set_title(self, title: str) -> None:
        self.set_field(FormField.TITLE, title)

    def set_body(self, body: str) -> None:
        self.set_field(FormField.BODY, body)

    def set_tags(self, tags: Optional[Iterable[str]]) -> None:
        self.set_field(FormField.TAGS, tags)

    def reset(self) -> None:
        """Start over with an empty form.

        Raises:
            InvalidStateTransitionError: If a submission is in flight
        """
        self._dispatch(Reset())
        self._emit(EventType.FORM_RESET)

    # -- validation & submission -----------------------------------------

    def validate(self) -> ValidationResult:
        """Run a full validation pass and replace the error set with its result."""
        result = self._validation_engine.validate(self._state)
        self._dispatch(ReplaceErrors(result.errors))
        if result.is_valid:
            self._emit(EventType.VALIDATION_PASSED)
        else:
            self._emit(EventType.VALIDATION_FAILED, result.to_dict()["errors"])
        return result

    async def submit(self) -> SubmitOutcome:
        """Handle one submit request.

        Everything up to the remote call runs synchronously, before the first
        ``await``. A request made while another submission is in flight is
        therefore ignored rather than issuing a second call.

        Returns:
            The branch taken: IGNORED, BLOCKED, INVALID, SUCCEEDED or FAILED
        """
        if self._state.submitting:
            logger.warning("Submit ignored: a submission is already in flight")
            self._emit(EventType.SUBMISSION_IGNORED)
            return SubmitOutcome.IGNORED

        if self.config.disabled or self.config.loading:
            reason = "disabled" if self.config.disabled else "loading"
            logger.debug("Submit blocked: form is %s", reason)
            self._emit(EventType.SUBMISSION_BLOCKED, {"reason": reason})
            return SubmitOutcome.BLOCKED

        if not self.validate().is_valid:
            return SubmitOutcome.INVALID

        snapshot = self._state
        self._dispatch(BeginSubmit())
        logger.info("Creating conversation in collective %s", self.config.collective_id)
        self._emit(EventType.SUBMISSION_STARTED)

        try:
            result = await self.client.create_conversation(
                self.config.collective_id,
                snapshot.title,
                snapshot.body,
                snapshot.tags,
            )
        except asyncio.CancelledError:
            self._fail(MutationError(type=MutationErrorType.UNKNOWN, message="The submission was cancelled"))
            raise
        except Exception as exc:
            logger.exception("Remote mutation client raised")
            result = MutationError.from_exception(exc)

        if not isinstance(result, ConversationRecord):
            if not isinstance(result, MutationError):
                result = MutationError(
                    type=MutationErrorType.UNKNOWN,
                    message="The API returned an unexpected response",
                )
            self._fail(result)
            return SubmitOutcome.FAILED

        self._dispatch(SubmitSucceeded(result))
        logger.info("Conversation %s created", result.slug)
        self._emit(EventType.SUBMISSION_SUCCEEDED, {"id": result.id, "slug": result.slug})
        self._invoke_on_success(result)
        return SubmitOutcome.SUCCEEDED

    # -- internals ------------------------------------------------------

    def _fail(self, error: MutationError) -> None:
        self._dispatch(SubmitFailed(error))
        logger.warning("Conversation creation failed: %s", error.message)
        self._emit(EventType.SUBMISSION_FAILED, error.to_dict())

    def _invoke_on_success(self, record: ConversationRecord) -> None:
        result = self.config.on_success(record)
        if inspect.isawaitable(result):
            future = asyncio.ensure_future(result)
            self._pending_callbacks.add(future)
            future.add_done_callback(self._on_callback_done)

    def _on_callback_done(self, future: "asyncio.Future[Any]") -> None:
        self._pending_callbacks.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("on_success handler failed", exc_info=exc)

    def _dispatch(self, action: Action) -> None:
        self._state = reduce(self._state, action)

    def _emit(self, event_type: EventType, payload: Optional[Dict[str, Any]] = None) -> None:
        event = FormEvent(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=event_type,
            collective_id=self.config.collective_id,
            ts=datetime.now(timezone.utc),
            phase=self._state.phase,
            payload=payload,
        )
        self._events.append(event)
        self.emitter.emit(event)


__all__ = [
    "FormConfig",
    "SubmissionController",
    "SuccessHandler",
]
