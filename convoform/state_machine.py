"""Form state and its transition function.

The form session owns a single :class:`FormState` record. It is never
mutated in place: every change is expressed as an action and applied by
:func:`reduce`, which returns a new record with whole fields replaced. That
keeps each transition atomic and easy to inspect.

Phases follow a two-state machine::

    IDLE --BeginSubmit--> SUBMITTING --SubmitSucceeded/SubmitFailed--> IDLE

Usage:
    >>> from convoform.state_machine import FormState, SetField, reduce
    >>> from convoform.types import FormField
    >>> state = reduce(FormState(), SetField(FormField.TITLE, "Hello world"))
    >>> state.title
    'Hello world'
    >>> state.phase
    <SubmissionPhase.IDLE: 'idle'>
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Set, Tuple, Union

from convoform.errors import MutationError
from convoform.types import ConversationRecord, ErrorKind, FormField, SubmissionPhase


class InvalidStateTransitionError(Exception):
    """Raised when an action is not allowed in the current phase.

    Attributes:
        current_phase: The phase before the attempted transition
        target_phase: The phase that was attempted
    """

    def __init__(self, current_phase: SubmissionPhase, target_phase: SubmissionPhase, message: str):
        self.current_phase = current_phase
        self.target_phase = target_phase
        super().__init__(message)


# Maps each phase to the set of phases it can move to
VALID_TRANSITIONS: Dict[SubmissionPhase, Set[SubmissionPhase]] = {
    SubmissionPhase.IDLE: {SubmissionPhase.SUBMITTING},
    SubmissionPhase.SUBMITTING: {SubmissionPhase.IDLE},
}


def normalize_tags(tags: Optional[Iterable[str]]) -> Optional[Tuple[str, ...]]:
    """Return tags as a tuple, or None when there are none.

    Examples:
        >>> normalize_tags([]) is None
        True
        >>> normalize_tags(["a", "b"])
        ('a', 'b')
    """
    if tags is None:
        return None
    if isinstance(tags, str):
        tags = [tags]
    normalized = tuple(tags)
    return normalized or None


@dataclass(frozen=True)
class FormState:
    """Snapshot of one form session.

    Attributes:
        title: Conversation title (required)
        body: Rich-text body as HTML (required)
        tags: Optional tags; an empty collection is stored as None
        errors: Result of the latest validation pass, one kind per field
        submitting: True while the remote call is in flight
        submit_error: Outcome of the latest failed remote call, if any
    """
    title: str = ""
    body: str = ""
    tags: Optional[Tuple[str, ...]] = None
    errors: Mapping[FormField, ErrorKind] = field(default_factory=dict)
    submitting: bool = False
    submit_error: Optional[MutationError] = None

    def __post_init__(self):
        # Own copies so callers cannot change the snapshot behind our back
        object.__setattr__(self, "errors", dict(self.errors))
        object.__setattr__(self, "tags", normalize_tags(self.tags))

    @property
    def phase(self) -> SubmissionPhase:
        return SubmissionPhase.SUBMITTING if self.submitting else SubmissionPhase.IDLE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for the UI boundary."""
        return {
            "title": self.title,
            "body": self.body,
            "tags": list(self.tags) if self.tags is not None else None,
            "errors": {f.value: kind.value for f, kind in self.errors.items()},
            "submitting": self.submitting,
            "submitError": self.submit_error.to_dict() if self.submit_error else None,
        }


@dataclass(frozen=True)
class SetField:
    """Replace the value of one field."""
    field: FormField
    value: Any


@dataclass(frozen=True)
class ReplaceErrors:
    """Replace the whole error set with the result of a validation pass."""
    errors: Mapping[FormField, ErrorKind]


@dataclass(frozen=True)
class BeginSubmit:
    """Enter SUBMITTING after a validation pass found no errors."""


@dataclass(frozen=True)
class SubmitSucceeded:
    record: ConversationRecord


@dataclass(frozen=True)
class SubmitFailed:
    error: MutationError


@dataclass(frozen=True)
class Reset:
    """Discard everything and start over with an empty form."""


Action = Union[SetField, ReplaceErrors, BeginSubmit, SubmitSucceeded, SubmitFailed, Reset]


def _check_transition(state: FormState, target: SubmissionPhase) -> None:
    current = state.phase
    if target not in VALID_TRANSITIONS[current]:
        raise InvalidStateTransitionError(
            current_phase=current,
            target_phase=target,
            message=(
                f"Invalid state transition: cannot transition from "
                f"'{current.value}' to '{target.value}'"
            ),
        )


def _set_field(state: FormState, action: SetField) -> FormState:
    form_field = FormField(action.field)
    value = action.value
    if form_field == FormField.TAGS:
        return replace(state, tags=normalize_tags(value))
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValueError(f"Field '{form_field.value}' expects a string, got {type(value).__name__}")
    if form_field == FormField.TITLE:
        return replace(state, title=value)
    return replace(state, body=value)


def reduce(state: FormState, action: Action) -> FormState:
    """Apply an action and return the resulting state.

    Args:
        state: Current state (left untouched)
        action: The transition to apply

    Returns:
        A new FormState

    Raises:
        InvalidStateTransitionError: If the action is not allowed in the
            current phase, or submitting is requested while errors are present
        ValueError: If a field name or value is not recognized

    Examples:
        >>> state = reduce(FormState(title="Hello", body="<p>x</p>"), BeginSubmit())
        >>> state.submitting
        True
        >>> reduce(state, BeginSubmit())
        Traceback (most recent call last):
        ...
        convoform.state_machine.InvalidStateTransitionError: Invalid state transition: cannot transition from 'submitting' to 'submitting'
    """
    if isinstance(action, SetField):
        return _set_field(state, action)

    if isinstance(action, ReplaceErrors):
        if state.submitting:
            raise InvalidStateTransitionError(
                current_phase=state.phase,
                target_phase=state.phase,
                message="Cannot replace validation errors while a submission is in flight",
            )
        return replace(state, errors=dict(action.errors))

    if isinstance(action, BeginSubmit):
        _check_transition(state, SubmissionPhase.SUBMITTING)
        if state.errors:
            raise InvalidStateTransitionError(
                current_phase=state.phase,
                target_phase=SubmissionPhase.SUBMITTING,
                message="Cannot start submitting while validation errors are present",
            )
        return replace(state, submitting=True)

    if isinstance(action, SubmitSucceeded):
        _check_transition(state, SubmissionPhase.IDLE)
        return replace(state, submitting=False, submit_error=None)

    if isinstance(action, SubmitFailed):
        _check_transition(state, SubmissionPhase.IDLE)
        # validation errors are left as they were
        return replace(state, submitting=False, submit_error=action.error)

    if isinstance(action, Reset):
        if state.submitting:
            raise InvalidStateTransitionError(
                current_phase=state.phase,
                target_phase=SubmissionPhase.IDLE,
                message="Cannot reset the form while a submission is in flight",
            )
        return FormState()

    raise ValueError(f"Unknown action: {action!r}")


__all__ = [
    "FormState",
    "SetField",
    "ReplaceErrors",
    "BeginSubmit",
    "SubmitSucceeded",
    "SubmitFailed",
    "Reset",
    "Action",
    "reduce",
    "normalize_tags",
    "InvalidStateTransitionError",
    "VALID_TRANSITIONS",
]
