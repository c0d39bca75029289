"""Unit tests for form state and the transition function.

Tests cover:
- Fresh state defaults
- Field replacement and tag normalization
- Whole-set error replacement
- Phase transitions (valid and invalid)
- Serialization
"""

import pytest

from convoform.errors import MutationError, MutationErrorType
from convoform.state_machine import (
    BeginSubmit,
    FormState,
    InvalidStateTransitionError,
    ReplaceErrors,
    Reset,
    SetField,
    SubmitFailed,
    SubmitSucceeded,
    VALID_TRANSITIONS,
    normalize_tags,
    reduce,
)
from convoform.types import ConversationRecord, ErrorKind, FormField, SubmissionPhase

RECORD = ConversationRecord(id="conv_1", slug="hello-world", title="Hello world")
FAILURE = MutationError(type=MutationErrorType.GRAPHQL, message="Nope")


def valid_state(**overrides):
    values = {"title": "Hello world", "body": "<p>content</p>"}
    values.update(overrides)
    return FormState(**values)


class TestFormStateDefaults:
    """Test a freshly mounted form."""

    def test_fresh_state(self):
        """All fields empty, no errors, not submitting."""
        state = FormState()
        assert state.title == ""
        assert state.body == ""
        assert state.tags is None
        assert state.errors == {}
        assert state.submitting is False
        assert state.submit_error is None
        assert state.phase == SubmissionPhase.IDLE

    def test_state_is_frozen(self):
        """Fields cannot be assigned in place."""
        with pytest.raises(Exception):  # FrozenInstanceError
            FormState().title = "x"

    def test_errors_are_copied(self):
        """The state keeps its own copy of the errors mapping."""
        errors = {FormField.TITLE: ErrorKind.REQUIRED}
        state = FormState(errors=errors)
        errors.clear()
        assert state.errors == {FormField.TITLE: ErrorKind.REQUIRED}


class TestSetField:
    """Test field edits."""

    def test_set_title(self):
        state = reduce(FormState(), SetField(FormField.TITLE, "Hello"))
        assert state.title == "Hello"

    def test_set_body(self):
        state = reduce(FormState(), SetField(FormField.BODY, "<p>x</p>"))
        assert state.body == "<p>x</p>"

    def test_set_field_by_name(self):
        """Plain field names are accepted."""
        state = reduce(FormState(), SetField("title", "Hello"))
        assert state.title == "Hello"

    def test_set_tags(self):
        state = reduce(FormState(), SetField(FormField.TAGS, ["a", "b"]))
        assert state.tags == ("a", "b")

    def test_empty_tags_become_absent(self):
        """An empty collection is stored as None."""
        state = reduce(FormState(tags=["a"]), SetField(FormField.TAGS, []))
        assert state.tags is None

    def test_none_text_becomes_empty(self):
        state = reduce(FormState(title="Hello"), SetField(FormField.TITLE, None))
        assert state.title == ""

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            reduce(FormState(), SetField("summary", "x"))

    def test_non_string_value_rejected(self):
        with pytest.raises(ValueError):
            reduce(FormState(), SetField(FormField.TITLE, 42))

    def test_input_state_untouched(self):
        """reduce returns a new record."""
        state = FormState()
        reduce(state, SetField(FormField.TITLE, "Hello"))
        assert state.title == ""

    def test_edit_keeps_errors(self):
        """Errors only change on a validation pass."""
        state = FormState(errors={FormField.TITLE: ErrorKind.REQUIRED})
        state = reduce(state, SetField(FormField.TITLE, "Hello"))
        assert state.errors == {FormField.TITLE: ErrorKind.REQUIRED}

    def test_edit_allowed_while_submitting(self):
        state = reduce(valid_state(), BeginSubmit())
        state = reduce(state, SetField(FormField.TITLE, "Changed"))
        assert state.title == "Changed"
        assert state.submitting is True


class TestReplaceErrors:
    """Test wholesale error replacement."""

    def test_replaces_whole_set(self):
        """Old entries are dropped, not merged."""
        state = FormState(errors={FormField.BODY: ErrorKind.REQUIRED})
        state = reduce(state, ReplaceErrors({FormField.TITLE: ErrorKind.MIN_LENGTH}))
        assert state.errors == {FormField.TITLE: ErrorKind.MIN_LENGTH}

    def test_clear_errors(self):
        state = FormState(errors={FormField.BODY: ErrorKind.REQUIRED})
        assert reduce(state, ReplaceErrors({})).errors == {}

    def test_not_allowed_while_submitting(self):
        state = reduce(valid_state(), BeginSubmit())
        with pytest.raises(InvalidStateTransitionError):
            reduce(state, ReplaceErrors({}))


class TestPhaseTransitions:
    """Test IDLE <-> SUBMITTING."""

    def test_transition_table(self):
        assert VALID_TRANSITIONS[SubmissionPhase.IDLE] == {SubmissionPhase.SUBMITTING}
        assert VALID_TRANSITIONS[SubmissionPhase.SUBMITTING] == {SubmissionPhase.IDLE}

    def test_begin_submit(self):
        state = reduce(valid_state(), BeginSubmit())
        assert state.submitting is True
        assert state.phase == SubmissionPhase.SUBMITTING

    def test_begin_submit_twice_rejected(self):
        """A second concurrent submission is not representable."""
        state = reduce(valid_state(), BeginSubmit())
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            reduce(state, BeginSubmit())
        assert exc_info.value.current_phase == SubmissionPhase.SUBMITTING
        assert exc_info.value.target_phase == SubmissionPhase.SUBMITTING

    def test_begin_submit_with_errors_rejected(self):
        state = valid_state(errors={FormField.TITLE: ErrorKind.MIN_LENGTH})
        with pytest.raises(InvalidStateTransitionError):
            reduce(state, BeginSubmit())

    def test_success_returns_to_idle(self):
        state = reduce(valid_state(submit_error=FAILURE), BeginSubmit())
        state = reduce(state, SubmitSucceeded(RECORD))
        assert state.submitting is False
        assert state.submit_error is None

    def test_failure_returns_to_idle_and_keeps_values(self):
        before = valid_state(tags=["a"])
        state = reduce(reduce(before, BeginSubmit()), SubmitFailed(FAILURE))
        assert state.submitting is False
        assert state.submit_error == FAILURE
        assert (state.title, state.body, state.tags) == (before.title, before.body, before.tags)
        assert state.errors == before.errors

    def test_outcome_without_submission_rejected(self):
        with pytest.raises(InvalidStateTransitionError):
            reduce(FormState(), SubmitSucceeded(RECORD))
        with pytest.raises(InvalidStateTransitionError):
            reduce(FormState(), SubmitFailed(FAILURE))


class TestReset:
    """Test discarding the session."""

    def test_reset(self):
        state = valid_state(tags=["a"], submit_error=FAILURE)
        assert reduce(state, Reset()) == FormState()

    def test_reset_while_submitting_rejected(self):
        state = reduce(valid_state(), BeginSubmit())
        with pytest.raises(InvalidStateTransitionError):
            reduce(state, Reset())


class TestSerialization:
    """Test FormState.to_dict."""

    def test_to_dict(self):
        state = FormState(
            title="Hi",
            body="",
            tags=["a"],
            errors={FormField.TITLE: ErrorKind.MIN_LENGTH},
            submit_error=FAILURE,
        )
        assert state.to_dict() == {
            "title": "Hi",
            "body": "",
            "tags": ["a"],
            "errors": {"title": "min_length"},
            "submitting": False,
            "submitError": {"type": "graphql", "message": "Nope"},
        }


class TestNormalizeTags:
    def test_values(self):
        assert normalize_tags(None) is None
        assert normalize_tags([]) is None
        assert normalize_tags(()) is None
        assert normalize_tags(["x"]) == ("x",)
        assert normalize_tags("x") == ("x",)
