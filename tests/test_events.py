"""Unit tests for the event system.

Tests cover:
- FormEvent creation and normalization
- Event serialization (to_dict, to_jsonl)
- EventEmitter subscriptions and dispatching
- Listener failure isolation
"""

import json
import logging
from datetime import datetime, timezone

import pytest

from convoform.events import EventEmitter, FormEvent
from convoform.types import EventType, SubmissionPhase


def make_event(event_type=EventType.SUBMISSION_STARTED, payload=None):
    return FormEvent(
        event_id="evt_001",
        type=event_type,
        collective_id="col_1",
        ts=datetime(2020, 1, 15, 10, 0, tzinfo=timezone.utc),
        phase=SubmissionPhase.SUBMITTING,
        payload=payload,
    )


class TestFormEvent:
    """Test FormEvent creation and serialization."""

    def test_string_values_normalized(self):
        """String type and phase should become enums."""
        event = FormEvent(
            event_id="evt_002",
            type="validation.failed",
            collective_id="col_1",
            ts=datetime.now(timezone.utc),
            phase="idle",
        )
        assert event.type == EventType.VALIDATION_FAILED
        assert event.phase == SubmissionPhase.IDLE

    def test_event_is_frozen(self):
        with pytest.raises(Exception):  # FrozenInstanceError
            make_event().event_id = "other"

    def test_to_dict_without_payload(self):
        assert make_event().to_dict() == {
            "eventId": "evt_001",
            "type": "submission.started",
            "collectiveId": "col_1",
            "ts": "2020-01-15T10:00:00+00:00",
            "phase": "submitting",
        }

    def test_to_dict_with_payload(self):
        event = make_event(payload={"slug": "hello-world"})
        assert event.to_dict()["payload"] == {"slug": "hello-world"}

    def test_to_jsonl(self):
        line = make_event().to_jsonl()
        assert "\n" not in line
        assert json.loads(line)["type"] == "submission.started"


class TestEventEmitter:
    """Test subscriptions and dispatch."""

    def test_type_specific_listener(self):
        emitter = EventEmitter()
        seen = []
        emitter.on(EventType.SUBMISSION_STARTED, seen.append)
        emitter.emit(make_event())
        emitter.emit(make_event(EventType.SUBMISSION_FAILED))
        assert [e.type for e in seen] == [EventType.SUBMISSION_STARTED]

    def test_wildcard_listener(self):
        emitter = EventEmitter()
        seen = []
        emitter.on_any(seen.append)
        emitter.emit(make_event())
        emitter.emit(make_event(EventType.SUBMISSION_FAILED))
        assert len(seen) == 2

    def test_dispatch_order(self):
        """Type-specific listeners run before wildcard listeners."""
        emitter = EventEmitter()
        order = []
        emitter.on_any(lambda e: order.append("any"))
        emitter.on(EventType.SUBMISSION_STARTED, lambda e: order.append("typed"))
        emitter.emit(make_event())
        assert order == ["typed", "any"]

    def test_off(self):
        emitter = EventEmitter()
        seen = []
        emitter.on(EventType.SUBMISSION_STARTED, seen.append)
        emitter.off(EventType.SUBMISSION_STARTED, seen.append)
        emitter.emit(make_event())
        assert seen == []

    def test_off_unknown_listener_is_noop(self):
        emitter = EventEmitter()
        emitter.off(EventType.SUBMISSION_STARTED, print)
        emitter.off_any(print)
        assert emitter.listener_count() == 0

    def test_off_any(self):
        emitter = EventEmitter()
        seen = []
        emitter.on_any(seen.append)
        emitter.off_any(seen.append)
        emitter.emit(make_event())
        assert seen == []

    def test_listener_count_and_clear(self):
        emitter = EventEmitter()
        emitter.on(EventType.SUBMISSION_STARTED, print)
        emitter.on(EventType.SUBMISSION_FAILED, print)
        emitter.on_any(print)
        assert emitter.listener_count(EventType.SUBMISSION_STARTED) == 1
        assert emitter.listener_count() == 3
        emitter.clear()
        assert emitter.listener_count() == 0

    def test_listener_exceptions_are_isolated(self, caplog):
        """A failing listener is logged and the others still run."""
        emitter = EventEmitter()
        seen = []

        def broken(event):
            raise ValueError("Listener error")

        emitter.on(EventType.SUBMISSION_STARTED, broken)
        emitter.on_any(seen.append)

        with caplog.at_level(logging.ERROR, logger="convoform.events"):
            emitter.emit(make_event())

        assert len(seen) == 1
        assert "failed on submission.started" in caplog.text
