"""Event system for the conversation form.

Every transition of a form session emits a typed FormEvent. The controller
keeps them as an append-only audit trail and dispatches them to listeners
through an EventEmitter.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import json
import logging

from .types import EventType, SubmissionPhase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormEvent:
    """A single event in a form session.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_3f2a...")
        type: Event type from EventType enum
        collective_id: Collective the conversation is created under
        ts: UTC timestamp when the event occurred
        phase: Submission phase after this event
        payload: Optional event-specific data (field name, errors, slug...)

    Examples:
        >>> from datetime import datetime, timezone
        >>> event = FormEvent(
        ...     event_id="evt_001",
        ...     type=EventType.VALIDATION_PASSED,
        ...     collective_id="col_1",
        ...     ts=datetime.now(timezone.utc),
        ...     phase=SubmissionPhase.IDLE,
        ... )
    """
    event_id: str
    type: EventType
    collective_id: str
    ts: datetime
    phase: SubmissionPhase
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if isinstance(self.type, str):
            object.__setattr__(self, "type", EventType(self.type))
        if isinstance(self.phase, str):
            object.__setattr__(self, "phase", SubmissionPhase(self.phase))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "collectiveId": self.collective_id,
            "ts": self.ts.isoformat(),
            "phase": self.phase.value,
        }
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Single-line JSON for appending to a log stream."""
        return json.dumps(self.to_dict(), separators=(',', ':'))


EventListener = Callable[[FormEvent], None]
"""Listener callback. Called synchronously when an event is emitted."""


class EventEmitter:
    """Dispatches form events to subscribed listeners.

    Listeners subscribe to one event type with ``on`` or to everything with
    ``on_any``. They are called synchronously in registration order; an
    exception raised by one listener is logged and does not reach the other
    listeners or the caller.

    Examples:
        >>> emitter = EventEmitter()
        >>> seen = []
        >>> emitter.on(EventType.SUBMISSION_STARTED, seen.append)
        >>> emitter.listener_count()
        1
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: EventType, listener: EventListener) -> None:
        """Subscribe to a specific event type."""
        self._listeners.setdefault(event_type, []).append(listener)

    def on_any(self, listener: EventListener) -> None:
        """Subscribe to all event types."""
        self._any_listeners.append(listener)

    def off(self, event_type: EventType, listener: EventListener) -> None:
        """Unsubscribe from a specific event type. Unknown listeners are ignored."""
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: EventListener) -> None:
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: FormEvent) -> None:
        """Dispatch an event to type-specific listeners, then wildcard listeners."""
        for listener in list(self._listeners.get(event.type, [])) + list(self._any_listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, event.type.value)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[EventType] = None) -> int:
        """Number of listeners for one type, or all listeners when no type is given."""
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return len(self._any_listeners) + sum(len(ls) for ls in self._listeners.values())


__all__ = [
    "FormEvent",
    "EventListener",
    "EventEmitter",
]
