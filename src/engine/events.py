"""Append-only event log emitted by the orchestrator.

Every phase of a run records one typed event.  Consumers either read the
log after the fact (:meth:`EventLog.events`) or subscribe to a live
``asyncio.Queue`` channel (:meth:`EventLog.subscribe`).
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from src.utils.logging import get_logger

logger = get_logger("engine.events")


class _BaseEvent(BaseModel):
    session_id: str
    sequence: int = 0
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class StateChangeEvent(_BaseEvent):
    type: Literal["state-change"] = "state-change"
    from_state: str
    to_state: str


class PlanCreatedEvent(_BaseEvent):
    type: Literal["plan-created"] = "plan-created"
    plan_id: str
    task_count: int
    complexity: str


class TaskStartedEvent(_BaseEvent):
    type: Literal["task-started"] = "task-started"
    task_id: str
    task_type: str


class TaskCompletedEvent(_BaseEvent):
    type: Literal["task-completed"] = "task-completed"
    task_id: str
    success: bool
    engine: str = ""
    files: list[str] = []


class ScoreCalculatedEvent(_BaseEvent):
    type: Literal["score-calculated"] = "score-calculated"
    overall: int
    issue_count: int


class DecisionMadeEvent(_BaseEvent):
    type: Literal["decision-made"] = "decision-made"
    decision: str
    reason: str


class ErrorEvent(_BaseEvent):
    type: Literal["error"] = "error"
    message: str


class InfoEvent(_BaseEvent):
    type: Literal["info"] = "info"
    message: str


AutomationEvent = Annotated[
    Union[
        StateChangeEvent,
        PlanCreatedEvent,
        TaskStartedEvent,
        TaskCompletedEvent,
        ScoreCalculatedEvent,
        DecisionMadeEvent,
        ErrorEvent,
        InfoEvent,
    ],
    Field(discriminator="type"),
]

event_adapter: TypeAdapter[AutomationEvent] = TypeAdapter(AutomationEvent)


class EventLog:
    """Append-only, ordered record of automation events."""

    def __init__(self) -> None:
        self._events: list[AutomationEvent] = []
        self._subscribers: list[asyncio.Queue] = []

    def emit(self, event: AutomationEvent) -> AutomationEvent:
        """Append *event*, stamping its sequence number, and fan it out."""
        event.sequence = len(self._events)
        self._events.append(event)
        for queue in self._subscribers:
            queue.put_nowait(event)
        logger.debug("event_emitted", event_type=event.type, sequence=event.sequence)
        return event

    def subscribe(self) -> asyncio.Queue:
        """Return an unbounded queue receiving every event emitted from now on."""
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def events(self, event_type: str | None = None) -> list[AutomationEvent]:
        """Return a copy of the log, optionally filtered by event type."""
        if event_type is None:
            return list(self._events)
        return [e for e in self._events if e.type == event_type]

    def __len__(self) -> int:
        return len(self._events)
