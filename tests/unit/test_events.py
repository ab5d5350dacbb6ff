"""Tests for the automation event log."""
import pytest


class TestEventLog:
    def test_emit_stamps_sequence(self):
        from src.engine.events import EventLog, InfoEvent, StateChangeEvent

        log = EventLog()
        log.emit(InfoEvent(session_id="s", message="hello"))
        log.emit(StateChangeEvent(session_id="s", from_state="idle", to_state="planning"))
        assert [e.sequence for e in log.events()] == [0, 1]
        assert len(log) == 2
        assert [e.type for e in log.events("state-change")] == ["state-change"]

    def test_events_returns_a_copy(self):
        from src.engine.events import EventLog, InfoEvent

        log = EventLog()
        log.emit(InfoEvent(session_id="s", message="a"))
        log.events().clear()
        assert len(log) == 1

    @pytest.mark.asyncio
    async def test_subscribers_receive_new_events(self):
        from src.engine.events import EventLog, InfoEvent

        log = EventLog()
        log.emit(InfoEvent(session_id="s", message="before"))
        queue = log.subscribe()
        log.emit(InfoEvent(session_id="s", message="after"))
        event = await queue.get()
        assert event.message == "after"
        assert queue.empty()

        log.unsubscribe(queue)
        log.emit(InfoEvent(session_id="s", message="ignored"))
        assert queue.empty()

    def test_adapter_round_trips_by_type(self):
        from src.engine.events import DecisionMadeEvent, event_adapter

        event = DecisionMadeEvent(session_id="s", decision="retry", reason="low score")
        parsed = event_adapter.validate_python(event.model_dump())
        assert isinstance(parsed, DecisionMadeEvent)
