"""Tests for the decision policy and the automation state machine."""
import pytest

from src.engine.models import (
    AutomationConfig,
    AutomationState,
    Decision,
    DecisionContext,
    DecisionRecord,
    Dimension,
    Issue,
    Severity,
)
from src.utils.exceptions import InvalidTransitionError


def _critical():
    return Issue(
        dimension=Dimension.SECURITY,
        severity=Severity.CRITICAL,
        message="Dynamic code evaluation",
        rule="dynamic-code-evaluation",
    )


class TestDecisionPolicy:
    def test_complete_when_threshold_met(self, make_score):
        from src.engine.decision import DecisionEngine

        outcome = DecisionEngine().decide(DecisionContext(score=make_score(70)))
        assert outcome.decision == Decision.COMPLETE
        assert outcome.reason == "Quality score 70/100 meets threshold 70/100."

    def test_retry_while_budget_remains(self, make_score):
        from src.engine.decision import DecisionEngine

        context = DecisionContext(score=make_score(60, security=60), retry_count=1)
        outcome = DecisionEngine().decide(context)
        assert outcome.decision == Decision.RETRY
        assert "Retry 2 of 3." in outcome.reason
        assert "security 60" in outcome.reason

    def test_request_input_when_exhausted(self, make_score):
        from src.engine.decision import DecisionEngine

        outcome = DecisionEngine().decide(DecisionContext(score=make_score(60), retry_count=3))
        assert outcome.decision == Decision.REQUEST_INPUT
        assert "Manual review required" in outcome.reason

    def test_auto_approve_fails_on_critical(self, make_score):
        from src.engine.decision import DecisionEngine

        context = DecisionContext(
            score=make_score(60, issues=[_critical()]),
            retry_count=3,
            config=AutomationConfig(auto_approve=True),
        )
        assert DecisionEngine().decide(context).decision == Decision.FAIL

    def test_auto_approve_completes_without_critical(self, make_score):
        from src.engine.decision import DecisionEngine

        context = DecisionContext(
            score=make_score(60), retry_count=3, config=AutomationConfig(auto_approve=True),
        )
        outcome = DecisionEngine().decide(context)
        assert outcome.decision == Decision.COMPLETE
        assert "best effort" in outcome.reason

    def test_zero_retries_escalates_immediately(self, make_score):
        from src.engine.decision import DecisionEngine

        context = DecisionContext(score=make_score(10), config=AutomationConfig(max_retries=0))
        assert DecisionEngine().decide(context).decision == Decision.REQUEST_INPUT

    def test_raising_the_score_never_downgrades(self, make_score):
        """COMPLETE at some score stays COMPLETE at every higher score."""
        from src.engine.decision import DecisionEngine

        engine = DecisionEngine()
        for retries in range(0, 5):
            completed = False
            for overall in range(0, 101):
                decision = engine.decide(
                    DecisionContext(score=make_score(overall), retry_count=retries),
                ).decision
                if completed:
                    assert decision == Decision.COMPLETE
                completed = completed or decision == Decision.COMPLETE

    def test_ambiguous_score_requests_input(self, make_score):
        from src.engine.decision import DecisionEngine
        from src.engine.models import Score

        valid = make_score(50)
        broken = Score.model_construct(
            overall=float("nan"), metrics=valid.metrics, issues=[], recommendations=[],
            timestamp=valid.timestamp,
        )
        outcome = DecisionEngine().decide(DecisionContext.model_construct(
            score=broken, retry_count=0, config=AutomationConfig(), history=[],
        ))
        assert outcome.decision == Decision.REQUEST_INPUT


class TestStateMachine:
    def test_next_state(self):
        from src.engine.decision import next_state

        assert next_state(Decision.COMPLETE) == AutomationState.COMPLETED
        assert next_state(Decision.RETRY) == AutomationState.EXECUTING
        assert next_state(Decision.REQUEST_INPUT) == AutomationState.AWAITING_INPUT
        assert next_state(Decision.FAIL) == AutomationState.FAILED

    def test_terminal_states(self):
        from src.engine.decision import halts_run, is_terminal

        assert is_terminal(AutomationState.COMPLETED)
        assert is_terminal(AutomationState.FAILED)
        assert not is_terminal(AutomationState.AWAITING_INPUT)
        assert halts_run(AutomationState.AWAITING_INPUT)
        assert not halts_run(AutomationState.SCORING)

    def test_transitions(self):
        from src.engine.decision import check_transition

        check_transition(AutomationState.DECIDING, AutomationState.EXECUTING)
        check_transition(AutomationState.AWAITING_INPUT, AutomationState.PLANNING)
        with pytest.raises(InvalidTransitionError):
            check_transition(AutomationState.COMPLETED, AutomationState.PLANNING)
        with pytest.raises(InvalidTransitionError):
            check_transition(AutomationState.IDLE, AutomationState.SCORING)

    def test_every_non_terminal_state_can_fail(self):
        from src.engine.decision import ALLOWED_TRANSITIONS, is_terminal

        for state, targets in ALLOWED_TRANSITIONS.items():
            if not is_terminal(state):
                assert AutomationState.FAILED in targets


class TestReporting:
    def test_failure_reasons(self, make_score):
        from src.engine.decision import failure_reasons

        score = make_score(50, tests=40, code_quality=60)
        assert failure_reasons(score) == ["tests 40", "code quality 60"]
        assert failure_reasons(score, AutomationConfig(enable_tests=False)) == ["code quality 60"]

    def test_analyze_history(self, make_score):
        from src.engine.decision import analyze_history

        history = [
            DecisionRecord(state=AutomationState.DECIDING, decision=Decision.RETRY,
                           reasoning="r", score=make_score(s, issues=[_critical()]))
            for s in (40, 45, 70, 80)
        ]
        analysis = analyze_history(history)
        assert analysis.total_retries == 4
        assert analysis.average_score == 58.75
        assert analysis.trend == "improving"
        assert analysis.most_common_issue == "security:critical"

    def test_analyze_empty_history(self):
        from src.engine.decision import analyze_history

        analysis = analyze_history([])
        assert analysis.trend == "stable"
        assert analysis.most_common_issue is None

    def test_explain(self, make_score):
        from src.engine.decision import DecisionEngine

        text = DecisionEngine().explain(
            DecisionContext(score=make_score(60, issues=[_critical()]), retry_count=0),
        )
        assert text.startswith("## Decision: RETRY")
        assert "- Retry Count: 0/3" in text
        assert "- Critical: 1" in text

    def test_suggest_next_actions(self, make_score):
        from src.engine.decision import DecisionEngine

        score = make_score(60, issues=[_critical()], security=80)
        actions = DecisionEngine.suggest_next_actions(Decision.RETRY, score)
        assert actions[0] == "Fix 1 critical issue(s) immediately"
        assert "Prioritize security fixes before continuing" in actions
        assert DecisionEngine.suggest_next_actions(Decision.COMPLETE, score)[0] == (
            "Generate final documentation"
        )
