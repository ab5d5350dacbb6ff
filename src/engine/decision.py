"""Decision engine -- chooses what the control loop does after scoring.

The policy, evaluated in order:

1. ``overall >= quality_threshold``  -> complete
2. ``retry_count < max_retries``     -> retry
3. not ``auto_approve``              -> request-input
4. any critical issue               -> fail, otherwise complete

The module also owns the automation state machine (:data:`ALLOWED_TRANSITIONS`)
and a few reporting helpers over the decision history.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Literal

from pydantic import BaseModel

from src.engine.models import (
    AutomationConfig,
    AutomationState,
    Decision,
    DecisionContext,
    DecisionOutcome,
    DecisionRecord,
    Dimension,
    Score,
    Severity,
)
from src.utils.exceptions import DecisionAmbiguousError, InvalidTransitionError
from src.utils.logging import get_logger

logger = get_logger("engine.decision")

S = AutomationState

ALLOWED_TRANSITIONS: dict[AutomationState, frozenset[AutomationState]] = {
    S.IDLE: frozenset({S.PLANNING, S.FAILED}),
    S.PLANNING: frozenset({S.EXECUTING, S.FAILED}),
    S.EXECUTING: frozenset({S.SCORING, S.FAILED}),
    S.SCORING: frozenset({S.DECIDING, S.FAILED}),
    S.DECIDING: frozenset({S.EXECUTING, S.COMPLETED, S.AWAITING_INPUT, S.FAILED}),
    S.AWAITING_INPUT: frozenset({S.PLANNING, S.FAILED}),
    S.COMPLETED: frozenset(),
    S.FAILED: frozenset(),
}

_NEXT_STATE: dict[Decision, AutomationState] = {
    Decision.COMPLETE: S.COMPLETED,
    Decision.RETRY: S.EXECUTING,
    Decision.REQUEST_INPUT: S.AWAITING_INPUT,
    Decision.FAIL: S.FAILED,
}

# Per-dimension floors used to name what is failing.
FAILURE_THRESHOLDS: dict[Dimension, int] = {
    Dimension.TESTS: 60,
    Dimension.ACCESSIBILITY: 80,
    Dimension.PERFORMANCE: 70,
    Dimension.SECURITY: 90,
    Dimension.CODE_QUALITY: 70,
}


def next_state(decision: Decision) -> AutomationState:
    """Return the state the orchestrator enters after *decision*."""
    return _NEXT_STATE[decision]


def is_terminal(state: AutomationState) -> bool:
    """Completed and failed accept no further transitions."""
    return not ALLOWED_TRANSITIONS[state]


def halts_run(state: AutomationState) -> bool:
    """Return ``True`` when a run stops in *state* (terminal or awaiting input)."""
    return is_terminal(state) or state == S.AWAITING_INPUT


def check_transition(current: AutomationState, target: AutomationState) -> None:
    """Raise :class:`InvalidTransitionError` unless *current* -> *target* is allowed."""
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError("automation", current.value, target.value)


def failure_reasons(score: Score, config: AutomationConfig | None = None) -> list[str]:
    """Name the enabled dimensions scoring below :data:`FAILURE_THRESHOLDS`."""
    config = config or AutomationConfig()
    return [
        f"{dim.value.replace('_', ' ')} {score.metrics.get(dim)}"
        for dim, floor in FAILURE_THRESHOLDS.items()
        if config.is_enabled(dim) and score.metrics.get(dim) < floor
    ]


class HistoryAnalysis(BaseModel):
    total_retries: int = 0
    average_score: float = 0.0
    trend: Literal["improving", "degrading", "stable"] = "stable"
    most_common_issue: str | None = None


def analyze_history(history: list[DecisionRecord]) -> HistoryAnalysis:
    """Summarise retries, score trend and the most frequent issue kind.

    The trend compares the mean of the second half of the recorded scores
    with the first half; it needs at least four scores and a gap above 5.
    """
    if not history:
        return HistoryAnalysis()

    scores = [r.score.overall for r in history if r.score is not None]
    average = sum(scores) / len(scores) if scores else 0.0

    trend = "stable"
    if len(scores) >= 4:
        mid = len(scores) // 2
        first = sum(scores[:mid]) / mid
        second = sum(scores[mid:]) / (len(scores) - mid)
        if second > first + 5:
            trend = "improving"
        elif second < first - 5:
            trend = "degrading"

    counts: Counter[str] = Counter(
        f"{issue.dimension.value}:{issue.severity.value}"
        for r in history if r.score is not None
        for issue in r.score.issues
    )
    most_common = counts.most_common(1)[0][0] if counts else None

    return HistoryAnalysis(
        total_retries=sum(1 for r in history if r.decision == Decision.RETRY),
        average_score=average,
        trend=trend,
        most_common_issue=most_common,
    )


class DecisionEngine:
    """Apply the retry/escalation policy to a scored execution pass."""

    def decide(self, context: DecisionContext) -> DecisionOutcome:
        """Return the decision for *context* with a reason naming its cause.

        An ambiguous evaluation (e.g. a non-finite score) escalates to a
        human with ``request-input`` instead of raising.
        """
        try:
            outcome = self._evaluate(context)
        except DecisionAmbiguousError as exc:
            logger.warning("decision_ambiguous", error=str(exc))
            outcome = DecisionOutcome(
                decision=Decision.REQUEST_INPUT,
                reason=f"Decision could not be evaluated ({exc}). Manual review required.",
            )
        logger.info(
            "decision_made",
            decision=outcome.decision.value,
            overall=context.score.overall,
            retry_count=context.retry_count,
        )
        return outcome

    def _evaluate(self, context: DecisionContext) -> DecisionOutcome:
        score, config, retries = context.score, context.config, context.retry_count
        overall = score.overall
        if not isinstance(overall, (int, float)) or not math.isfinite(overall):
            raise DecisionAmbiguousError(f"non-finite overall score: {overall!r}")
        if retries < 0:
            raise DecisionAmbiguousError(f"negative retry count: {retries}")

        threshold = config.quality_threshold
        if overall >= threshold:
            return DecisionOutcome(
                decision=Decision.COMPLETE,
                reason=f"Quality score {overall}/100 meets threshold {threshold}/100.",
            )

        failing = failure_reasons(score, config)
        below = f"Quality score {overall}/100 below threshold {threshold}/100"
        if failing:
            below += f" (failing: {', '.join(failing)})"

        if retries < config.max_retries:
            return DecisionOutcome(
                decision=Decision.RETRY,
                reason=f"{below}. Retry {retries + 1} of {config.max_retries}.",
            )

        if not config.auto_approve:
            return DecisionOutcome(
                decision=Decision.REQUEST_INPUT,
                reason=(
                    f"{below} after {retries} retries; retry budget exhausted. "
                    "Manual review required."
                ),
            )

        critical = len(score.issues_by_severity(Severity.CRITICAL))
        if critical:
            return DecisionOutcome(
                decision=Decision.FAIL,
                reason=f"{below}; {critical} critical issue(s) block auto-approval.",
            )
        return DecisionOutcome(
            decision=Decision.COMPLETE,
            reason=f"{below}; auto-approved as best effort with no critical issues.",
        )

    # ----- Reporting --------------------------------------------------------

    def explain(self, context: DecisionContext, outcome: DecisionOutcome | None = None) -> str:
        """Return a Markdown explanation of the decision for *context*.

        Pass the *outcome* already returned by :meth:`decide` to explain it
        without deciding again.
        """
        if outcome is None:
            outcome = self.decide(context)
        analysis = analyze_history(context.history)
        score, config = context.score, context.config

        lines = [
            f"## Decision: {outcome.decision.value.upper()}",
            "",
            f"**Reasoning:** {outcome.reason}",
            "",
            "### Current Status",
            f"- Overall Score: {score.overall}/100",
            f"- Quality Threshold: {config.quality_threshold}/100",
            f"- Retry Count: {context.retry_count}/{config.max_retries}",
            "",
        ]
        if analysis.total_retries > 0:
            lines += [
                "### History Analysis",
                f"- Total Retries: {analysis.total_retries}",
                f"- Average Score: {round(analysis.average_score)}/100",
                f"- Trend: {analysis.trend}",
            ]
            if analysis.most_common_issue:
                lines.append(f"- Most Common Issue: {analysis.most_common_issue}")
            lines.append("")

        if score.issues:
            critical = len(score.issues_by_severity(Severity.CRITICAL))
            high = len(score.issues_by_severity(Severity.HIGH))
            lines.append("### Issues Summary")
            if critical:
                lines.append(f"- Critical: {critical}")
            if high:
                lines.append(f"- High: {high}")
            lines.append(f"- Total Issues: {len(score.issues)}")
            lines.append("")

        return "\n".join(lines)

    @staticmethod
    def suggest_next_actions(decision: Decision, score: Score) -> list[str]:
        """Return follow-up actions appropriate for *decision*."""
        actions: list[str] = []
        if decision == Decision.RETRY:
            critical = score.issues_by_severity(Severity.CRITICAL)
            high = score.issues_by_severity(Severity.HIGH)
            if critical:
                actions.append(f"Fix {len(critical)} critical issue(s) immediately")
                actions += [f"  - {issue.message}" for issue in critical[:3]]
            if high:
                actions.append(f"Address {len(high)} high-severity issue(s)")
            if score.metrics.security < 90:
                actions.append("Prioritize security fixes before continuing")
            if score.metrics.accessibility < 80:
                actions.append("Review and fix accessibility violations")
        elif decision == Decision.COMPLETE:
            actions += [
                "Generate final documentation",
                "Prepare deployment package",
                "Create release notes",
            ]
        elif decision == Decision.REQUEST_INPUT:
            actions += [
                "Review generated code and quality report",
                "Decide whether to proceed, retry, or modify requirements",
                "Provide feedback on any concerns",
            ]
        else:
            actions += [
                "Review error logs and failure reasons",
                "Adjust requirements or configuration",
                "Consider manual intervention",
            ]
        return actions
