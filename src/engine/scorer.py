"""Quality scorer -- evaluates an execution pass across weighted dimensions.

Every enabled dimension starts at 100 and loses each matching rule's
deduction per detected issue, floored at 0.  Disabled dimensions stay at
100 and contribute no issues.  The overall score is the weighted sum of the
five sub-scores, rounded half-up.

Scoring is pure: identical inputs always produce an identical
:class:`Score`, including its timestamp.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

from src.engine.models import (
    AutomationConfig,
    Dimension,
    ExecutionResult,
    Issue,
    Score,
    ScoreMetrics,
    Severity,
)
from src.engine.rules import RULES, Rule
from src.utils.exceptions import ScoringError
from src.utils.logging import get_logger

logger = get_logger("engine.scorer")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

WEIGHTS: dict[Dimension, float] = {
    Dimension.TESTS: 0.25,
    Dimension.ACCESSIBILITY: 0.20,
    Dimension.PERFORMANCE: 0.20,
    Dimension.SECURITY: 0.25,
    Dimension.CODE_QUALITY: 0.10,
}

# Sub-score below which a dimension earns a recommendation.
RECOMMENDATION_THRESHOLDS: dict[Dimension, tuple[int, str]] = {
    Dimension.TESTS: (80, "Increase test coverage to at least 80%"),
    Dimension.ACCESSIBILITY: (90, "Address accessibility issues for WCAG 2.1 AA compliance"),
    Dimension.PERFORMANCE: (85, "Optimize performance bottlenecks"),
    Dimension.SECURITY: (95, "Fix security vulnerabilities immediately"),
    Dimension.CODE_QUALITY: (80, "Refactor code to improve quality and maintainability"),
}

DEFAULT_THRESHOLDS: dict[str, int] = {
    "overall": 70,
    Dimension.TESTS.value: 60,
    Dimension.ACCESSIBILITY.value: 80,
    Dimension.PERFORMANCE.value: 70,
    Dimension.SECURITY.value: 90,
    Dimension.CODE_QUALITY.value: 70,
}

_ERROR_DIMENSIONS = {
    "syntax": Dimension.CODE_QUALITY,
    "type": Dimension.CODE_QUALITY,
    "validation": Dimension.CODE_QUALITY,
    "runtime": Dimension.TESTS,
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def weighted_overall(metrics: ScoreMetrics) -> int:
    """Combine sub-scores into the overall score using :data:`WEIGHTS`."""
    total = sum(weight * metrics.get(dim) for dim, weight in WEIGHTS.items())
    return max(0, min(100, round_half_up(total)))


class QualityScorer:
    """Score a batch of :class:`ExecutionResult` objects.

    Parameters
    ----------
    rules:
        Rule table to apply; defaults to :data:`src.engine.rules.RULES`.
    """

    def __init__(self, rules: tuple[Rule, ...] | list[Rule] = RULES) -> None:
        self.rules = tuple(rules)

    def score(
        self,
        results: list[ExecutionResult],
        config: AutomationConfig | None = None,
        timestamp: datetime | None = None,
    ) -> Score:
        """Evaluate *results* and return a :class:`Score`.

        When *timestamp* is omitted it is the latest ``finished_at`` among
        the results, or the Unix epoch when there is none.

        Raises :class:`ScoringError` for malformed input.
        """
        config = config or AutomationConfig()
        self._validate(results)

        files = [f for r in results for f in r.files_generated]
        issues: list[Issue] = []
        values: dict[str, int] = {}

        for dimension in Dimension:
            if not config.is_enabled(dimension):
                values[dimension.value] = 100
                continue
            points = 100
            for rule in self.rules:
                if rule.dimension != dimension:
                    continue
                found = rule.evaluate(files)
                points -= rule.deduction * len(found)
                issues.extend(found)
            values[dimension.value] = max(0, points)

        issues.extend(self._error_issues(results, config))

        metrics = ScoreMetrics(**values)
        overall = weighted_overall(metrics)
        score = Score(
            overall=overall,
            metrics=metrics,
            issues=issues,
            recommendations=self._recommendations(metrics, overall),
            timestamp=timestamp or self._derive_timestamp(results),
        )
        logger.info(
            "score_calculated",
            overall=overall,
            issues=len(issues),
            critical=len(score.issues_by_severity(Severity.CRITICAL)),
            files=len(files),
        )
        return score

    # ----- Internal helpers -------------------------------------------------

    @staticmethod
    def _validate(results: list[ExecutionResult]) -> None:
        if not isinstance(results, (list, tuple)):
            raise ScoringError(f"expected a list of results, got {type(results).__name__}")
        for index, result in enumerate(results):
            if not isinstance(result, ExecutionResult):
                raise ScoringError(
                    f"result #{index} is {type(result).__name__}, not ExecutionResult"
                )

    @staticmethod
    def _error_issues(results: list[ExecutionResult], config: AutomationConfig) -> list[Issue]:
        """Itemize execution errors as issues; they carry no deduction."""
        issues: list[Issue] = []
        for result in results:
            for error in result.errors:
                dimension = _ERROR_DIMENSIONS[error.kind]
                if not config.is_enabled(dimension):
                    continue
                issues.append(
                    Issue(
                        dimension=dimension,
                        severity=Severity.HIGH if error.severity == "error" else Severity.MEDIUM,
                        message=error.message,
                        file=error.file,
                        line=error.line,
                        rule=f"execution-{error.kind}",
                    )
                )
        return issues

    @staticmethod
    def _recommendations(metrics: ScoreMetrics, overall: int) -> list[str]:
        recommendations = [
            text
            for dim, (threshold, text) in RECOMMENDATION_THRESHOLDS.items()
            if metrics.get(dim) < threshold
        ]
        if overall >= 90:
            recommendations.append("Excellent work! Consider adding more edge case tests")
        elif overall >= 70:
            recommendations.append("Good progress. Focus on addressing high-severity issues")
        else:
            recommendations.append("Significant improvements needed before deployment")
        return recommendations

    @staticmethod
    def _derive_timestamp(results: list[ExecutionResult]) -> datetime:
        finished = [r.metadata.finished_at for r in results if r.metadata.finished_at]
        return max(finished) if finished else EPOCH


def meets_thresholds(score: Score, thresholds: dict[str, int] | None = None) -> bool:
    """Return ``True`` when the overall and every sub-score clear their threshold."""
    merged = {**DEFAULT_THRESHOLDS, **(thresholds or {})}
    if score.overall < merged["overall"]:
        return False
    return all(score.metrics.get(dim) >= merged[dim.value] for dim in Dimension)
