"""Objective classification module.

Maps a free-text build request onto an ordered list of objectives using a
fixed phrase/keyword rule table.  The classification is deterministic: the
same prompt always yields the same objectives in the same order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from src.utils.logging import get_logger

logger = get_logger("planning.classifier")


@dataclass(frozen=True)
class ObjectiveRule:
    """One row of the objective rule table.

    Attributes:
        key: Stable identifier used by the decomposer and architecture designer.
        objective: Human-readable objective text placed in the plan.
        patterns: Regular expressions; any match selects the objective.
        feature: Whether the objective gets its own implementation task.
    """

    key: str
    objective: str
    patterns: tuple[str, ...]
    feature: bool = True


@dataclass(frozen=True)
class Objective:
    """An objective selected for a prompt."""

    key: str
    text: str
    feature: bool
    matched: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Rule table.  Order is significant: it is the order objectives appear in.
# ---------------------------------------------------------------------------

OBJECTIVE_RULES: tuple[ObjectiveRule, ...] = (
    ObjectiveRule(
        key="content",
        objective="Create blog/article system with posts management",
        patterns=(r"\bblogs?\b", r"\barticles?\b", r"\bposts?\b"),
    ),
    ObjectiveRule(
        key="dashboard",
        objective="Build admin dashboard with analytics",
        patterns=(r"\bdashboards?\b", r"\badmin\b"),
    ),
    ObjectiveRule(
        key="identity",
        objective="Implement authentication system",
        patterns=(r"\bauth\w*", r"\blog ?in\b", r"\bsign ?up\b", r"\bsign ?in\b"),
    ),
    ObjectiveRule(
        key="theming",
        objective="Add dark mode / theme switching",
        patterns=(r"\bdark mode\b", r"\bthem(e|es|ing)\b"),
    ),
    ObjectiveRule(
        key="forms",
        objective="Create form with validation",
        patterns=(r"\bforms?\b", r"\bcontact\b"),
    ),
    ObjectiveRule(
        key="api",
        objective="Set up backend API endpoints",
        patterns=(r"\bapis?\b", r"\bbackend\b", r"\brest\b"),
    ),
    ObjectiveRule(
        key="data",
        objective="Design and implement database schema",
        patterns=(r"\bdatabases?\b", r"\bdata\b", r"\bschema\b"),
    ),
)

GENERIC_RULE = ObjectiveRule(
    key="generic",
    objective="Build application based on requirements",
    patterns=(),
)

STANDING_RULES: tuple[ObjectiveRule, ...] = (
    ObjectiveRule(
        key="accessibility",
        objective="Ensure accessibility compliance",
        patterns=(),
        feature=False,
    ),
    ObjectiveRule(
        key="testing",
        objective="Add comprehensive test coverage",
        patterns=(),
        feature=False,
    ),
)


class ObjectiveClassifier:
    """Classifies a prompt into objectives via :data:`OBJECTIVE_RULES`.

    Parameters
    ----------
    rules:
        Alternative rule table, mainly for tests.  Defaults to
        :data:`OBJECTIVE_RULES`.
    """

    def __init__(self, rules: tuple[ObjectiveRule, ...] = OBJECTIVE_RULES):
        self.rules = rules

    def classify(self, prompt: str) -> list[Objective]:
        """Return the objectives for *prompt*.

        Always returns at least one feature objective (the generic one when
        nothing matched) followed by the standing accessibility and testing
        objectives.
        """
        text = (prompt or "").lower()
        objectives: list[Objective] = []

        for rule in self.rules:
            matched = tuple(p for p in rule.patterns if re.search(p, text))
            if matched:
                objectives.append(
                    Objective(rule.key, rule.objective, rule.feature, matched)
                )

        if not any(o.feature for o in objectives):
            objectives.append(
                Objective(GENERIC_RULE.key, GENERIC_RULE.objective, True)
            )

        for rule in STANDING_RULES:
            objectives.append(Objective(rule.key, rule.objective, rule.feature))

        logger.debug(
            "objectives_classified",
            keys=[o.key for o in objectives],
        )
        return objectives
