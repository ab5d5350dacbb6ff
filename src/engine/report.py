"""Markdown rendering of quality scores."""

from __future__ import annotations

from src.engine.models import Dimension, Issue, Score, Severity

DIMENSION_LABELS: dict[Dimension, str] = {
    Dimension.TESTS: "Tests",
    Dimension.ACCESSIBILITY: "Accessibility",
    Dimension.PERFORMANCE: "Performance",
    Dimension.SECURITY: "Security",
    Dimension.CODE_QUALITY: "Code Quality",
}

MAX_MEDIUM_LISTED = 5


def _issue_line(issue: Issue) -> str:
    line = f"- {issue.message}"
    if issue.file:
        location = issue.file if issue.line is None else f"{issue.file}:{issue.line}"
        line += f" ({location})"
    return line


def render_score_report(score: Score) -> str:
    """Render *score* as a Markdown report.

    Critical and high issues are listed in full, medium issues up to
    :data:`MAX_MEDIUM_LISTED`, low issues only counted.
    """
    lines = [
        "# Quality Score Report",
        "",
        f"**Overall Score:** {score.overall}/100",
        "",
        "## Metrics",
        "",
    ]
    for dim, label in DIMENSION_LABELS.items():
        lines.append(f"- **{label}:** {score.metrics.get(dim)}/100")
    lines.append("")

    if score.issues:
        lines += ["## Issues", ""]
        for severity in (Severity.CRITICAL, Severity.HIGH):
            found = score.issues_by_severity(severity)
            if found:
                lines += [f"### {severity.value.capitalize()} ({len(found)})", ""]
                lines += [_issue_line(i) for i in found]
                lines.append("")

        medium = score.issues_by_severity(Severity.MEDIUM)
        if medium:
            lines += [f"### Medium ({len(medium)})", ""]
            lines += [_issue_line(i) for i in medium[:MAX_MEDIUM_LISTED]]
            if len(medium) > MAX_MEDIUM_LISTED:
                lines += ["", f"... and {len(medium) - MAX_MEDIUM_LISTED} more"]
            lines.append("")

        low = score.issues_by_severity(Severity.LOW)
        if low:
            lines += [f"### Low ({len(low)})", "", f"{len(low)} low-severity issues found.", ""]

    if score.recommendations:
        lines += ["## Recommendations", ""]
        lines += [f"- {rec}" for rec in score.recommendations]
        lines.append("")

    return "\n".join(lines)
