"""Report rendering: Markdown, JSON and PR-comment views of a ReviewResult."""

import json
from typing import Literal

from aggregator import DEFAULT_DISPLAY_LIMIT, DisplaySection, display_view
from models import Finding, ReviewResult

OutputFormat = Literal["markdown", "json", "github"]

CATEGORY_HEADINGS: dict[str, str] = {
    "security": "🔒 Security Concerns",
    "performance": "⚡ Performance Optimizations",
    "clean_code": "🧹 Clean Code Suggestions",
    "accessibility": "♿ Accessibility Improvements",
    "maintainability": "🔧 Maintainability Notes",
    "best_practice": "📋 Best Practice Suggestions",
    "style": "🎨 Style Notes",
    "naming": "🏷️ Naming Conventions",
    "structural": "🏗️ Structural Concerns",
}

_SEVERITY_LABELS = {
    "critical": "Critical",
    "warning": "Warning",
    "suggestion": "Suggestion",
}

# JSON bucket name per severity
_JSON_BUCKETS = {
    "critical": "critical",
    "warning": "warnings",
    "suggestion": "suggestions",
}


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------
def _format_finding(finding: Finding, number: int) -> list[str]:
    label = _SEVERITY_LABELS[finding.severity]
    location = f"**Line {finding.line}:**" if finding.line is not None else "**File:**"
    lines = [
        f"### {number}. {label} in `{finding.file}`",
        f"{location} {finding.message}",
        "",
    ]
    if finding.suggestion:
        lines += [f"**Suggestion:** {finding.suggestion}", ""]
    return lines


def _format_category(sections: list[DisplaySection]) -> list[str]:
    lines = [f"## {CATEGORY_HEADINGS[sections[0].category]}", ""]
    number = 0
    for section in sections:
        for finding in section.findings:
            number += 1
            lines += _format_finding(finding, number)
        if section.hidden:
            noun = _SEVERITY_LABELS[section.severity].lower()
            lines += [f"*... and {section.hidden} more {noun}(s)*", ""]
    return lines


def render_markdown(result: ReviewResult, limit: int = DEFAULT_DISPLAY_LIMIT) -> str:
    """Human-readable report. Long sections are truncated to *limit* entries."""
    lines: list[str] = ["# Automated Code Review 🤖", "", "## Overall Impression"]

    if result.positives:
        lines.append(f"Hey there! Thanks for the PR. {result.positives[0]}")
        lines.append("")

    counts = result.counts_by_severity
    if result.total == 0:
        lines.append("Everything looks solid! No major issues found. 🎉")
    else:
        lines.append(
            f"Found {result.total} potential improvement(s): "
            f"{counts['critical']} critical, {counts['warning']} warning(s), "
            f"{counts['suggestion']} suggestion(s)."
        )
    lines.append("")

    by_category: dict[str, list[DisplaySection]] = {}
    for section in display_view(result, limit):
        by_category.setdefault(section.category, []).append(section)
    for sections in by_category.values():
        lines += _format_category(sections)

    if len(result.positives) > 1:
        lines.append("## What's Working Well")
        lines += [f"- {note}" for note in result.positives[1:]]
        lines.append("")

    if result.total:
        lines.append("## Summary")
        if result.is_failing:
            lines.append("Critical issues were found; please address them before merging.")
        else:
            lines.append(
                "These suggestions will help make the code more secure, "
                "performant and maintainable."
            )
        lines.append("")

    lines.append("---")
    lines.append("*Generated by RuleLens 🤖*")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------
def _issue(finding: Finding) -> dict:
    return finding.model_dump(include={"file", "line", "category", "message", "suggestion"})


def to_report_dict(result: ReviewResult) -> dict:
    """Machine-readable structure: full lists and true counts, no truncation."""
    counts = result.counts_by_severity
    issues: dict[str, list[dict]] = {bucket: [] for bucket in _JSON_BUCKETS.values()}
    for finding in result.all_findings():
        issues[_JSON_BUCKETS[finding.severity]].append(_issue(finding))
    return {
        "summary": {
            "total": result.total,
            "critical": counts["critical"],
            "warnings": counts["warning"],
            "suggestions": counts["suggestion"],
        },
        "issues": issues,
    }


def render_json(result: ReviewResult) -> str:
    return json.dumps(to_report_dict(result), indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# PR comment
# ---------------------------------------------------------------------------
def pr_marker(pr_number: int) -> str:
    return f"<!-- Automated review for PR #{pr_number} -->"


def render_pr_comment(
    result: ReviewResult,
    pr_number: int | None = None,
    limit: int = DEFAULT_DISPLAY_LIMIT,
) -> str:
    body = render_markdown(result, limit)
    if pr_number is not None:
        body = pr_marker(pr_number) + "\n" + body
    return body


def render(
    result: ReviewResult,
    fmt: OutputFormat = "markdown",
    *,
    pr_number: int | None = None,
    limit: int = DEFAULT_DISPLAY_LIMIT,
) -> str:
    """Render *result* in the requested format."""
    if fmt == "json":
        return render_json(result)
    if fmt == "github":
        return render_pr_comment(result, pr_number, limit)
    if fmt == "markdown":
        return render_markdown(result, limit)
    raise ValueError(f"Unknown output format: {fmt!r}")
