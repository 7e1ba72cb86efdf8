"""Tests for Markdown, JSON and PR-comment rendering."""

import json

import pytest

from aggregator import FindingAggregator
from models import Finding, ReviewResult
from renderer import render, render_json, render_markdown, render_pr_comment


def _result(positives=()) -> ReviewResult:
    agg = FindingAggregator()
    agg.add_file([
        Finding(file="app/x.rb", line=3, category="security", severity="critical",
                message="String interpolation in SQL query", suggestion="Use placeholders"),
        Finding(file="app/x.rb", line=None, category="structural", severity="warning",
                message="File has 400 lines (max recommended: 300)"),
    ])
    agg.add_file([
        Finding(file="app/y.rb", line=i + 1, category="style", severity="suggestion",
                message=f"Line {i} too long")
        for i in range(7)
    ])
    agg.set_positives(positives)
    return agg.freeze()


def test_json_schema_and_summary_arithmetic():
    report = json.loads(render_json(_result()))

    assert set(report) == {"summary", "issues"}
    summary = report["summary"]
    assert summary == {"total": 9, "critical": 1, "warnings": 1, "suggestions": 7}
    assert summary["total"] == summary["critical"] + summary["warnings"] + summary["suggestions"]
    assert {k: len(v) for k, v in report["issues"].items()} == {
        "critical": 1, "warnings": 1, "suggestions": 7,
    }
    assert report["issues"]["critical"][0] == {
        "file": "app/x.rb",
        "line": 3,
        "category": "security",
        "message": "String interpolation in SQL query",
        "suggestion": "Use placeholders",
    }
    assert report["issues"]["warnings"][0]["line"] is None


def test_json_is_stable():
    assert render_json(_result()) == render_json(_result())


def test_json_of_empty_result():
    report = json.loads(render_json(ReviewResult.empty()))
    assert report == {
        "summary": {"total": 0, "critical": 0, "warnings": 0, "suggestions": 0},
        "issues": {"critical": [], "warnings": [], "suggestions": []},
    }


def test_markdown_sections_and_truncation():
    text = render_markdown(_result(positives=["Nice job!", "Tests added."]), limit=5)

    assert text.startswith("# Automated Code Review 🤖")
    assert "Hey there! Thanks for the PR. Nice job!" in text
    assert "Found 9 potential improvement(s): 1 critical, 1 warning(s), 7 suggestion(s)." in text
    assert text.index("## 🔒 Security Concerns") < text.index("## 🎨 Style Notes")
    assert "### 1. Critical in `app/x.rb`" in text
    assert "**Line 3:** String interpolation in SQL query" in text
    assert "**Suggestion:** Use placeholders" in text
    assert "**File:** File has 400 lines (max recommended: 300)" in text
    assert "*... and 2 more suggestion(s)*" in text
    assert "Line 5 too long" not in text
    assert "- Tests added." in text
    assert text.rstrip().endswith("*Generated by RuleLens 🤖*")


def test_markdown_for_clean_run():
    text = render_markdown(ReviewResult.empty())
    assert "Everything looks solid! No major issues found." in text
    assert "## Summary" not in text


def test_pr_comment_marker():
    body = render_pr_comment(_result(), pr_number=42)
    assert body.startswith("<!-- Automated review for PR #42 -->\n# Automated Code Review")
    assert render_pr_comment(_result()) == render_markdown(_result())


def test_render_dispatch():
    result = _result()
    assert render(result, "json") == render_json(result)
    assert render(result, "markdown", limit=2) == render_markdown(result, 2)
    assert render(result, "github", pr_number=7).startswith("<!-- Automated review for PR #7 -->")
    with pytest.raises(ValueError):
        render(result, "xml")
