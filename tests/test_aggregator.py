"""Tests for finding aggregation, display truncation and run status."""

from aggregator import FindingAggregator, display_view, is_failing, merge_results
from models import Finding, ReviewResult


def _finding(message: str, severity: str = "warning", category: str = "performance",
             file: str = "a.rb", line: int | None = 1) -> Finding:
    return Finding(file=file, line=line, category=category, severity=severity, message=message)


def test_exact_duplicates_are_dropped():
    agg = FindingAggregator()
    first = _finding("N+1")
    assert agg.add_file([first, first]) == 1
    assert agg.add_file([_finding("N+1")]) == 0
    assert agg.add_file([_finding("N+1", line=2)]) == 1

    result = agg.freeze()
    assert result.total == 2


def test_bucket_sorted_by_severity_keeping_detection_order():
    agg = FindingAggregator()
    agg.add_file([
        _finding("s1", "suggestion"),
        _finding("c1", "critical"),
        _finding("w1", "warning"),
        _finding("s2", "suggestion"),
        _finding("c2", "critical"),
    ])
    result = agg.freeze()

    assert [f.message for f in result.findings_by_category["performance"]] == [
        "c1", "c2", "w1", "s1", "s2",
    ]


def test_counts_and_category_order():
    agg = FindingAggregator()
    agg.add_file([
        _finding("style", "suggestion", "style"),
        _finding("sql", "critical", "security"),
        _finding("slow", "warning", "performance"),
    ])
    result = agg.freeze()

    assert result.counts_by_severity == {"critical": 1, "warning": 1, "suggestion": 1}
    assert list(result.findings_by_category) == ["security", "performance", "style"]
    assert [f.message for f in result.all_findings()] == ["sql", "slow", "style"]
    assert is_failing(result)
    assert result.is_failing


def test_has_category():
    agg = FindingAggregator()
    agg.add_file([_finding("x", category="naming")])
    assert agg.has_category("naming")
    assert not agg.has_category("security", "performance")


def test_empty_result():
    result = FindingAggregator().freeze()
    assert result == ReviewResult.empty()
    assert result.total == 0
    assert result.counts_by_severity == {"critical": 0, "warning": 0, "suggestion": 0}
    assert not is_failing(result)


def test_display_view_truncates_but_counts_stay_true():
    agg = FindingAggregator()
    agg.add_file([_finding(f"w{i}", line=i + 1) for i in range(7)])
    agg.add_file([_finding("c", "critical", "security")])
    result = agg.freeze()

    sections = display_view(result, limit=5)

    assert [(s.category, s.severity, len(s.findings), s.hidden) for s in sections] == [
        ("security", "critical", 1, 0),
        ("performance", "warning", 5, 2),
    ]
    assert result.counts_by_severity["warning"] == 7
    assert len(result.findings_by_category["performance"]) == 7


def test_merge_results_unions_and_dedups():
    left = FindingAggregator()
    left.add_file([_finding("a"), _finding("b")])
    left.set_positives(["nice"])
    right = FindingAggregator()
    right.add_file([_finding("b"), _finding("c", "critical")])
    right.set_positives(["nice", "great"])

    merged = merge_results(left.freeze(), right.freeze())

    assert [f.message for f in merged.all_findings()] == ["c", "a", "b"]
    assert merged.positives == ("nice", "great")
    assert merged.total == 3
