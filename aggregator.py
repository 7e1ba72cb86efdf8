"""
Finding aggregation.

Collects per-file finding lists into category buckets, drops exact
duplicates, orders each bucket by severity and counts severities. The
display view (with "+K more" truncation) is derived from the frozen
result and never changes it.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from models import CATEGORY_ORDER, SEVERITY_ORDER, Finding, ReviewResult

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_LIMIT = 5


# ---------------------------------------------------------------------------
# Display view
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class DisplaySection:
    """One rendered slice of a category bucket."""

    category: str
    severity: str
    findings: tuple[Finding, ...]
    hidden: int = 0


def _sort_bucket(findings: Iterable[Finding]) -> tuple[Finding, ...]:
    # sorted() is stable: detection order survives within a severity
    return tuple(sorted(findings, key=lambda f: SEVERITY_ORDER[f.severity]))


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------
class FindingAggregator:
    """
    Accumulates findings for one review run.

    Each ``add_file`` call contributes one file's findings as a unit, so the
    final buckets are the same whether files were analysed sequentially or
    in parallel, as long as they are added in input order.
    """

    def __init__(self):
        self._buckets: dict[str, list[Finding]] = {}
        self._seen: set[tuple[str, int | None, str]] = set()
        self._positives: list[str] = []
        self._duplicates = 0

    def add_file(self, findings: Sequence[Finding]) -> int:
        """Add one file's findings; returns how many were new."""
        added = 0
        for finding in findings:
            if finding.key in self._seen:
                self._duplicates += 1
                continue
            self._seen.add(finding.key)
            self._buckets.setdefault(finding.category, []).append(finding)
            added += 1
        return added

    def has_category(self, *categories: str) -> bool:
        return any(self._buckets.get(category) for category in categories)

    def set_positives(self, notes: Iterable[str]) -> None:
        self._positives = list(dict.fromkeys(notes))

    def freeze(self) -> ReviewResult:
        """Produce the immutable result: sorted buckets plus severity counts."""
        buckets = {
            category: _sort_bucket(self._buckets[category])
            for category in CATEGORY_ORDER
            if self._buckets.get(category)
        }
        counts = {severity: 0 for severity in SEVERITY_ORDER}
        for bucket in buckets.values():
            for finding in bucket:
                counts[finding.severity] += 1

        if self._duplicates:
            logger.debug("Dropped %d duplicate finding(s)", self._duplicates)

        return ReviewResult(
            findings_by_category=buckets,
            counts_by_severity=counts,
            positives=tuple(self._positives),
        )


def merge_results(*results: ReviewResult) -> ReviewResult:
    """Union several results, deduplicating by (file, line, message)."""
    aggregator = FindingAggregator()
    positives: list[str] = []
    for result in results:
        aggregator.add_file(result.all_findings())
        positives.extend(result.positives)
    aggregator.set_positives(positives)
    return aggregator.freeze()


def display_view(
    result: ReviewResult, limit: int = DEFAULT_DISPLAY_LIMIT
) -> list[DisplaySection]:
    """
    Split each category bucket into per-severity display sections.

    Each section shows at most *limit* findings; ``hidden`` carries the
    remainder count.
    """
    sections: list[DisplaySection] = []
    for category in CATEGORY_ORDER:
        bucket = result.findings_by_category.get(category, ())
        for severity in SEVERITY_ORDER:
            matching = tuple(f for f in bucket if f.severity == severity)
            if not matching:
                continue
            shown = matching[:limit]
            sections.append(
                DisplaySection(
                    category=category,
                    severity=severity,
                    findings=shown,
                    hidden=len(matching) - len(shown),
                )
            )
    return sections


def is_failing(result: ReviewResult) -> bool:
    """A run fails when at least one critical finding was produced."""
    return result.counts_by_severity.get("critical", 0) > 0
