"""Review orchestration - classify, analyse each file, aggregate."""

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path, PurePath

from aggregator import FindingAggregator
from blocks import estimate_complexity, scan_blocks
from classifier import classify_files
from config import Config
from detectors import FileContext, find_positive_patterns, run_detectors
from models import Finding, ReviewResult

logger = logging.getLogger(__name__)

# Categories whose presence suppresses the positive-pattern pass
GATING_CATEGORIES = ("security", "performance")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------
@dataclass
class FileReview:
    """Analysis outcome for a single file."""

    path: str
    tag: str
    context: FileContext | None = None
    findings: list[Finding] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return self.context is None


# ---------------------------------------------------------------------------
# Per-file analysis
# ---------------------------------------------------------------------------
def read_source(path: str | PurePath) -> str | None:
    """Read a file as UTF-8 text; None (with a warning) if that is not possible."""
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        logger.warning("Skipping %s - could not read: %s", path, e)
        return None

    if b"\x00" in data:
        logger.warning("Skipping %s - looks like a binary file", path)
        return None

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.warning("Skipping %s - not valid UTF-8: %s", path, e)
        return None


def build_context(path: str, tag: str, config: Config) -> FileContext | None:
    """Read *path* and precompute its blocks and their complexity scores."""
    content = read_source(path)
    if content is None:
        return None

    try:
        blocks = tuple(scan_blocks(content, tag))
    except Exception as e:
        logger.warning("Block scan failed for %s: %s", path, e)
        blocks = ()

    return FileContext(
        path=path,
        content=content,
        tag=tag,
        blocks=blocks,
        complexities=tuple(estimate_complexity(b.body, tag) for b in blocks),
        config=config,
    )


def _analyse(path: str, tag: str, config: Config) -> FileReview:
    context = build_context(path, tag, config)
    if context is None:
        return FileReview(path=path, tag=tag)

    findings = run_detectors(context)
    logger.debug("   %s: %d finding(s)", path, len(findings))
    return FileReview(path=path, tag=tag, context=context, findings=findings)


def review_file(path: str, tag: str, config: Config | None = None) -> list[Finding] | None:
    """
    Run every detector for *tag* over one file.

    Returns:
        The file's findings, or None when the file was skipped
    """
    result = _analyse(path, tag, config or Config())
    return None if result.skipped else result.findings


# ---------------------------------------------------------------------------
# Batch entry point
# ---------------------------------------------------------------------------
def review(
    files: Iterable[str | PurePath],
    config: Config | None = None,
    *,
    max_workers: int = 1,
) -> ReviewResult:
    """
    Review a batch of candidate files.

    Args:
        files: Candidate paths (unsupported and ignored ones are filtered out)
        config: Thresholds and ignore rules (defaults when omitted)
        max_workers: Analyse files in a thread pool when greater than 1

    Returns:
        The aggregated ReviewResult. Never raises because of file content;
        unreadable files and failing detectors only reduce the findings.
    """
    config = config or Config()
    eligible = classify_files(files, config)

    if not eligible:
        logger.info("No reviewable files found")
        return ReviewResult.empty()

    logger.info("🔍 Reviewing %d file(s)...", len(eligible))

    if max_workers > 1 and len(eligible) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            # map() yields in submission order
            reviews = list(
                pool.map(lambda item: _analyse(item[0], item[1], config), eligible)
            )
    else:
        reviews = [_analyse(path, tag, config) for path, tag in eligible]

    aggregator = FindingAggregator()
    contexts: list[FileContext] = []
    for file_review in reviews:
        if file_review.skipped:
            continue
        aggregator.add_file(file_review.findings)
        contexts.append(file_review.context)

    if contexts and not aggregator.has_category(*GATING_CATEGORIES):
        aggregator.set_positives(find_positive_patterns(contexts))

    result = aggregator.freeze()
    counts = result.counts_by_severity
    logger.info(
        "   Found %d issue(s): %d critical, %d warning(s), %d suggestion(s)",
        result.total,
        counts["critical"],
        counts["warning"],
        counts["suggestion"],
    )
    return result
