"""Parser for unified diff format using unidiff library."""

import logging
from dataclasses import dataclass

from unidiff import PatchSet
from unidiff.errors import UnidiffParseError

logger = logging.getLogger(__name__)


@dataclass
class FileDiff:
    """Parsed diff for a single file."""
    filename: str
    status: str                           # added, deleted, modified, renamed


def _status(patched_file) -> str:
    if patched_file.is_added_file:
        return "added"
    if patched_file.is_removed_file:
        return "deleted"
    if patched_file.is_rename:
        return "renamed"
    return "modified"


def parse_diff(diff_text: str) -> list[FileDiff]:
    """
    Parse a unified diff into structured FileDiff objects.

    Args:
        diff_text: Raw unified diff string

    Returns:
        List of FileDiff objects, one per file, in diff order

    Raises:
        ValueError: If the text is not a valid unified diff
    """
    try:
        patch_set = PatchSet(diff_text)
    except UnidiffParseError as e:
        raise ValueError(f"Could not parse diff: {e}") from e

    files = []
    for patched_file in patch_set:
        files.append(FileDiff(
            filename=patched_file.path,
            status=_status(patched_file),
        ))

    return files


def changed_paths(diff_text: str, include_deletions: bool = False) -> list[str]:
    """
    Candidate paths for review, in the order the diff lists them.

    Deleted files are dropped unless *include_deletions* is set; they no
    longer exist on disk, so the classifier would skip them anyway.
    """
    paths = []
    for file in parse_diff(diff_text):
        if file.status == "deleted" and not include_deletions:
            logger.debug("Skipping %s - deleted in diff", file.filename)
            continue
        paths.append(file.filename)
    return paths
