"""Map candidate paths to language tags and decide which ones to review."""

import logging
import os
from collections.abc import Iterable
from pathlib import Path, PurePath

from config import Config

logger = logging.getLogger(__name__)

NO_LANGUAGE = "none"

# Extension -> language tag
EXTENSION_TAGS: dict[str, str] = {
    ".rb": "ruby",
    ".rake": "ruby",
    ".gemspec": "ruby",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".vue": "vue",
    ".graphql": "graphql",
    ".gql": "graphql",
    ".erb": "template",
    ".haml": "template",
    ".slim": "template",
}

LANGUAGE_TAGS: tuple[str, ...] = ("ruby", "javascript", "vue", "graphql", "template")

_TEST_SUFFIXES = (
    "_spec.rb",
    "_test.rb",
    ".spec.js",
    ".test.js",
    ".spec.jsx",
    ".test.jsx",
)
_TEST_DIRS = {"spec", "test", "tests", "__tests__"}


def language_for(path: str | PurePath) -> str:
    """Return the language tag for *path*, or ``"none"``."""
    name = PurePath(path).name.lower()
    # .html.erb, .js.erb etc. resolve through their last suffix
    suffix = PurePath(name).suffix
    return EXTENSION_TAGS.get(suffix, NO_LANGUAGE)


def is_test_path(path: str | PurePath) -> bool:
    """Check whether *path* looks like a spec/test file."""
    pure = PurePath(path)
    if pure.name.lower().endswith(_TEST_SUFFIXES):
        return True
    return any(part in _TEST_DIRS for part in pure.parts[:-1])


def _project_relative(path: PurePath) -> str | None:
    """POSIX path relative to the working directory, None if outside it."""
    if path.is_absolute():
        try:
            path = path.relative_to(Path.cwd())
        except ValueError:
            return None
    return path.as_posix()


def is_ignored(path: str | PurePath, config: Config) -> bool:
    """Check ignore_dirs (prefix or any directory component) and ignore_files.

    Directory rules apply to the project-relative part of the path only, so
    an absolute path outside the working directory is never ignored because
    of where the project itself lives (e.g. under ``/tmp``).
    """
    pure = PurePath(path)
    if pure.name in config.ignore_files:
        return True

    posix = _project_relative(pure)
    if posix is None:
        return False
    wrapped = f"/{posix}"
    for ignore_dir in config.ignore_dirs:
        ignore_dir = ignore_dir.strip("/")
        if not ignore_dir:
            continue
        if posix.startswith(ignore_dir + "/") or f"/{ignore_dir}/" in wrapped:
            return True
    return False


def _is_readable_file(path: Path) -> bool:
    try:
        return path.is_file() and os.access(path, os.R_OK)
    except OSError:
        return False


def classify_files(
    paths: Iterable[str | PurePath],
    config: Config | None = None,
) -> list[tuple[str, str]]:
    """
    Filter candidate paths down to the reviewable ones.

    Args:
        paths: Candidate file paths, typically from a diff
        config: Ignore rules (defaults when omitted)

    Returns:
        ``(path, tag)`` pairs in the original order. Paths are kept as given
        (POSIX separators); a repeated path keeps its first position.
    """
    config = config or Config()
    eligible: list[tuple[str, str]] = []
    seen: set[str] = set()

    for raw in paths:
        path = PurePath(raw).as_posix()
        if path in seen:
            continue
        seen.add(path)

        tag = language_for(path)
        if tag == NO_LANGUAGE:
            logger.debug("Skipping %s - unsupported file type", path)
            continue
        if is_ignored(path, config):
            logger.debug("Skipping %s - ignored by configuration", path)
            continue
        if not _is_readable_file(Path(path)):
            logger.warning("Skipping %s - missing or unreadable", path)
            continue

        eligible.append((path, tag))

    return eligible
