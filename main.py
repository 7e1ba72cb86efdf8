"""RuleLens command-line interface."""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from classifier import EXTENSION_TAGS
from config import load_config
from diff_parser import changed_paths
from github_client import fetch_raw_diff, post_pr_comment
from renderer import pr_marker, render
from reviewer import review

logger = logging.getLogger(__name__)

FORMATS = ("markdown", "json", "github")

app = typer.Typer(
    name="rulelens",
    help="RuleLens - heuristic, rule-based code review for Ruby, JavaScript, Vue and GraphQL",
    add_completion=False,
)


# ---------------------------------------------------------------------------
# Input helpers
# ---------------------------------------------------------------------------
def _expand(paths: list[Path]) -> list[str]:
    """Files stay as given; directories expand to the files beneath them."""
    expanded: list[str] = []
    for path in paths:
        if path.is_dir():
            expanded.extend(
                p.as_posix() for p in sorted(path.rglob("*")) if p.is_file()
            )
        else:
            expanded.append(path.as_posix())
    return expanded


def _read_diff(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    try:
        return Path(source).read_text(encoding="utf-8")
    except OSError as e:
        raise ValueError(f"Could not read diff file {source}: {e}") from e


def _candidates(
    paths: list[Path],
    diff: Optional[str],
    repo: Optional[str],
    pr: Optional[int],
) -> list[str]:
    candidates = _expand(paths)
    if diff:
        candidates.extend(changed_paths(_read_diff(diff)))
    if repo and pr is not None:
        logger.info("📥 Fetching PR #%d from %s...", pr, repo)
        candidates.extend(changed_paths(fetch_raw_diff(repo, pr)))
    if not candidates and not (diff or repo):
        candidates = _expand([Path(".")])
    return candidates


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@app.command("review")
def review_command(
    paths: Optional[list[Path]] = typer.Argument(
        None, help="Files or directories to review (default: current directory)"
    ),
    diff: Optional[str] = typer.Option(
        None, "--diff", "-d", help="Review the files changed in a unified diff file ('-' for stdin)"
    ),
    repo: Optional[str] = typer.Option(
        None, "--repo", help="GitHub repository in 'owner/repo' format"
    ),
    pr: Optional[int] = typer.Option(
        None, "--pr", help="Pull request number (requires --repo)"
    ),
    output_format: str = typer.Option(
        "markdown", "--format", "-f", help="Output format: markdown, json or github"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the report to a file instead of stdout"
    ),
    post: bool = typer.Option(
        False, "--post", help="Post the report as a PR comment (requires --repo and --pr)"
    ),
    max_line_length: Optional[int] = typer.Option(None, "--max-line-length"),
    max_method_length: Optional[int] = typer.Option(None, "--max-method-length"),
    max_file_size: Optional[int] = typer.Option(None, "--max-file-size"),
    complexity_threshold: Optional[int] = typer.Option(None, "--complexity-threshold"),
    display_limit: Optional[int] = typer.Option(
        None, "--display-limit", help="Findings shown per section before '+K more'"
    ),
    ignore_dir: Optional[list[str]] = typer.Option(
        None, "--ignore-dir", help="Additional directory to ignore (repeatable)"
    ),
    ignore_file: Optional[list[str]] = typer.Option(
        None, "--ignore-file", help="File name to ignore (repeatable)"
    ),
    workers: int = typer.Option(
        1, "--workers", "-w", min=1, help="Analyse files in parallel with N threads"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Review files and print a report. Exits 1 when critical issues are found."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if output_format not in FORMATS:
        logger.error("Unknown format %r (choose from %s)", output_format, ", ".join(FORMATS))
        raise typer.Exit(2)
    if (post or pr is not None) and not (repo and pr is not None):
        logger.error("--pr and --post need both --repo and --pr")
        raise typer.Exit(2)

    config = load_config(
        max_line_length=max_line_length,
        max_method_length=max_method_length,
        max_file_size=max_file_size,
        complexity_threshold=complexity_threshold,
        display_limit=display_limit,
    )
    extra_dirs = frozenset(ignore_dir or ())
    extra_files = frozenset(ignore_file or ())
    if extra_dirs or extra_files:
        config = config.model_copy(
            update={
                "ignore_dirs": config.ignore_dirs | extra_dirs,
                "ignore_files": config.ignore_files | extra_files,
            }
        )

    try:
        candidates = _candidates(paths or [], diff, repo, pr)
        result = review(candidates, config, max_workers=workers)
        report = render(
            result, output_format, pr_number=pr, limit=config.display_limit
        )

        if output:
            output.write_text(report + "\n", encoding="utf-8")
            logger.info("Report saved to %s", output)
        else:
            typer.echo(report)

        if post:
            comment = render(result, "github", pr_number=pr, limit=config.display_limit)
            post_pr_comment(repo, pr, comment, marker=pr_marker(pr))

    except ValueError as e:
        logger.error("❌ %s", e)
        raise typer.Exit(2)

    if result.is_failing:
        raise typer.Exit(1)


@app.command("languages")
def languages_command() -> None:
    """List the file extensions RuleLens reviews and their language tags."""
    for extension, tag in EXTENSION_TAGS.items():
        typer.echo(f"{extension:<10} {tag}")


if __name__ == "__main__":
    app()
