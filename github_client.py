"""GitHub API client for PR operations."""

import os
import logging
import functools

import requests
import requests.exceptions
from github import Auth, Github
from github.GithubException import GithubException

from config import validate_repo, with_retry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cached GitHub client
# ---------------------------------------------------------------------------
def _token() -> str:
    token = os.getenv("GITHUB_TOKEN")
    if not token:
        raise ValueError(
            "GITHUB_TOKEN not found. Set it in .env file.\n"
            "Get your token at: https://github.com/settings/tokens"
        )
    return token


@functools.lru_cache(maxsize=1)
def get_github_client() -> Github:
    """Create or return a cached GitHub client."""
    return Github(auth=Auth.Token(_token()))


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------
@with_retry(
    max_retries=3,
    base_delay=1.0,
    retryable=(
        requests.exceptions.ConnectionError,
        requests.exceptions.Timeout,
    ),
)
def fetch_raw_diff(repo: str, pr_number: int) -> str:
    """
    Fetch the raw unified diff for the entire PR.

    PyGithub doesn't expose the raw diff format, so this goes through the
    REST API directly.

    Raises:
        ValueError: If the repo is malformed, the PR is missing or access
            is denied
    """
    repo = validate_repo(repo)
    token = _token()

    url = f"https://api.github.com/repos/{repo}/pulls/{pr_number}"
    headers = {
        "Authorization": f"token {token}",
        "Accept": "application/vnd.github.v3.diff",
    }

    response = requests.get(url, headers=headers, timeout=30)

    if response.status_code == 404:
        raise ValueError(f"PR #{pr_number} not found in {repo}")
    if response.status_code in (401, 403):
        raise ValueError(f"Access denied to {repo} (HTTP {response.status_code})")
    try:
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        raise ValueError(f"GitHub API error: {e}") from e

    logger.debug("Fetched %d bytes of diff for %s#%d", len(response.text), repo, pr_number)
    return response.text


# ---------------------------------------------------------------------------
# Write operations
# ---------------------------------------------------------------------------
def post_pr_comment(
    repo: str, pr_number: int, body: str, marker: str | None = None
) -> int:
    """
    Post the review report as a general PR comment.

    When *marker* is given, an earlier comment whose body starts with it is
    edited in place so re-runs keep a single review on the PR.

    Returns:
        Comment ID

    Raises:
        ValueError: If posting fails
    """
    repo = validate_repo(repo)
    client = get_github_client()

    try:
        repository = client.get_repo(repo)
        pr = repository.get_pull(pr_number)

        if marker:
            for existing in pr.get_issue_comments():
                if (existing.body or "").startswith(marker):
                    existing.edit(body)
                    logger.info("Updated comment %d on PR #%d", existing.id, pr_number)
                    return existing.id

        comment = pr.create_issue_comment(body)
        logger.info("Posted comment %d on PR #%d", comment.id, pr_number)
        return comment.id

    except GithubException as e:
        data = e.data if isinstance(e.data, dict) else {}
        raise ValueError(
            f"Failed to post comment: {data.get('message', str(e))}"
        ) from e
