"""Tests for the GitHub client (network calls are monkeypatched)."""

from types import SimpleNamespace

import pytest
import requests

import config
import github_client
from github_client import fetch_raw_diff, post_pr_comment


class _Response:
    def __init__(self, status_code: int, text: str = ""):
        self.status_code = status_code
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")


@pytest.fixture(autouse=True)
def _token(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "test-token")
    monkeypatch.setattr(config.time, "sleep", lambda _: None)


def test_fetch_raw_diff_sends_diff_accept_header(monkeypatch):
    seen = {}

    def fake_get(url, headers, timeout):
        seen.update(url=url, headers=headers)
        return _Response(200, "diff --git a/x b/x\n")

    monkeypatch.setattr(github_client.requests, "get", fake_get)

    assert fetch_raw_diff("acme/shop", 12) == "diff --git a/x b/x\n"
    assert seen["url"] == "https://api.github.com/repos/acme/shop/pulls/12"
    assert seen["headers"]["Accept"] == "application/vnd.github.v3.diff"
    assert seen["headers"]["Authorization"] == "token test-token"


@pytest.mark.parametrize("status", [404, 403, 500])
def test_fetch_raw_diff_errors_become_value_errors(monkeypatch, status):
    monkeypatch.setattr(github_client.requests, "get", lambda *a, **k: _Response(status))
    with pytest.raises(ValueError):
        fetch_raw_diff("acme/shop", 12)


def test_fetch_raw_diff_retries_connection_errors(monkeypatch):
    attempts = []

    def flaky_get(*args, **kwargs):
        attempts.append(1)
        if len(attempts) < 3:
            raise requests.exceptions.ConnectionError("reset")
        return _Response(200, "ok")

    monkeypatch.setattr(github_client.requests, "get", flaky_get)

    assert fetch_raw_diff("acme/shop", 1) == "ok"
    assert len(attempts) == 3


def test_fetch_raw_diff_validates_input(monkeypatch):
    with pytest.raises(ValueError):
        fetch_raw_diff("not-a-repo", 1)

    monkeypatch.delenv("GITHUB_TOKEN")
    with pytest.raises(ValueError, match="GITHUB_TOKEN"):
        fetch_raw_diff("acme/shop", 1)


def test_post_pr_comment(monkeypatch):
    posted = []

    def create_issue_comment(body):
        posted.append(body)
        return SimpleNamespace(id=99)

    pull = SimpleNamespace(create_issue_comment=create_issue_comment)
    repository = SimpleNamespace(get_pull=lambda number: pull)
    client = SimpleNamespace(get_repo=lambda name: repository)
    monkeypatch.setattr(github_client, "get_github_client", lambda: client)

    assert post_pr_comment("acme/shop", 5, "report") == 99
    assert posted == ["report"]


def test_post_pr_comment_updates_marked_comment(monkeypatch):
    edited = []
    old = SimpleNamespace(
        id=7,
        body="<!-- Automated review for PR #5 -->\nold report",
        edit=lambda body: edited.append(body),
    )
    other = SimpleNamespace(id=3, body="LGTM", edit=None)

    def create_issue_comment(body):
        raise AssertionError("should not create a new comment")

    pull = SimpleNamespace(
        get_issue_comments=lambda: [other, old],
        create_issue_comment=create_issue_comment,
    )
    repository = SimpleNamespace(get_pull=lambda number: pull)
    client = SimpleNamespace(get_repo=lambda name: repository)
    monkeypatch.setattr(github_client, "get_github_client", lambda: client)

    comment_id = post_pr_comment(
        "acme/shop", 5, "new report", marker="<!-- Automated review for PR #5 -->"
    )

    assert comment_id == 7
    assert edited == ["new report"]
