"""Tests for configuration loading and shared helpers."""

import pytest

import config
from config import DEFAULT_IGNORE_DIRS, Config, load_config, validate_repo, with_retry


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in Config.model_fields:
        monkeypatch.delenv(config.ENV_PREFIX + name.upper(), raising=False)


def test_defaults():
    cfg = Config()
    assert cfg.max_line_length == 100
    assert cfg.max_method_length == 25
    assert cfg.max_file_size == 300
    assert cfg.complexity_threshold == 10
    assert cfg.display_limit == 5
    assert cfg.ignore_dirs == DEFAULT_IGNORE_DIRS
    assert "node_modules" in cfg.ignore_dirs
    assert cfg.ignore_files == frozenset()


def test_from_mapping_keeps_valid_and_defaults_the_rest():
    cfg = Config.from_mapping({"max_line_length": 120, "max_file_size": 0, "bogus": 1})
    assert cfg.max_line_length == 120
    assert cfg.max_file_size == 300


def test_from_mapping_skips_none():
    assert Config.from_mapping({"max_method_length": None}).max_method_length == 25


def test_load_config_reads_environment(monkeypatch):
    monkeypatch.setenv("RULELENS_MAX_LINE_LENGTH", "80")
    monkeypatch.setenv("RULELENS_IGNORE_FILES", "schema.rb, routes.rb")
    cfg = load_config()
    assert cfg.max_line_length == 80
    assert cfg.ignore_files == frozenset({"schema.rb", "routes.rb"})


def test_load_config_invalid_environment_falls_back(monkeypatch):
    monkeypatch.setenv("RULELENS_MAX_METHOD_LENGTH", "lots")
    monkeypatch.setenv("RULELENS_COMPLEXITY_THRESHOLD", "-3")
    cfg = load_config()
    assert cfg.max_method_length == 25
    assert cfg.complexity_threshold == 10


def test_overrides_win_over_environment(monkeypatch):
    monkeypatch.setenv("RULELENS_MAX_FILE_SIZE", "500")
    assert load_config(max_file_size=50).max_file_size == 50
    assert load_config(max_file_size=None).max_file_size == 500


def test_validate_repo():
    assert validate_repo("rails/rails") == "rails/rails"
    with pytest.raises(ValueError):
        validate_repo("not a repo")


def test_with_retry_retries_then_succeeds(monkeypatch):
    monkeypatch.setattr(config.time, "sleep", lambda _: None)
    calls = []

    @with_retry(max_retries=3, retryable=(ConnectionError,))
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("down")
        return "ok"

    assert flaky() == "ok"
    assert len(calls) == 3


def test_with_retry_does_not_retry_other_errors(monkeypatch):
    monkeypatch.setattr(config.time, "sleep", lambda _: None)
    calls = []

    @with_retry(max_retries=3, retryable=(ConnectionError,))
    def broken():
        calls.append(1)
        raise KeyError("nope")

    with pytest.raises(KeyError):
        broken()
    assert len(calls) == 1
