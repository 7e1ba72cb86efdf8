"""Shared configuration and utilities for RuleLens."""

import functools
import logging
import os
import re
import time
from collections.abc import Mapping
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

# ---------------------------------------------------------------------------
# Environment & logging (initialised once on first import)
# ---------------------------------------------------------------------------
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
ENV_PREFIX = "RULELENS_"

DEFAULT_IGNORE_DIRS: frozenset[str] = frozenset(
    {"node_modules", "vendor", "tmp", "log", "public", "dist", "coverage", ".git"}
)

# Repo format: "owner/repo"
_REPO_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")


# ---------------------------------------------------------------------------
# Review configuration
# ---------------------------------------------------------------------------
class Config(BaseModel):
    """Thresholds and ignore rules for one review run."""

    max_line_length: int = Field(default=100, ge=1)
    max_method_length: int = Field(default=25, ge=1)
    max_file_size: int = Field(default=300, ge=1)
    complexity_threshold: int = Field(default=10, ge=1)
    display_limit: int = Field(default=5, ge=0)
    ignore_dirs: frozenset[str] = DEFAULT_IGNORE_DIRS
    ignore_files: frozenset[str] = frozenset()

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "Config":
        """Build a Config from a partial mapping.

        Missing keys take their defaults. A value that fails validation is
        dropped (with a warning) so the default applies instead of failing
        the whole run.
        """
        accepted: dict[str, Any] = {}
        for name, value in values.items():
            if value is None:
                continue
            if name not in cls.model_fields:
                logger.warning("Ignoring unknown config key %r", name)
                continue
            try:
                cls.model_validate({**accepted, name: value})
            except ValidationError as e:
                logger.warning(
                    "Invalid value %r for %s, using default: %s",
                    value,
                    name,
                    e.errors()[0]["msg"],
                )
                continue
            accepted[name] = value
        return cls.model_validate(accepted)


def _split_list(raw: str) -> frozenset[str]:
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def _env_values() -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name, field in Config.model_fields.items():
        raw = os.getenv(ENV_PREFIX + name.upper())
        if raw is None or not raw.strip():
            continue
        if field.annotation is int:
            try:
                values[name] = int(raw)
            except ValueError:
                logger.warning(
                    "%s%s=%r is not an integer, using default",
                    ENV_PREFIX,
                    name.upper(),
                    raw,
                )
        else:
            values[name] = _split_list(raw)
    return values


def load_config(**overrides: Any) -> Config:
    """Return a Config from the environment (and ``.env``) plus overrides.

    Overrides set to ``None`` are ignored so CLI options left unset fall
    through to the environment, then to the defaults.
    """
    values = _env_values()
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Config.from_mapping(values)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------
def validate_repo(repo: str) -> str:
    """Validate repository string matches 'owner/repo' format.

    Returns *repo* unchanged on success; raises ``ValueError`` otherwise.
    """
    if not _REPO_PATTERN.match(repo):
        raise ValueError(
            f"Invalid repo format: {repo!r}. Expected 'owner/repo' "
            f"(e.g. 'rails/rails')."
        )
    return repo


# ---------------------------------------------------------------------------
# Retry decorator
# ---------------------------------------------------------------------------
def with_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    retryable: tuple[type[Exception], ...] = (Exception,),
):
    """Decorator: retry a function with exponential back-off."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            last_exc: Exception | None = None
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except retryable as exc:
                    last_exc = exc
                    if attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            "Attempt %d/%d for %s failed: %s. Retrying in %.1fs...",
                            attempt + 1,
                            max_retries,
                            func.__name__,
                            exc,
                            delay,
                        )
                        time.sleep(delay)
            raise last_exc  # type: ignore[misc]

        return wrapper

    return decorator
