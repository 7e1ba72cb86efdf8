"""Data models for code review findings."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Severity = Literal["critical", "warning", "suggestion"]
Category = Literal[
    "security",
    "performance",
    "clean_code",
    "accessibility",
    "maintainability",
    "best_practice",
    "style",
    "naming",
    "structural",
]

SEVERITY_ORDER: dict[str, int] = {
    "critical": 0,
    "warning": 1,
    "suggestion": 2,
}

CATEGORY_ORDER: tuple[str, ...] = (
    "security",
    "performance",
    "clean_code",
    "accessibility",
    "maintainability",
    "best_practice",
    "style",
    "naming",
    "structural",
)


class Finding(BaseModel):
    """A single review finding."""

    model_config = ConfigDict(frozen=True)

    file: str = Field(description="File path as given to the reviewer")
    line: int | None = Field(
        default=None, ge=1, description="1-based line number, None for file-level"
    )
    category: Category = Field(description="Which family of concern this is")
    severity: Severity = Field(description="critical, warning, suggestion")
    message: str = Field(min_length=1, description="What the issue is")
    suggestion: str = Field(default="", description="How to address it")

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value

    @property
    def key(self) -> tuple[str, int | None, str]:
        """Identity used for deduplication."""
        return (self.file, self.line, self.message)


@dataclass(frozen=True)
class Block:
    """An approximate method/function body span."""

    name: str
    start_line: int
    end_line: int
    body: str

    def __post_init__(self) -> None:
        if self.start_line < 1 or self.end_line < self.start_line:
            raise ValueError(
                f"Invalid block span {self.start_line}-{self.end_line} for {self.name!r}"
            )

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


def _zero_counts() -> dict[str, int]:
    return {severity: 0 for severity in SEVERITY_ORDER}


class ReviewResult(BaseModel):
    """Aggregated, deduplicated outcome of one review run."""

    model_config = ConfigDict(frozen=True)

    findings_by_category: dict[Category, tuple[Finding, ...]] = Field(
        default_factory=dict
    )
    counts_by_severity: dict[Severity, int] = Field(default_factory=_zero_counts)
    positives: tuple[str, ...] = Field(
        default=(), description="Encouraging observations, not counted as findings"
    )

    @classmethod
    def empty(cls) -> "ReviewResult":
        return cls()

    @property
    def total(self) -> int:
        return sum(self.counts_by_severity.values())

    @property
    def is_failing(self) -> bool:
        return self.counts_by_severity.get("critical", 0) > 0

    def all_findings(self) -> list[Finding]:
        """Every finding, in category order then bucket order."""
        ordered: list[Finding] = []
        for category in CATEGORY_ORDER:
            ordered.extend(self.findings_by_category.get(category, ()))
        return ordered

    def by_severity(self, severity: str) -> list[Finding]:
        return [f for f in self.all_findings() if f.severity == severity]
