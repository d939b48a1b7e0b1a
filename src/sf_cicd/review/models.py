"""Result structures for the AI Apex review."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any


class Severity(str, Enum):
    """Issue severities reported by the review prompt."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class GateStatus(str, Enum):
    """Pipeline decision derived from the review summary."""

    PASSED = "passed"
    WARNING = "warning"  # Too many high-severity issues; not blocking
    BLOCKED = "blocked"  # Critical issues found


def count_severities(review: dict[str, Any]) -> dict[Severity, int]:
    """Count a review's issues per severity. Malformed issues are ignored."""
    counts = {severity: 0 for severity in Severity}
    issues = review.get("issues")
    if not isinstance(issues, list):
        return counts
    for issue in issues:
        if not isinstance(issue, dict):
            continue
        try:
            counts[Severity(str(issue.get("severity", "")).lower())] += 1
        except ValueError:
            continue
    return counts


@dataclass
class FileReview:
    """Parsed AI verdict for one Apex file."""

    file_path: str
    review: dict[str, Any]
    attempts: int = 1
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def score(self) -> Any:
        return self.review.get("overall_score")

    @property
    def severity_counts(self) -> dict[Severity, int]:
        return count_severities(self.review)

    def to_dict(self) -> dict[str, Any]:
        """The AI's JSON object with the reviewed file path added."""
        return {**self.review, "file_path": self.file_path}


@dataclass
class SkippedFile:
    """A file that produced no review, and why."""

    file_path: str
    reason: str
    raw_response_path: Path | None = None


@dataclass
class ReviewSummary:
    """Totals across all reviewed files."""

    files_reviewed: int = 0
    average_score: float = 0.0
    severity_counts: dict[Severity, int] = field(
        default_factory=lambda: {severity: 0 for severity in Severity}
    )
    skipped: list[SkippedFile] = field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0
    estimated_cost_usd: Decimal = Decimal(0)
    high_issue_warning_threshold: int = 5

    @classmethod
    def from_reviews(
        cls,
        reviews: list[FileReview],
        skipped: list[SkippedFile] | None = None,
        high_issue_warning_threshold: int = 5,
    ) -> "ReviewSummary":
        summary = cls(
            files_reviewed=len(reviews),
            skipped=list(skipped or []),
            high_issue_warning_threshold=high_issue_warning_threshold,
        )
        scores = []
        for review in reviews:
            for severity, count in review.severity_counts.items():
                summary.severity_counts[severity] += count
            score = review.score
            is_number = isinstance(score, (int, float)) and not isinstance(score, bool)
            scores.append(float(score) if is_number else 0.0)
            summary.input_tokens += review.input_tokens
            summary.output_tokens += review.output_tokens
        if scores:
            summary.average_score = sum(scores) / len(scores)
        return summary

    @property
    def critical(self) -> int:
        return self.severity_counts[Severity.CRITICAL]

    @property
    def high(self) -> int:
        return self.severity_counts[Severity.HIGH]

    @property
    def gate(self) -> GateStatus:
        if self.critical > 0:
            return GateStatus.BLOCKED
        if self.high > self.high_issue_warning_threshold:
            return GateStatus.WARNING
        return GateStatus.PASSED

    @property
    def exit_code(self) -> int:
        return 1 if self.gate is GateStatus.BLOCKED else 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "files_reviewed": self.files_reviewed,
            "average_score": self.average_score,
            "issues": {s.value: c for s, c in self.severity_counts.items()},
            "skipped": [s.file_path for s in self.skipped],
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "estimated_cost_usd": str(self.estimated_cost_usd),
            "gate": self.gate.value,
        }
