"""AI-powered Apex code review."""

from sf_cicd.review.models import (
    FileReview,
    GateStatus,
    ReviewSummary,
    Severity,
    SkippedFile,
    count_severities,
)
from sf_cicd.review.reviewer import ApexReviewer, PromptTemplate, ReviewRun, discover_files

__all__ = [
    "ApexReviewer",
    "PromptTemplate",
    "ReviewRun",
    "discover_files",
    "FileReview",
    "GateStatus",
    "ReviewSummary",
    "Severity",
    "SkippedFile",
    "count_severities",
]
