"""AI-powered Apex code review.

Sends each Apex class to the configured AI provider with a prompt template,
collects the JSON verdicts, and summarises issue severities so the pipeline
can block on critical findings.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from sf_cicd.ai import Failure, FailureKind, RetryOrchestrator, Success
from sf_cicd.config import ReviewConfig, Settings
from sf_cicd.costs import CostTracker, estimate_tokens
from sf_cicd.errors import ReviewError
from sf_cicd.logging import get_logger
from sf_cicd.review.models import FileReview, ReviewSummary, Severity, SkippedFile

console = Console()
logger = logging.getLogger("sf_cicd.review")

APEX_CLASS_SUFFIX = ".cls"


class PromptTemplate:
    """A review prompt with ``{PLACEHOLDER}`` slots.

    Substitution is literal so the JSON examples in the template keep their
    braces.
    """

    PLACEHOLDERS = (
        "CODE_CONTENT",
        "FILE_NAME",
        "API_VERSION",
        "ORG_TYPE",
        "RELATED_FILES",
        "PR_DESCRIPTION",
        "PREVIOUS_ISSUES",
    )

    def __init__(self, text: str):
        self.text = text

    @classmethod
    def from_file(cls, path: Path) -> "PromptTemplate":
        if not path.is_file():
            raise ReviewError(f"Prompt template not found: {path}")
        return cls(path.read_text())

    def render(self, **values: str) -> str:
        prompt = self.text
        for name in self.PLACEHOLDERS:
            prompt = prompt.replace(f"{{{name}}}", values.get(name, ""))
        return prompt


def discover_files(input_path: Path) -> list[Path]:
    """Resolve the files to review.

    Args:
        input_path: A file listing one path per line, or a directory that is
            searched recursively for Apex classes

    Returns:
        Paths in review order

    Raises:
        ReviewError: The input is missing or the file list cannot be read
    """
    if input_path.is_file():
        try:
            lines = input_path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise ReviewError(f"Could not read file list '{input_path}': {e}") from e
        return [Path(line.strip()) for line in lines if line.strip()]

    if input_path.is_dir():
        return sorted(input_path.rglob(f"*{APEX_CLASS_SUFFIX}"))

    raise ReviewError(f"Input '{input_path}' is neither a file nor directory")


@dataclass
class ReviewRun:
    """Everything produced by one review run."""

    reviews: list[FileReview] = field(default_factory=list)
    summary: ReviewSummary = field(default_factory=ReviewSummary)
    output_file: Path | None = None


class ApexReviewer:
    """Reviews Apex files one at a time through a retrying AI client."""

    def __init__(
        self,
        orchestrator: RetryOrchestrator,
        settings: Settings,
        config: ReviewConfig | None = None,
    ):
        """Initialize the reviewer.

        Args:
            orchestrator: Retrying client bound to the configured provider
            settings: AI settings for every call in this run
            config: Review options (template, output, retry budget)
        """
        self.orchestrator = orchestrator
        self.settings = settings
        self.config = config or ReviewConfig()
        self.costs = CostTracker(provider=settings.provider, model=settings.model)

    def run(self, input_path: Path) -> ReviewRun:
        """Review every file named by ``input_path`` and write the results."""
        files = discover_files(input_path)
        run = ReviewRun(output_file=self.config.output_file)

        if not files:
            console.print("[yellow]⚠ No Apex files found to review[/yellow]")
            self._write_results([])
            run.summary = ReviewSummary(
                high_issue_warning_threshold=self.config.high_issue_warning_threshold
            )
            return run

        console.print(f"Files to review: {len(files)}\n")
        template = PromptTemplate.from_file(self.config.template_path)

        skipped: list[SkippedFile] = []
        for path in files:
            outcome = self.review_file(path, template)
            if isinstance(outcome, FileReview):
                run.reviews.append(outcome)
            else:
                skipped.append(outcome)

        self._write_results([review.to_dict() for review in run.reviews])

        run.summary = ReviewSummary.from_reviews(
            run.reviews,
            skipped=skipped,
            high_issue_warning_threshold=self.config.high_issue_warning_threshold,
        )
        run.summary.estimated_cost_usd = self.costs.total_usd
        return run

    def build_prompt(self, template: PromptTemplate, path: Path, code: str) -> str:
        return template.render(
            CODE_CONTENT=code,
            FILE_NAME=path.name,
            API_VERSION=self.config.api_version,
            ORG_TYPE=self.config.org_type,
        )

    def review_file(self, path: Path, template: PromptTemplate) -> FileReview | SkippedFile:
        """Review one file. Returns a SkippedFile when no verdict was obtained."""
        console.print(f"[blue]→ Reviewing: {path}[/blue]")

        if not path.is_file():
            console.print("[yellow]  ⚠ File not found, skipping[/yellow]")
            return SkippedFile(file_path=str(path), reason="file not found")

        try:
            code = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            console.print(f"[yellow]  ⚠ Could not read file, skipping: {e}[/yellow]")
            logger.warning(f"Skipping unreadable file {path}: {e}")
            return SkippedFile(file_path=str(path), reason="unreadable")

        prompt = self.build_prompt(template, path, code)

        outcome = self.orchestrator.call_json_with_retry(
            prompt,
            self.settings,
            max_attempts=self.config.max_attempts,
            base_delay=self.config.base_delay,
        )

        if isinstance(outcome, Failure):
            return self._skip(path, outcome)

        if not isinstance(outcome.data, dict):
            console.print("[yellow]  ⚠ AI response JSON is not an object[/yellow]")
            return SkippedFile(file_path=str(path), reason="response is not a JSON object")

        input_tokens, output_tokens = self._usage(prompt, outcome)
        self.costs.add(input_tokens, output_tokens)

        review = FileReview(
            file_path=str(path),
            review=outcome.data,
            attempts=outcome.attempts,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
        counts = review.severity_counts
        score = review.score if review.score is not None else "N/A"

        console.print("[green]  ✓ Review complete[/green]")
        console.print(f"    Score: {score}/10")
        console.print(
            f"    Issues: Critical={counts[Severity.CRITICAL]}, "
            f"High={counts[Severity.HIGH]}, Medium={counts[Severity.MEDIUM]}"
        )
        run_logger = get_logger()
        if run_logger:
            run_logger.file_review(str(path), score, {s.value: c for s, c in counts.items()})
        else:
            logger.info(f"Reviewed {path}: score={score} attempts={outcome.attempts}")
        return review

    def _skip(self, path: Path, failure: Failure) -> SkippedFile:
        if failure.kind is FailureKind.PARSE_ERROR:
            console.print("[yellow]  ⚠ Could not parse AI response as JSON[/yellow]")
            raw_path = self.config.raw_output_dir / f"review_{path.name}.txt"
            raw_path.parent.mkdir(parents=True, exist_ok=True)
            raw_path.write_text(failure.raw)
            console.print(f"  Raw response saved to: {raw_path}")
            return SkippedFile(
                file_path=str(path),
                reason=failure.kind.value,
                raw_response_path=raw_path,
            )

        console.print(f"[red]  ✗ Failed to get AI response ({failure.kind.value}): {failure.message}[/red]")
        logger.error(f"Review of {path} failed after {failure.attempts} attempt(s): {failure.message}")
        return SkippedFile(file_path=str(path), reason=failure.kind.value)

    def _usage(self, prompt: str, outcome: Success) -> tuple[int, int]:
        """Token usage as reported, estimated from text when missing."""
        input_tokens = outcome.input_tokens or estimate_tokens(prompt)
        output_tokens = outcome.output_tokens or estimate_tokens(outcome.answer)
        return input_tokens, output_tokens

    def _write_results(self, results: list[dict]) -> None:
        output = self.config.output_file
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(results, indent=2) + "\n")
