"""Bounded retry with exponential backoff around a provider adapter."""

from dataclasses import dataclass, replace
from typing import Callable
import json
import logging
import time

from sf_cicd.ai.base import CallOutcome, Failure, FailureKind, ProviderAdapter, Success
from sf_cicd.ai.extract import extract_json
from sf_cicd.config import Settings

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 2.0


@dataclass
class RetryState:
    """Progress of one logical call. Owned by the orchestrator."""

    attempt: int
    max_attempts: int
    delay: float
    base_delay: float

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts


class RetryOrchestrator:
    """Retries an adapter call until it succeeds or the attempt budget runs out.

    auth_error is returned immediately. Every other failure kind is retried,
    sleeping ``base_delay`` before the second attempt and doubling the delay
    after each further failure. Exhaustion returns the last failure as is.

    After each logical call, ``delays`` holds the sleeps that were taken and
    the returned outcome's ``attempts`` holds the number of adapter calls.
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        sleep: Callable[[float], None] = time.sleep,
        max_delay: float | None = None,
        logger: logging.Logger | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            adapter: Provider adapter to invoke
            sleep: Blocking sleep function (injectable for tests)
            max_delay: Optional cap on a single backoff sleep, in seconds
            logger: Logger for attempt/backoff records
        """
        if max_delay is not None and max_delay < 0:
            raise ValueError("max_delay must be >= 0")
        self.adapter = adapter
        self.sleep = sleep
        self.max_delay = max_delay
        self.logger = logger or logging.getLogger("sf_cicd.ai.retry")
        self.delays: list[float] = []

    def call_with_retry(
        self,
        prompt: str,
        settings: Settings,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
    ) -> CallOutcome:
        """Call the adapter with retry; return its answer or the last failure."""
        return self._run(
            lambda: self.adapter.call(prompt, settings),
            max_attempts,
            base_delay,
        )

    def call_json_with_retry(
        self,
        prompt: str,
        settings: Settings,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
    ) -> CallOutcome:
        """Like ``call_with_retry`` but the answer must contain valid JSON.

        A well-formed call whose answer holds no parseable JSON becomes a
        parse_error and is retried with the same backoff. On success,
        ``answer`` is the extracted JSON text and ``data`` the parsed value.
        """

        def attempt() -> CallOutcome:
            outcome = self.adapter.call(prompt, settings)
            if not isinstance(outcome, Success):
                return outcome
            candidate = extract_json(outcome.answer)
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError as e:
                return Failure(
                    kind=FailureKind.PARSE_ERROR,
                    message=f"Could not parse AI response as JSON: {e}",
                    raw=outcome.answer,
                )
            return replace(outcome, answer=candidate, data=data)

        return self._run(attempt, max_attempts, base_delay)

    def _run(
        self,
        attempt_fn: Callable[[], CallOutcome],
        max_attempts: int,
        base_delay: float,
    ) -> CallOutcome:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if base_delay < 0:
            raise ValueError("base_delay must be >= 0")

        state = RetryState(
            attempt=1,
            max_attempts=max_attempts,
            delay=base_delay,
            base_delay=base_delay,
        )
        self.delays = []
        provider = self.adapter.provider.value

        while True:
            self.logger.info(f"Attempt {state.attempt} of {state.max_attempts} ({provider})")
            outcome = replace(attempt_fn(), attempts=state.attempt)

            if isinstance(outcome, Success):
                self.logger.info(f"AI response received after {state.attempt} attempt(s)")
                return outcome

            self.logger.warning(f"AI call failed [{outcome.kind.value}]: {outcome.message}")

            if not outcome.kind.retryable:
                return outcome

            if state.exhausted:
                self.logger.error(f"All {state.max_attempts} retry attempts failed")
                return outcome

            delay = state.delay
            if self.max_delay is not None:
                delay = min(delay, self.max_delay)
            self.logger.info(f"Retrying in {delay:g}s...")
            self.delays.append(delay)
            self.sleep(delay)

            state.delay *= 2
            state.attempt += 1
