"""Tests for the retry orchestrator."""

import pytest

from sf_cicd.ai import Failure, FailureKind, RetryOrchestrator, Success


def transport_failure(message="connection reset"):
    return Failure(kind=FailureKind.TRANSPORT_ERROR, message=message)


class TestCallWithRetry:
    """Tests for call_with_retry."""

    def test_always_failing_adapter_exhausts_attempts(self, make_stub, settings, sleeps):
        """Test three transport failures mean three calls and two backoffs."""
        adapter = make_stub([transport_failure()])
        orchestrator = RetryOrchestrator(adapter, sleep=sleeps.append)

        outcome = orchestrator.call_with_retry("prompt", settings, max_attempts=3, base_delay=2.0)

        assert adapter.call_count == 3
        assert isinstance(outcome, Failure)
        assert outcome.kind == FailureKind.TRANSPORT_ERROR
        assert outcome.attempts == 3
        assert sleeps == [2.0, 4.0]
        assert orchestrator.delays == [2.0, 4.0]

    def test_auth_error_is_not_retried(self, make_stub, settings, sleeps):
        """Test auth errors return after a single call."""
        adapter = make_stub([Failure(kind=FailureKind.AUTH_ERROR, message="ANTHROPIC_API_KEY not set")])
        orchestrator = RetryOrchestrator(adapter, sleep=sleeps.append)

        outcome = orchestrator.call_with_retry("prompt", settings, max_attempts=5, base_delay=1.0)

        assert adapter.call_count == 1
        assert outcome.kind == FailureKind.AUTH_ERROR
        assert outcome.attempts == 1
        assert sleeps == []

    def test_fail_once_then_succeed(self, make_stub, settings, sleeps):
        """Test a transient failure followed by success."""
        adapter = make_stub([
            Failure(kind=FailureKind.PROVIDER_ERROR, message="Overloaded", status_code=529),
            Success(answer="all good", input_tokens=10, output_tokens=3),
        ])
        orchestrator = RetryOrchestrator(adapter, sleep=sleeps.append)

        outcome = orchestrator.call_with_retry("prompt", settings, max_attempts=3, base_delay=0.5)

        assert adapter.call_count == 2
        assert isinstance(outcome, Success)
        assert outcome.answer == "all good"
        assert outcome.attempts == 2
        assert outcome.input_tokens == 10
        assert sleeps == [0.5]

    def test_immediate_success_does_not_sleep(self, make_stub, settings, sleeps):
        """Test success on the first attempt."""
        adapter = make_stub([Success(answer="hi")])
        orchestrator = RetryOrchestrator(adapter, sleep=sleeps.append)

        outcome = orchestrator.call_with_retry("prompt", settings)

        assert outcome.ok
        assert outcome.attempts == 1
        assert sleeps == []

    def test_last_failure_surfaces_unchanged(self, make_stub, settings, sleeps):
        """Test exhaustion returns the last failure's kind and message."""
        adapter = make_stub([
            transport_failure("timeout"),
            Failure(kind=FailureKind.PROVIDER_ERROR, message="Rate limit exceeded", status_code=429),
        ])
        orchestrator = RetryOrchestrator(adapter, sleep=sleeps.append)

        outcome = orchestrator.call_with_retry("prompt", settings, max_attempts=2, base_delay=1.0)

        assert outcome.kind == FailureKind.PROVIDER_ERROR
        assert outcome.message == "Rate limit exceeded"
        assert outcome.status_code == 429

    def test_single_attempt_never_sleeps(self, make_stub, settings, sleeps):
        """Test max_attempts=1 disables retry."""
        adapter = make_stub([transport_failure()])
        orchestrator = RetryOrchestrator(adapter, sleep=sleeps.append)

        outcome = orchestrator.call_with_retry("prompt", settings, max_attempts=1, base_delay=3.0)

        assert adapter.call_count == 1
        assert outcome.attempts == 1
        assert sleeps == []

    def test_max_delay_caps_backoff(self, make_stub, settings, sleeps):
        """Test the optional cap on a single sleep."""
        adapter = make_stub([transport_failure()])
        orchestrator = RetryOrchestrator(adapter, sleep=sleeps.append, max_delay=5.0)

        orchestrator.call_with_retry("prompt", settings, max_attempts=5, base_delay=2.0)

        assert sleeps == [2.0, 4.0, 5.0, 5.0]

    def test_invalid_budget_rejected(self, make_stub, settings):
        """Test invalid retry parameters."""
        orchestrator = RetryOrchestrator(make_stub([Success(answer="x")]))

        with pytest.raises(ValueError):
            orchestrator.call_with_retry("prompt", settings, max_attempts=0)
        with pytest.raises(ValueError):
            orchestrator.call_with_retry("prompt", settings, base_delay=-1)

    def test_attempts_are_logged(self, make_stub, settings, sleeps, caplog):
        """Test each attempt and backoff is logged."""
        adapter = make_stub([transport_failure(), Success(answer="ok")])
        orchestrator = RetryOrchestrator(adapter, sleep=sleeps.append)

        with caplog.at_level("INFO", logger="sf_cicd.ai.retry"):
            orchestrator.call_with_retry("prompt", settings, max_attempts=3, base_delay=2.0)

        messages = [record.getMessage() for record in caplog.records]
        assert any("Attempt 1 of 3" in m for m in messages)
        assert any("Attempt 2 of 3" in m for m in messages)
        assert any("Retrying in 2s" in m for m in messages)


class TestCallJsonWithRetry:
    """Tests for call_json_with_retry."""

    def test_parses_json_answer(self, make_stub, settings, sleeps):
        """Test the extracted JSON is parsed into data."""
        adapter = make_stub([Success(answer='Sure!\n```json\n{"overall_score": 9}\n```')])
        orchestrator = RetryOrchestrator(adapter, sleep=sleeps.append)

        outcome = orchestrator.call_json_with_retry("prompt", settings)

        assert isinstance(outcome, Success)
        assert outcome.answer == '{"overall_score": 9}'
        assert outcome.data == {"overall_score": 9}

    def test_parse_error_is_retried(self, make_stub, settings, sleeps):
        """Test a non-JSON answer is retried with backoff."""
        adapter = make_stub([
            Success(answer="I cannot produce JSON today"),
            Success(answer='{"overall_score": 6, "issues": []}'),
        ])
        orchestrator = RetryOrchestrator(adapter, sleep=sleeps.append)

        outcome = orchestrator.call_json_with_retry("prompt", settings, max_attempts=3, base_delay=1.0)

        assert adapter.call_count == 2
        assert outcome.data == {"overall_score": 6, "issues": []}
        assert sleeps == [1.0]

    def test_parse_error_after_exhaustion_keeps_raw_answer(self, make_stub, settings, sleeps):
        """Test the final parse failure carries the model's answer."""
        adapter = make_stub([Success(answer="score: {high")])
        orchestrator = RetryOrchestrator(adapter, sleep=sleeps.append)

        outcome = orchestrator.call_json_with_retry("prompt", settings, max_attempts=2, base_delay=1.0)

        assert isinstance(outcome, Failure)
        assert outcome.kind == FailureKind.PARSE_ERROR
        assert outcome.raw == "score: {high"
        assert outcome.attempts == 2
        assert adapter.call_count == 2

    def test_auth_error_passes_through(self, make_stub, settings, sleeps):
        """Test adapter failures are not turned into parse errors."""
        adapter = make_stub([Failure(kind=FailureKind.AUTH_ERROR, message="missing key")])
        orchestrator = RetryOrchestrator(adapter, sleep=sleeps.append)

        outcome = orchestrator.call_json_with_retry("prompt", settings)

        assert outcome.kind == FailureKind.AUTH_ERROR
        assert adapter.call_count == 1
