"""Base classes for AI provider adapters.

Defines the call outcome types and the adapter contract shared by every
provider: one HTTP call per ``call``, normalized to a single answer string.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union
import json
import logging

import httpx

from sf_cicd.config import AIProvider, Settings

logger = logging.getLogger("sf_cicd.ai")

DEFAULT_TIMEOUT_SECONDS = 120.0


class FailureKind(str, Enum):
    """Why an AI call failed."""

    AUTH_ERROR = "auth_error"  # Missing/invalid credential, never retried
    TRANSPORT_ERROR = "transport_error"  # Network failure or unreadable body
    PROVIDER_ERROR = "provider_error"  # The API reported an error
    PARSE_ERROR = "parse_error"  # Answer held no valid JSON

    @property
    def retryable(self) -> bool:
        return self is not FailureKind.AUTH_ERROR


@dataclass(frozen=True)
class Success:
    """A call that produced a normalized answer."""

    answer: str
    attempts: int = 1
    input_tokens: int = 0
    output_tokens: int = 0
    data: Any = None  # Parsed JSON, set by the JSON-aware retry layer

    ok = True


@dataclass(frozen=True)
class Failure:
    """A call that did not produce a usable answer."""

    kind: FailureKind
    message: str
    attempts: int = 1
    status_code: int | None = None
    raw: str = ""  # Model answer kept for diagnostics on parse errors

    ok = False


CallOutcome = Union[Success, Failure]


class ProviderAdapter(ABC):
    """Abstract base class for AI provider adapters.

    Credentials are injected at construction. Subclasses describe the
    request and where the answer lives in the response; the HTTP exchange
    and error classification are shared.
    """

    provider: AIProvider
    endpoint: str = ""

    def __init__(
        self,
        api_key: str | None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ):
        """Initialize the adapter.

        Args:
            api_key: Provider API key; an empty key fails calls with auth_error
            timeout: Per-attempt network timeout in seconds
            client: Optional preconfigured httpx client (for tests/proxies)
        """
        self.api_key = api_key
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.Client:
        """Lazy-create the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "ProviderAdapter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def credential_name(self) -> str:
        return f"{self.provider.value.upper()}_API_KEY"

    @abstractmethod
    def build_payload(self, prompt: str, settings: Settings) -> dict[str, Any]:
        """Build the provider-specific request body."""

    @abstractmethod
    def build_headers(self) -> dict[str, str]:
        """Build request headers carrying the credential."""

    @abstractmethod
    def extract_answer(self, data: dict[str, Any]) -> str:
        """Pull the normalized answer out of a response body.

        Raises:
            KeyError, IndexError, TypeError: the body lacks the answer path
        """

    def extract_usage(self, data: dict[str, Any]) -> tuple[int, int]:
        """Return (input_tokens, output_tokens) reported by the provider."""
        return 0, 0

    def call(self, prompt: str, settings: Settings) -> CallOutcome:
        """Send one request and normalize the response.

        Args:
            prompt: User-turn content
            settings: Resolved settings (already range-checked)

        Returns:
            Success with the answer, or Failure classified by kind
        """
        if not self.api_key:
            return Failure(
                kind=FailureKind.AUTH_ERROR,
                message=f"{self.credential_name} not set",
            )

        logger.debug(f"Calling {self.provider.value} API (model: {settings.model})")

        try:
            response = self.client.post(
                self.endpoint,
                headers=self.build_headers(),
                json=self.build_payload(prompt, settings),
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            return Failure(
                kind=FailureKind.TRANSPORT_ERROR,
                message=f"{type(e).__name__}: {e}",
            )

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return Failure(
                kind=FailureKind.TRANSPORT_ERROR,
                message=f"Unparseable response body (HTTP {response.status_code})",
                status_code=response.status_code,
                raw=response.text[:2000],
            )

        if isinstance(data, dict) and data.get("error"):
            return Failure(
                kind=FailureKind.PROVIDER_ERROR,
                message=_error_message(data["error"]),
                status_code=response.status_code,
            )

        if response.is_error:
            return Failure(
                kind=FailureKind.PROVIDER_ERROR,
                message=f"HTTP {response.status_code} from {self.provider.value}",
                status_code=response.status_code,
            )

        try:
            answer = self.extract_answer(data)
            input_tokens, output_tokens = self.extract_usage(data)
        except (KeyError, IndexError, TypeError, AttributeError):
            return Failure(
                kind=FailureKind.TRANSPORT_ERROR,
                message="Response did not contain an answer",
                status_code=response.status_code,
                raw=response.text[:2000],
            )

        if not isinstance(answer, str):
            return Failure(
                kind=FailureKind.TRANSPORT_ERROR,
                message="Response answer was not text",
                status_code=response.status_code,
            )

        return Success(
            answer=answer,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )


def usage_counts(data: dict[str, Any], input_key: str, output_key: str) -> tuple[int, int]:
    """Read token counts from a response's ``usage`` object.

    Usage is informational, so a missing or malformed object (or count)
    reads as 0 rather than failing an otherwise good answer.
    """
    usage = data.get("usage")
    if not isinstance(usage, dict):
        return 0, 0

    def count(key: str) -> int:
        value = usage.get(key)
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            return value
        return 0

    return count(input_key), count(output_key)


def _error_message(error: Any) -> str:
    """The provider's error message, verbatim."""
    if isinstance(error, dict):
        message = error.get("message")
        if message:
            return str(message)
        return json.dumps(error)
    return str(error)
