"""Provider-agnostic AI client for SF-CICD.

Adapters for Anthropic, OpenAI and Cursor share one call contract; the
retry orchestrator adds bounded exponential backoff on top.
"""

from sf_cicd.ai.base import CallOutcome, Failure, FailureKind, ProviderAdapter, Success
from sf_cicd.ai.anthropic import AnthropicAdapter
from sf_cicd.ai.openai import CursorAdapter, OpenAIAdapter
from sf_cicd.ai.extract import extract_json
from sf_cicd.ai.retry import RetryOrchestrator, RetryState
from sf_cicd.ai.factory import CREDENTIAL_ENV_VARS, create_adapter, credentials_from_env

__all__ = [
    "CallOutcome",
    "Failure",
    "FailureKind",
    "ProviderAdapter",
    "Success",
    "AnthropicAdapter",
    "OpenAIAdapter",
    "CursorAdapter",
    "extract_json",
    "RetryOrchestrator",
    "RetryState",
    "CREDENTIAL_ENV_VARS",
    "create_adapter",
    "credentials_from_env",
]
