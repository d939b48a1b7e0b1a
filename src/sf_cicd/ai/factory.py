"""Factory for creating provider adapters from settings."""

import os
from typing import Mapping

import httpx

from sf_cicd.ai.anthropic import AnthropicAdapter
from sf_cicd.ai.base import DEFAULT_TIMEOUT_SECONDS, ProviderAdapter
from sf_cicd.ai.openai import CursorAdapter, OpenAIAdapter
from sf_cicd.config import AIProvider, DEFAULT_CURSOR_API_URL, Settings

# Environment variable holding each provider's API key
CREDENTIAL_ENV_VARS: dict[AIProvider, str] = {
    AIProvider.ANTHROPIC: "ANTHROPIC_API_KEY",
    AIProvider.OPENAI: "OPENAI_API_KEY",
    AIProvider.CURSOR: "CURSOR_API_KEY",
}

ADAPTER_CLASSES: dict[AIProvider, type[ProviderAdapter]] = {
    AIProvider.ANTHROPIC: AnthropicAdapter,
    AIProvider.OPENAI: OpenAIAdapter,
    AIProvider.CURSOR: CursorAdapter,
}


def credentials_from_env(environ: Mapping[str, str] | None = None) -> dict[AIProvider, str]:
    """Collect provider API keys from the environment."""
    environ = os.environ if environ is None else environ
    credentials = {}
    for provider, env_var in CREDENTIAL_ENV_VARS.items():
        value = environ.get(env_var)
        if value:
            credentials[provider] = value
    return credentials


def create_adapter(
    settings: Settings,
    credentials: Mapping[AIProvider, str],
    cursor_api_url: str = DEFAULT_CURSOR_API_URL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    client: httpx.Client | None = None,
) -> ProviderAdapter:
    """
    Create the adapter for the configured provider.

    Args:
        settings: Resolved settings; only ``provider`` is used here
        credentials: API keys by provider. A missing key is not an error
            here; the adapter reports auth_error on its first call.
        cursor_api_url: Base URL for the Cursor API
        timeout: Per-attempt network timeout in seconds
        client: Optional shared httpx client

    Returns:
        Configured adapter instance
    """
    provider = settings.provider
    api_key = credentials.get(provider)

    if provider == AIProvider.CURSOR:
        return CursorAdapter(
            api_key=api_key,
            base_url=cursor_api_url,
            timeout=timeout,
            client=client,
        )

    adapter_cls = ADAPTER_CLASSES[provider]
    return adapter_cls(api_key=api_key, timeout=timeout, client=client)
