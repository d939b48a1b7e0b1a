"""OpenAI-compatible provider adapters (OpenAI and Cursor)."""

from typing import Any

import httpx

from sf_cicd.ai.base import DEFAULT_TIMEOUT_SECONDS, ProviderAdapter, usage_counts
from sf_cicd.config import AIProvider, DEFAULT_CURSOR_API_URL, Settings

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"

OPENAI_SYSTEM_PROMPT = "You are an expert Salesforce developer and code reviewer."
CURSOR_SYSTEM_PROMPT = (
    "You are an expert Salesforce developer and code reviewer with deep knowledge "
    "of Apex, Lightning Web Components, and Salesforce best practices."
)


class OpenAIAdapter(ProviderAdapter):
    """Calls the OpenAI Chat Completions API with a fixed system message."""

    provider = AIProvider.OPENAI
    endpoint = OPENAI_CHAT_URL
    system_prompt = OPENAI_SYSTEM_PROMPT

    def build_payload(self, prompt: str, settings: Settings) -> dict[str, Any]:
        return {
            "model": settings.model,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": settings.temperature,
            "max_tokens": settings.max_tokens,
        }

    def build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def extract_answer(self, data: dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]

    def extract_usage(self, data: dict[str, Any]) -> tuple[int, int]:
        return usage_counts(data, "prompt_tokens", "completion_tokens")


class CursorAdapter(OpenAIAdapter):
    """Cursor's API speaks the OpenAI chat format at a configurable base URL."""

    provider = AIProvider.CURSOR
    system_prompt = CURSOR_SYSTEM_PROMPT

    def __init__(
        self,
        api_key: str | None,
        base_url: str = DEFAULT_CURSOR_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ):
        super().__init__(api_key=api_key, timeout=timeout, client=client)
        self.base_url = base_url.rstrip("/")
        self.endpoint = f"{self.base_url}/chat/completions"
