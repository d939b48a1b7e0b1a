"""Anthropic (Claude) provider adapter."""

from typing import Any

from sf_cicd.ai.base import ProviderAdapter, usage_counts
from sf_cicd.config import AIProvider, Settings

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class AnthropicAdapter(ProviderAdapter):
    """Calls the Anthropic Messages API. The prompt is the only message."""

    provider = AIProvider.ANTHROPIC
    endpoint = ANTHROPIC_MESSAGES_URL

    def build_payload(self, prompt: str, settings: Settings) -> dict[str, Any]:
        return {
            "model": settings.model,
            "max_tokens": settings.max_tokens,
            "temperature": settings.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

    def build_headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "content-type": "application/json",
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def extract_answer(self, data: dict[str, Any]) -> str:
        blocks = data["content"]
        texts = [block["text"] for block in blocks if block.get("type", "text") == "text"]
        if not texts:
            raise KeyError("text")
        return "".join(texts)

    def extract_usage(self, data: dict[str, Any]) -> tuple[int, int]:
        return usage_counts(data, "input_tokens", "output_tokens")
