"""Cost estimation for AI provider usage.

Prices are USD per 1M tokens. Amounts are ``Decimal`` so sub-cent costs
survive summation across many reviewed files.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sf_cicd.config import AIProvider, parse_provider

COST_PRECISION = Decimal("0.000001")
TOKENS_PER_MILLION = Decimal(1_000_000)


@dataclass(frozen=True)
class PriceEntry:
    """Price of a model family (per 1M tokens).

    A ``model_pattern`` ending in ``*`` matches by prefix, otherwise the
    model name must match exactly.
    """

    provider: AIProvider
    model_pattern: str
    input_cost_per_million: Decimal
    output_cost_per_million: Decimal

    def matches(self, provider: AIProvider, model: str) -> bool:
        if provider != self.provider:
            return False
        if self.model_pattern.endswith("*"):
            return model.startswith(self.model_pattern[:-1])
        return model == self.model_pattern


PRICE_TABLE: tuple[PriceEntry, ...] = (
    # Anthropic
    PriceEntry(AIProvider.ANTHROPIC, "claude-3-5-sonnet*", Decimal("3"), Decimal("15")),
    PriceEntry(AIProvider.ANTHROPIC, "claude-3-haiku*", Decimal("0.80"), Decimal("4")),
    PriceEntry(AIProvider.ANTHROPIC, "claude-sonnet-4*", Decimal("3"), Decimal("15")),
    PriceEntry(AIProvider.ANTHROPIC, "claude-opus-4*", Decimal("15"), Decimal("75")),
    # OpenAI
    PriceEntry(AIProvider.OPENAI, "gpt-4o", Decimal("2.50"), Decimal("10")),
    PriceEntry(AIProvider.OPENAI, "gpt-4o-mini", Decimal("0.15"), Decimal("0.60")),
    PriceEntry(AIProvider.OPENAI, "gpt-4-turbo*", Decimal("10"), Decimal("30")),
)


def find_price(provider: AIProvider | str, model: str) -> PriceEntry | None:
    """Return the first price entry matching provider and model."""
    try:
        provider = parse_provider(provider)
    except ValueError:
        return None
    for entry in PRICE_TABLE:
        if entry.matches(provider, model):
            return entry
    return None


def estimate_cost(
    provider: AIProvider | str,
    model: str,
    input_tokens: int,
    output_tokens: int,
) -> Decimal:
    """Estimate cost in USD. Unknown models cost 0."""
    entry = find_price(provider, model)
    if entry is None:
        input_cost = output_cost = Decimal(0)
    else:
        input_cost = entry.input_cost_per_million
        output_cost = entry.output_cost_per_million

    total = (Decimal(input_tokens) * input_cost + Decimal(output_tokens) * output_cost) / TOKENS_PER_MILLION
    return total.quantize(COST_PRECISION)


def estimate_tokens(text: str) -> int:
    """Estimate token count from text (rough: 4 chars per token)."""
    return len(text) // 4


@dataclass
class CostTracker:
    """Accumulates token usage and cost for one provider/model pair."""

    provider: AIProvider
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    calls: int = 0
    _entries: list[Decimal] = field(default_factory=list, repr=False)

    def add(self, input_tokens: int, output_tokens: int) -> Decimal:
        """Record one call and return its cost."""
        cost = estimate_cost(self.provider, self.model, input_tokens, output_tokens)
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens
        self.calls += 1
        self._entries.append(cost)
        return cost

    @property
    def total_usd(self) -> Decimal:
        return sum(self._entries, Decimal(0))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "provider": self.provider.value,
            "model": self.model,
            "calls": self.calls,
            "total_input_tokens": self.input_tokens,
            "total_output_tokens": self.output_tokens,
            "total_usd": str(self.total_usd),
        }
