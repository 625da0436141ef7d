"""Per-model token prices for reporting the cost of hint selection."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ModelPricing:
    """USD per million tokens."""

    input_per_million: float
    output_per_million: float


MODEL_PRICING: dict[str, ModelPricing] = {
    "claude-3-5-haiku-20241022": ModelPricing(1.00, 5.00),
    "claude-3-5-sonnet-20241022": ModelPricing(3.00, 15.00),
    "claude-3-opus-20240229": ModelPricing(15.00, 75.00),
    # Local models cost nothing.
    "llama2": ModelPricing(0, 0),
    "llama3": ModelPricing(0, 0),
    "llama3.1": ModelPricing(0, 0),
    "llama3.2": ModelPricing(0, 0),
}


def calculate_token_cost(
    model: str | None,
    input_tokens: int | None,
    output_tokens: int | None,
) -> float | None:
    """Cost in USD, or ``None`` when the model or a token count is unknown."""
    if not model or input_tokens is None or output_tokens is None:
        return None
    pricing = MODEL_PRICING.get(model)
    if pricing is None:
        return None
    return (input_tokens / 1_000_000) * pricing.input_per_million + (
        output_tokens / 1_000_000
    ) * pricing.output_per_million


def format_cost(cost: float) -> str:
    """``$0.00``, ``<$0.0001``, four decimals under a cent, otherwise two."""
    if cost == 0:
        return "$0.00"
    if cost < 0.0001:
        return "<$0.0001"
    if cost < 0.01:
        return f"${cost:.4f}"
    return f"${cost:.2f}"
