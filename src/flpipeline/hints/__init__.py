"""Hint files — listing, LLM-mediated selection, token costs."""

from flpipeline.hints.listing import HintInfo, get_listing, hint_patterns, parse_frontmatter
from flpipeline.hints.llm import LLMResponse, LLMService, create_llm_service
from flpipeline.hints.selector import (
    FoundHints,
    TokenUsage,
    build_selection_prompt,
    get_relevant_hints,
    parse_selection,
)
from flpipeline.hints.token_costs import calculate_token_cost, format_cost

__all__ = [
    "FoundHints",
    "HintInfo",
    "LLMResponse",
    "LLMService",
    "TokenUsage",
    "build_selection_prompt",
    "calculate_token_cost",
    "create_llm_service",
    "format_cost",
    "get_listing",
    "get_relevant_hints",
    "hint_patterns",
    "parse_frontmatter",
    "parse_selection",
]
