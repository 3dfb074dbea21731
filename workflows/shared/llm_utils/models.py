"""Model tier definitions and LLM initialization."""

import os
from enum import Enum
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()

from core.config import configure_langsmith

configure_langsmith()

from langchain_anthropic import ChatAnthropic


class ModelTier(Enum):
    """Model tiers for different task complexities.

    HAIKU: Quick tasks, cheap screening
    SONNET: Standard tasks, candidate judging and question authoring
    OPUS: Hard cases where accuracy matters more than cost
    """
    HAIKU = "claude-haiku-4-5-20251001"
    SONNET = "claude-sonnet-4-5-20250929"
    OPUS = "claude-opus-4-5-20251101"


def get_llm(
    tier: ModelTier = ModelTier.SONNET,
    max_tokens: int = 4096,
    temperature: Optional[float] = None,
    model: Optional[str] = None,
) -> ChatAnthropic:
    """
    Get a configured Anthropic Claude LLM instance.

    Args:
        tier: Model tier selection (HAIKU, SONNET, OPUS)
        max_tokens: Maximum output tokens
        temperature: Sampling temperature (model default if None)
        model: Explicit model id, overriding the tier

    Returns:
        ChatAnthropic instance configured for the specified tier

    Raises:
        ValueError: If ANTHROPIC_API_KEY is not set

    Example:
        # Judging candidates with a little sampling freedom
        llm = get_llm(ModelTier.SONNET, temperature=0.3)
    """
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        raise ValueError("ANTHROPIC_API_KEY not set")

    kwargs: dict[str, Any] = {
        "model": model or tier.value,
        "api_key": api_key,
        "max_tokens": max_tokens,
    }
    if temperature is not None:
        kwargs["temperature"] = temperature

    return ChatAnthropic(**kwargs)
