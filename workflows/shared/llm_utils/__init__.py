"""LLM utilities for reconciliation workflows.

Provides Anthropic Claude model selection by tier and helpers for pulling
text and JSON out of model replies.
"""

from .models import ModelTier, get_llm
from .response_parsing import (
    extract_json_from_response,
    extract_response_content,
    is_refusal,
    strip_code_fences,
)

__all__ = [
    "ModelTier",
    "get_llm",
    "extract_json_from_response",
    "extract_response_content",
    "is_refusal",
    "strip_code_fences",
]
