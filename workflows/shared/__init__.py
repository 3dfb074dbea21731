"""Shared utilities for reconciliation workflows."""

from .async_utils import run_staggered
from .llm_utils import ModelTier, extract_json_from_response, extract_response_content, get_llm
from .retry_utils import with_retry

__all__ = [
    # Concurrency
    "run_staggered",
    # LLM utilities
    "ModelTier",
    "get_llm",
    "extract_json_from_response",
    "extract_response_content",
    # Retry
    "with_retry",
]
