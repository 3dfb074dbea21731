"""LLM response parsing utilities."""

import json
from typing import Any, Optional

REFUSAL_STOP_REASONS = frozenset({"refusal", "content_filter"})


def strip_code_fences(content: str) -> str:
    """Remove a surrounding markdown code block, if any."""
    content = content.strip()

    if "```json" in content:
        return content.split("```json")[1].split("```")[0].strip()
    if content.startswith("```"):
        lines = content.split("\n")
        lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        return "\n".join(lines).strip()
    return content


def extract_json_from_response(content: str, default: Optional[dict] = None) -> dict:
    """Extract JSON from LLM response, handling markdown code blocks."""
    try:
        return json.loads(strip_code_fences(content))
    except json.JSONDecodeError:
        if default is not None:
            return default
        raise


def extract_response_content(response: Any) -> str:
    """Extract text content from various LLM response formats."""
    if isinstance(response.content, str):
        return response.content.strip()
    if isinstance(response.content, list) and response.content:
        parts = []
        for block in response.content:
            if isinstance(block, dict):
                if block.get("type", "text") == "text":
                    parts.append(block.get("text", ""))
            elif hasattr(block, "text"):
                parts.append(block.text)
            else:
                parts.append(str(block))
        return "".join(parts).strip()
    return str(response.content or "").strip()


def is_refusal(response: Any) -> bool:
    """Check whether the provider stopped the reply on safety grounds."""
    metadata = getattr(response, "response_metadata", None) or {}
    reason = metadata.get("stop_reason") or metadata.get("finish_reason")
    return isinstance(reason, str) and reason.lower() in REFUSAL_STOP_REASONS
