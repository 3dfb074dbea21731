"""Vision judge: one chat model call over text and image blocks."""

import logging
from typing import Any, Sequence

from langchain_core.language_models.chat_models import BaseChatModel

from workflows.shared.llm_utils import (
    ModelTier,
    extract_response_content,
    get_llm,
    is_refusal,
)

logger = logging.getLogger(__name__)

JUDGE_TEMPERATURE = 0.3
JUDGE_MAX_TOKENS = 4096


class JudgeError(Exception):
    """The judge call failed or returned nothing usable."""

    pass


class ContentRefusedError(Exception):
    """The provider refused the request on content-safety grounds.

    Not a JudgeError: a refusal is final, so it is never retried.
    """

    pass


def text_block(text: str) -> dict[str, Any]:
    return {"type": "text", "text": text}


def image_block(url: str) -> dict[str, Any]:
    """Image content block for a hosted URL or a base64 data URL."""
    if url.startswith("data:") and ";base64," in url:
        header, data = url.split(",", 1)
        media_type = header[len("data:"):].split(";", 1)[0] or "image/png"
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": media_type, "data": data},
        }
    return {"type": "image", "source": {"type": "url", "url": url}}


class VisionJudge:
    """Shared, read-only handle to the judging model.

    One instance serves every concurrent question; the underlying
    ChatAnthropic client is created on first use.

    Example:
        judge = VisionJudge(model=config.judge_model)
        reply = await judge.ask(SYSTEM, [text_block("Which one?"), image_block(url)])
    """

    def __init__(
        self,
        llm: BaseChatModel | None = None,
        tier: ModelTier = ModelTier.SONNET,
        model: str | None = None,
        temperature: float = JUDGE_TEMPERATURE,
        max_tokens: int = JUDGE_MAX_TOKENS,
    ):
        self._llm = llm
        self.tier = tier
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = get_llm(
                self.tier,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                model=self.model,
            )
        return self._llm

    async def ask(self, system: str, content: Sequence[dict[str, Any] | str]) -> str:
        """Send one system prompt and one user turn; return the trimmed reply.

        Args:
            system: System prompt
            content: User content blocks; bare strings become text blocks

        Raises:
            ContentRefusedError: If the provider stopped on safety grounds
            JudgeError: If the call failed or the reply was empty
        """
        blocks = [text_block(part) if isinstance(part, str) else part for part in content]
        try:
            response = await self.llm.ainvoke([
                {"role": "system", "content": system},
                {"role": "user", "content": blocks},
            ])
        except Exception as e:
            raise JudgeError(f"Judge call failed: {e}") from e

        if is_refusal(response):
            raise ContentRefusedError("Request blocked by content safety")

        reply = extract_response_content(response)
        if not reply:
            raise JudgeError("Judge returned an empty reply")
        logger.debug(f"Judge reply ({len(reply)} chars): {reply[:200]}")
        return reply
