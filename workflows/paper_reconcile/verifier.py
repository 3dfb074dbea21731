"""Candidate selection by the vision judge."""

import logging
from typing import Any, Protocol, Sequence

from core.bank.types import Candidate
from workflows.shared.retry_utils import with_retry

from .judge import ContentRefusedError, JudgeError, image_block, text_block
from .prompts import MATCH_INSTRUCTION, MATCH_SYSTEM
from .types import VERIFIER_ATTEMPTS, VERIFIER_RETRY_DELAY

logger = logging.getLogger(__name__)

# Per-candidate text cap
MAX_CANDIDATE_TEXT = 1500


class Judge(Protocol):
    async def ask(self, system: str, content: Sequence[dict[str, Any] | str]) -> str: ...


class MatchProtocolError(ValueError):
    """Judge reply is neither a valid index nor None."""

    pass


def parse_match_response(reply: str, candidate_count: int) -> int | None:
    """Parse a judge reply into a candidate index.

    Accepts ``None`` in any letter case, or a base-10 index below
    candidate_count. Surrounding whitespace is ignored.

    Raises:
        MatchProtocolError: For empty, malformed or out-of-range replies
    """
    trimmed = reply.strip()
    if not trimmed:
        raise MatchProtocolError("Empty judge reply")
    if trimmed.lower() == "none":
        return None
    if trimmed.isascii() and trimmed.isdigit():
        index = int(trimmed)
        if index < candidate_count:
            return index
        raise MatchProtocolError(
            f"Index {index} out of range (0..{candidate_count - 1})"
        )
    raise MatchProtocolError(f"Unrecognized judge reply: {trimmed[:100]!r}")


def build_match_content(
    candidates: Sequence[Candidate], reference_image: str
) -> list[dict[str, Any]]:
    """Reference screenshot first, then each candidate's text and images."""
    content = [text_block("Screenshot of the question:"), image_block(reference_image)]
    for i, candidate in enumerate(candidates):
        text = candidate.text[:MAX_CANDIDATE_TEXT] or "(no text)"
        content.append(text_block(f"Candidate {i}:\n{text}"))
        for url in candidate.images:
            content.append(image_block(url))
    content.append(text_block(MATCH_INSTRUCTION.format(last=len(candidates) - 1)))
    return content


class MatchVerifier:
    """Ask the judge which candidate, if any, is the screenshot's question.

    Malformed replies and failed calls are retried a bounded number of
    times; running out of attempts yields None rather than an error, and a
    content-safety refusal yields None immediately.
    """

    def __init__(
        self,
        judge: Judge,
        attempts: int = VERIFIER_ATTEMPTS,
        retry_delay: float = VERIFIER_RETRY_DELAY,
    ):
        self.judge = judge
        self.attempts = max(1, attempts)
        self.retry_delay = retry_delay

    async def find_best_match(
        self, candidates: Sequence[Candidate], reference_image: str
    ) -> int | None:
        """Return the index of the matching candidate, or None.

        Raises:
            ValueError: If candidates is empty
        """
        if not candidates:
            raise ValueError("find_best_match needs at least one candidate")

        content = build_match_content(candidates, reference_image)

        async def attempt() -> int | None:
            reply = await self.judge.ask(MATCH_SYSTEM, content)
            try:
                return parse_match_response(reply, len(candidates))
            except MatchProtocolError as e:
                logger.warning(f"Judge protocol violation: {e}")
                raise

        try:
            return await with_retry(
                attempt,
                max_attempts=self.attempts,
                delay=self.retry_delay,
                retry_on=(MatchProtocolError, JudgeError),
            )
        except ContentRefusedError:
            logger.warning("Judge refused on content-safety grounds; treating as no match")
            return None
        except RuntimeError as e:
            logger.warning(f"Judge gave no usable answer after {self.attempts} attempts: {e.__cause__}")
            return None
