"""Resolution cascade for a single question.

    SearchPrimary -> SearchFallback -> GenerativeFallback -> ManualRequired

Each step either produces a terminal outcome or raises a soft StepError,
which moves the cascade to the next step. InfrastructureError is hard: it
aborts the resolution so the caller can retry the whole attempt.
"""

import logging
from typing import Protocol

from core.bank import BankError, Candidate, SearchSource

from .authoring import GenerativeAuthor
from .errors import InfrastructureError, NotFoundError, RejectedError, StepError
from .types import Found, ManualRequired, QuestionContext, ResolutionOutcome
from .verifier import MatchVerifier

logger = logging.getLogger(__name__)

SEARCH_ORDER = (SearchSource.PRIMARY, SearchSource.SECONDARY)


class SearchBackend(Protocol):
    async def search(
        self, source: SearchSource, stage: str, subject: str, text: str
    ) -> list[Candidate]: ...


class QuestionResolver:
    """Run the cascade for one question.

    Never raises for soft misses: the worst soft result is ManualRequired.

    Example:
        resolver = QuestionResolver(bank, MatchVerifier(judge), GenerativeAuthor(judge))
        outcome = await resolver.resolve(ctx, question.stem, screenshot_url)
    """

    def __init__(
        self,
        bank: SearchBackend,
        verifier: MatchVerifier,
        author: GenerativeAuthor,
    ):
        self.bank = bank
        self.verifier = verifier
        self.author = author

    async def resolve(
        self, ctx: QuestionContext, ocr_text: str, screenshot_url: str
    ) -> ResolutionOutcome:
        """Resolve one question to Found, Generated or ManualRequired.

        Raises:
            InfrastructureError: If a search backend failed
        """
        prefix = ctx.log_prefix
        last_error: StepError | None = None

        for source in SEARCH_ORDER:
            try:
                return await self._search_step(ctx, source, ocr_text, screenshot_url)
            except InfrastructureError as e:
                logger.warning(f"{prefix} {source.value} request failed: {e.describe()}")
                raise
            except StepError as e:
                logger.info(f"{prefix} {source.value} missed: {e.describe()}")
                last_error = e

        logger.info(f"{prefix} No bank match, trying generative fallback")
        try:
            return await self.author.author(ctx, screenshot_url)
        except InfrastructureError:
            raise
        except StepError as e:
            logger.info(f"{prefix} Generative fallback missed: {e.describe()}")
            last_error = e

        reason = last_error.describe() if last_error else "unresolved"
        logger.info(f"{prefix} Cascade exhausted, manual entry required: {reason}")
        return ManualRequired(
            paper_id=ctx.paper_id,
            index=ctx.number,
            screenshot_url=screenshot_url,
            reason=reason,
        )

    async def _search_step(
        self,
        ctx: QuestionContext,
        source: SearchSource,
        ocr_text: str,
        screenshot_url: str,
    ) -> Found:
        try:
            candidates = await self.bank.search(source, ctx.stage, ctx.subject_code, ocr_text)
        except BankError as e:
            raise InfrastructureError(f"{source.value} search failed", detail=str(e)) from e

        if not candidates:
            raise NotFoundError(f"{source.value} returned no candidates")

        index = await self.verifier.find_best_match(candidates, screenshot_url)
        if index is None:
            raise RejectedError(f"judge rejected {len(candidates)} {source.value} candidates")

        logger.info(f"{ctx.log_prefix} {source.value} matched candidate {index}")
        return Found(
            source=source,
            matched_index=index,
            payload=candidates[index].raw,
            screenshot_url=screenshot_url,
        )
