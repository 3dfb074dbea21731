"""Concurrent resolution of every question on one paper.

Questions start staggered and run under a per-paper semaphore, so completion
order is arbitrary. Results are sorted back into row order before they leave
this module; nothing is submitted here.

Retry policy: an attempt is upload + full cascade. Anything short of Found
(including an infrastructure failure) is retried as a whole, up to
max_retries extra attempts, and the last attempt's result is final. An
infrastructure failure waits retry_delay seconds before the next attempt.
"""

import asyncio
import logging
from typing import Protocol, assert_never

from core.bank import BankError
from core.logging import FAILED_QUESTIONS_LOGGER
from workflows.shared.async_utils import run_staggered

from .errors import InfrastructureError
from .resolver import QuestionResolver
from .types import (
    MAX_CONCURRENT_QUESTIONS,
    MAX_RESOLUTION_RETRIES,
    QUESTION_STAGGER_SECONDS,
    RESOLUTION_RETRY_DELAY,
    Found,
    Generated,
    ManualRequired,
    PaperJob,
    Question,
    QuestionContext,
    QuestionResult,
    ResolutionOutcome,
    Skip,
    SubmitFound,
    SubmitGenerated,
    SubmitTitle,
)

logger = logging.getLogger(__name__)
failed_logger = logging.getLogger(FAILED_QUESTIONS_LOGGER)


class Uploader(Protocol):
    async def upload(self, screenshot: str) -> str: ...


class ConcurrentPaperProcessor:
    """Resolve all questions of a paper concurrently.

    Example:
        processor = ConcurrentPaperProcessor(resolver, uploader, max_concurrent=50)
        results = await processor.process(job)  # sorted by row
    """

    def __init__(
        self,
        resolver: QuestionResolver,
        uploader: Uploader,
        max_concurrent: int = MAX_CONCURRENT_QUESTIONS,
        stagger: float = QUESTION_STAGGER_SECONDS,
        max_retries: int = MAX_RESOLUTION_RETRIES,
        retry_delay: float = RESOLUTION_RETRY_DELAY,
    ):
        self.resolver = resolver
        self.uploader = uploader
        self.max_concurrent = max_concurrent
        self.stagger = stagger
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    async def process(self, job: PaperJob) -> list[QuestionResult]:
        """Resolve every row of the paper; one result per row, in row order."""
        items = list(zip(job.questions, job.contexts))
        logger.info(f"Processing {len(items)} rows of paper {job.paper_id} ({job.path.name})")

        async def worker(index: int, item: tuple[Question, QuestionContext]) -> QuestionResult:
            question, ctx = item
            return await self._process_one(job, index, question, ctx)

        raw_results = await run_staggered(
            items,
            worker,
            max_concurrent=self.max_concurrent,
            stagger=self.stagger,
            return_exceptions=True,
        )

        results = []
        for index, ((question, ctx), result) in enumerate(zip(items, raw_results)):
            if isinstance(result, Exception):
                logger.error(f"{ctx.log_prefix} Unexpected failure: {result!r}")
                result = self._error_result(job, index, question, ctx, f"Unexpected: {result!r}")
            elif isinstance(result, BaseException):
                raise result
            results.append(result)

        results.sort(key=lambda r: r.index)
        return results

    async def _process_one(
        self, job: PaperJob, index: int, question: Question, ctx: QuestionContext
    ) -> QuestionResult:
        if ctx.is_title:
            return QuestionResult(index=index, question=question, context=ctx, action=SubmitTitle())

        final = await self._resolve_with_retries(question, ctx)
        source = job.path.name

        match final:
            case Found(payload=payload):
                return QuestionResult(
                    index=index, question=question, context=ctx, action=SubmitFound(payload)
                )
            case Generated(payload=payload, shape=shape):
                failed_logger.info(
                    f"{ctx.log_prefix} Generated ({shape.value}) | paper: {source} | "
                    f"paper_id: {ctx.paper_id} | question: {ctx.number}"
                )
                return QuestionResult(
                    index=index, question=question, context=ctx, action=SubmitGenerated(payload)
                )
            case ManualRequired(reason=reason):
                failed_logger.warning(
                    f"Manual required | paper: {source} | paper_id: {ctx.paper_id} | "
                    f"question: {ctx.number} | reason: {reason}"
                )
                return QuestionResult(
                    index=index, question=question, context=ctx, action=Skip(reason)
                )
            case InfrastructureError() as e:
                logger.error(f"{ctx.log_prefix} Processing failed: {e.describe()}")
                return self._error_result(job, index, question, ctx, e.describe())
            case _:
                assert_never(final)

    async def _resolve_with_retries(
        self, question: Question, ctx: QuestionContext
    ) -> ResolutionOutcome | InfrastructureError:
        attempts = 1 + self.max_retries
        last: ResolutionOutcome | InfrastructureError | None = None

        for attempt in range(1, attempts + 1):
            try:
                outcome = await self._attempt(question, ctx)
            except InfrastructureError as e:
                logger.warning(
                    f"{ctx.log_prefix} Attempt {attempt}/{attempts} failed: {e.describe()}"
                )
                last = e
                if attempt < attempts:
                    await asyncio.sleep(self.retry_delay)
                continue

            if isinstance(outcome, Found):
                return outcome
            last = outcome
            if attempt < attempts:
                logger.info(
                    f"{ctx.log_prefix} Attempt {attempt}/{attempts} ended "
                    f"{type(outcome).__name__}, retrying"
                )

        return last

    async def _attempt(self, question: Question, ctx: QuestionContext) -> ResolutionOutcome:
        try:
            screenshot_url = await self.uploader.upload(question.screenshot)
        except BankError as e:
            raise InfrastructureError("Screenshot upload failed", detail=str(e)) from e
        return await self.resolver.resolve(ctx, question.stem, screenshot_url)

    def _error_result(
        self,
        job: PaperJob,
        index: int,
        question: Question,
        ctx: QuestionContext,
        reason: str,
    ) -> QuestionResult:
        failed_logger.warning(
            f"Processing error | paper: {job.path.name} | paper_id: {ctx.paper_id} | "
            f"question: {ctx.number} | reason: {reason}"
        )
        return QuestionResult(
            index=index, question=question, context=ctx, action=Skip(reason), error=reason
        )
