"""Generative fallback: author a question from its screenshot.

The judge classifies the screenshot's shape and transcribes it as JSON. The
reply is validated into a shape-specific draft, then rendered into a bank
payload. Every failure here is soft so the cascade can still fall through to
manual entry.
"""

import json
import logging
import re
from typing import Annotated, Any, Literal, Union, assert_never

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, model_validator

from workflows.shared.llm_utils import strip_code_fences
from workflows.shared.retry_utils import with_retry

from .errors import GenerationParseError, RetryBudgetExhaustedError, UnsupportedShapeError
from .judge import ContentRefusedError, JudgeError, image_block, text_block
from .payloads import fill_blank_payload, free_response_payload, single_choice_payload
from .prompts import AUTHOR_INSTRUCTION, AUTHOR_SYSTEM
from .types import Generated, QuestionContext, QuestionShape
from .verifier import Judge

logger = logging.getLogger(__name__)

UNSUPPORTED_TOKEN = "NotSupport"
AUTHOR_ATTEMPTS = 2
AUTHOR_RETRY_DELAY = 1.0
BLANK_MARKER = re.compile(r"_{3,}")


class SingleChoiceDraft(BaseModel):
    shape: Literal["single_choice"]
    stem: str = Field(min_length=1)
    options: list[str] = Field(min_length=2, max_length=26)
    answer_index: int = Field(ge=0)
    analysis: str = ""

    @model_validator(mode="after")
    def answer_in_range(self) -> "SingleChoiceDraft":
        if self.answer_index >= len(self.options):
            raise ValueError(
                f"answer_index {self.answer_index} out of range for {len(self.options)} options"
            )
        return self


class FreeResponseDraft(BaseModel):
    shape: Literal["free_response"]
    stem: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    analysis: str = ""


class FillBlankDraft(BaseModel):
    shape: Literal["fill_blank"]
    stem: str = Field(min_length=1)
    blanks: list[str] = Field(min_length=1)
    analysis: str = ""

    @model_validator(mode="after")
    def blanks_match_markers(self) -> "FillBlankDraft":
        markers = len(BLANK_MARKER.findall(self.stem))
        if markers != len(self.blanks):
            raise ValueError(f"stem has {markers} blanks but {len(self.blanks)} answers")
        return self


QuestionDraft = Annotated[
    Union[SingleChoiceDraft, FreeResponseDraft, FillBlankDraft],
    Field(discriminator="shape"),
]
_draft_adapter = TypeAdapter(QuestionDraft)


def parse_draft(reply: str) -> SingleChoiceDraft | FreeResponseDraft | FillBlankDraft:
    """Validate a judge reply into a question draft.

    Raises:
        UnsupportedShapeError: If the judge declined the question
        GenerationParseError: If the reply is not a valid draft
    """
    cleaned = strip_code_fences(reply)
    if cleaned.strip().strip('"') == UNSUPPORTED_TOKEN:
        raise UnsupportedShapeError("Judge declined the question shape")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        if UNSUPPORTED_TOKEN in cleaned:
            raise UnsupportedShapeError("Judge declined the question shape") from e
        raise GenerationParseError("Reply is not JSON", detail=f"{e}; raw: {cleaned[:300]}") from e

    if isinstance(data, dict) and data.get("shape") in ("unsupported", UNSUPPORTED_TOKEN):
        raise UnsupportedShapeError("Judge declined the question shape")

    try:
        return _draft_adapter.validate_python(data)
    except ValidationError as e:
        raise GenerationParseError(
            "Reply does not describe a question",
            detail=f"{e.error_count()} validation errors; raw: {cleaned[:300]}",
        ) from e


def render_payload(
    ctx: QuestionContext, draft: SingleChoiceDraft | FreeResponseDraft | FillBlankDraft
) -> tuple[QuestionShape, dict[str, Any]]:
    match draft:
        case SingleChoiceDraft():
            payload = single_choice_payload(
                ctx, draft.stem, draft.options, draft.answer_index, draft.analysis
            )
            return QuestionShape.SINGLE_CHOICE, payload
        case FreeResponseDraft():
            return QuestionShape.FREE_RESPONSE, free_response_payload(
                ctx, draft.stem, draft.answer, draft.analysis
            )
        case FillBlankDraft():
            parts = BLANK_MARKER.split(draft.stem)
            return QuestionShape.FILL_BLANK, fill_blank_payload(
                ctx, parts, draft.blanks, draft.analysis
            )
        case _:
            assert_never(draft)


class GenerativeAuthor:
    """Author a bank payload for a question no bank could match."""

    def __init__(
        self,
        judge: Judge,
        attempts: int = AUTHOR_ATTEMPTS,
        retry_delay: float = AUTHOR_RETRY_DELAY,
    ):
        self.judge = judge
        self.attempts = max(1, attempts)
        self.retry_delay = retry_delay

    async def author(self, ctx: QuestionContext, screenshot_url: str) -> Generated:
        """Transcribe the screenshot into a payload.

        Raises:
            UnsupportedShapeError: If the shape cannot be authored
            GenerationParseError: If the judge refused or its reply was unusable
            RetryBudgetExhaustedError: If every judge call failed
        """
        prefix = ctx.log_prefix
        content = [text_block(AUTHOR_INSTRUCTION), image_block(screenshot_url)]
        try:
            reply = await with_retry(
                lambda: self.judge.ask(AUTHOR_SYSTEM, content),
                max_attempts=self.attempts,
                delay=self.retry_delay,
                retry_on=JudgeError,
            )
        except ContentRefusedError as e:
            raise GenerationParseError("Authoring refused", detail=str(e)) from e
        except RuntimeError as e:
            raise RetryBudgetExhaustedError(
                f"Authoring failed after {self.attempts} attempts", detail=str(e.__cause__)
            ) from e

        try:
            draft = parse_draft(reply)
        except GenerationParseError:
            logger.warning(f"{prefix} Unusable authored content, raw reply: {reply[:1000]}")
            raise

        shape, payload = render_payload(ctx, draft)
        logger.info(f"{prefix} Authored {shape.value} question")
        return Generated(payload=payload, shape=shape, screenshot_url=screenshot_url)
