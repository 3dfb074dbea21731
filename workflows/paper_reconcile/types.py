"""Types and constants for paper reconciliation."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.bank.types import SearchSource

# Fleet level: papers in flight at once
MAX_CONCURRENT_PAPERS = 30
# Paper level: question resolutions in flight at once
MAX_CONCURRENT_QUESTIONS = 50
# Question i of a paper starts no earlier than i * stagger seconds in
QUESTION_STAGGER_SECONDS = 0.5
# Extra whole-resolution attempts for a question that did not match
MAX_RESOLUTION_RETRIES = 10
# Pause before retrying a question whose attempt hit an infrastructure failure
RESOLUTION_RETRY_DELAY = 1.0
# Judge attempts per candidate set
VERIFIER_ATTEMPTS = 3
VERIFIER_RETRY_DELAY = 1.0
DEFAULT_STAGE = "3"


# ---------------------------------------------------------------------------
# Paper sources
# ---------------------------------------------------------------------------


class Question(BaseModel):
    """One row of a paper as extracted upstream. Never mutated."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    origin: str = Field(default="", description="Original text of the row")
    stem: str = Field(default="", description="OCR text used as the search query")
    origin_from_our_bank: list[str] = Field(
        default_factory=list, description="Legacy bank references"
    )
    is_title: bool = Field(default=False, description="Section heading rather than a question")
    imgs: list[str] | None = Field(default=None, description="Reference images")
    screenshot: str = Field(default="", description="Base64 (or hosted URL) screenshot")


class Paper(BaseModel):
    """A paper source file."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    page_id: str | None = Field(default=None, description="Paper id in the grading backend")
    name: str = Field(default="", description="Display name")
    subject: str = Field(default="", description="Subject name, full or short form")
    stage: str | None = Field(default=None, description="Stage code override")
    stemlist: list[Question] = Field(default_factory=list)


@dataclass(frozen=True)
class QuestionContext:
    """Per-question execution context, built once at paper-load time.

    ``position`` counts every row of the paper (titles included, 1-based) and
    addresses the question in submission payloads. ``number`` counts only
    non-title rows and is the human-facing question number; a title carries
    the number of the question before it.
    """

    paper_id: str
    subject_code: str
    stage: str
    paper_index: int
    position: int
    number: int
    is_title: bool
    screenshot: str = field(repr=False)

    @property
    def log_prefix(self) -> str:
        return f"[paper#{self.paper_index} question#{self.position}]"


@dataclass(frozen=True)
class PaperJob:
    """A loaded, validated paper ready for processing."""

    path: Path
    paper: Paper
    paper_id: str
    subject_code: str
    contexts: tuple[QuestionContext, ...]

    @property
    def name(self) -> str:
        return self.paper.name or self.path.stem

    @property
    def questions(self) -> list[Question]:
        return self.paper.stemlist


# ---------------------------------------------------------------------------
# Resolution outcomes
# ---------------------------------------------------------------------------


class QuestionShape(str, Enum):
    """Question shapes the generative step can author."""

    SINGLE_CHOICE = "single_choice"
    FREE_RESPONSE = "free_response"
    FILL_BLANK = "fill_blank"


@dataclass(frozen=True)
class Found:
    """A bank candidate was accepted."""

    source: SearchSource
    matched_index: int
    payload: dict[str, Any]
    screenshot_url: str


@dataclass(frozen=True)
class Generated:
    """No bank match; the question was authored from its screenshot."""

    payload: dict[str, Any]
    shape: QuestionShape
    screenshot_url: str


@dataclass(frozen=True)
class ManualRequired:
    """Every automated step missed; a human must enter the question."""

    paper_id: str
    index: int
    screenshot_url: str
    reason: str


ResolutionOutcome = Found | Generated | ManualRequired


# ---------------------------------------------------------------------------
# Submission actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SubmitTitle:
    pass


@dataclass(frozen=True)
class SubmitFound:
    payload: dict[str, Any]


@dataclass(frozen=True)
class SubmitGenerated:
    payload: dict[str, Any]


@dataclass(frozen=True)
class Skip:
    reason: str


SubmitAction = SubmitTitle | SubmitFound | SubmitGenerated | Skip


@dataclass(frozen=True)
class QuestionResult:
    """Final state of one row after processing.

    ``index`` is the 0-based row position used for ordering. A result with
    an ``error`` always carries a Skip action.
    """

    index: int
    question: Question
    context: QuestionContext
    action: SubmitAction
    error: str | None = None

    @property
    def has_error(self) -> bool:
        return self.error is not None


# ---------------------------------------------------------------------------
# Finalization
# ---------------------------------------------------------------------------


class PaperOutcomeSummary(BaseModel):
    """Per-paper tallies by question number; one audit line when imperfect."""

    paper_id: str
    paper_name: str = ""
    source_file: str = ""
    matched: list[int] = Field(default_factory=list)
    generated: list[int] = Field(default_factory=list)
    manual: list[int] = Field(default_factory=list)
    errors: list[int] = Field(default_factory=list)
    reasons: dict[str, str] = Field(
        default_factory=dict, description="Question number (or 'paper') to reason"
    )

    @property
    def is_perfect(self) -> bool:
        return not (self.generated or self.manual or self.errors or "paper" in self.reasons)


class PaperReport(BaseModel):
    """What finalization did with one paper."""

    summary: PaperOutcomeSummary
    submitted: list[int] = Field(default_factory=list, description="Row positions stored")
    perfect: bool = False
    audited: bool = False
    source_removed: bool = False


class FleetReport(BaseModel):
    """Totals for one fleet run."""

    total: int = 0
    succeeded: int = 0
    perfect: int = 0
    skipped: dict[str, str] = Field(default_factory=dict, description="Source path to reason")
    reports: list[PaperReport] = Field(default_factory=list)

    @property
    def completed(self) -> int:
        return self.succeeded + len(self.skipped)
