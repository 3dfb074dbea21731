"""Exam paper reconciliation workflow.

Matches every question of a paper against the question banks, falls back to
authoring the question from its screenshot, and finally to manual entry.
Resolved questions are submitted in paper order; imperfect papers are
recorded in an audit log.
"""

from .authoring import GenerativeAuthor
from .errors import (
    GenerationParseError,
    InfrastructureError,
    NotFoundError,
    PaperLoadError,
    RejectedError,
    RetryBudgetExhaustedError,
    StepError,
    UnsupportedShapeError,
)
from .finalizer import AuditLog, PaperFinalizer
from .fleet import FleetRunner, ProgressFile, run_fleet
from .judge import ContentRefusedError, JudgeError, VisionJudge
from .loader import PaperSourceStore, prepare_paper
from .processor import ConcurrentPaperProcessor
from .resolver import QuestionResolver
from .types import (
    FleetReport,
    Found,
    Generated,
    ManualRequired,
    Paper,
    PaperJob,
    PaperOutcomeSummary,
    PaperReport,
    Question,
    QuestionContext,
    QuestionResult,
)
from .verifier import MatchVerifier, parse_match_response

__all__ = [
    # Pipeline
    "run_fleet",
    "FleetRunner",
    "ProgressFile",
    "ConcurrentPaperProcessor",
    "QuestionResolver",
    "MatchVerifier",
    "parse_match_response",
    "GenerativeAuthor",
    "PaperFinalizer",
    "AuditLog",
    "PaperSourceStore",
    "prepare_paper",
    "VisionJudge",
    # Types
    "Paper",
    "Question",
    "QuestionContext",
    "PaperJob",
    "QuestionResult",
    "Found",
    "Generated",
    "ManualRequired",
    "PaperOutcomeSummary",
    "PaperReport",
    "FleetReport",
    # Errors
    "StepError",
    "NotFoundError",
    "RejectedError",
    "RetryBudgetExhaustedError",
    "UnsupportedShapeError",
    "GenerationParseError",
    "InfrastructureError",
    "PaperLoadError",
    "JudgeError",
    "ContentRefusedError",
]
