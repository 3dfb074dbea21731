"""
Shared testing utilities for reconciliation tests.

- fakes: in-memory judge, bank, uploader, submitter and resolver
- paper builders for constructing jobs without touching disk
"""

from .fakes import (
    PNG_DATA_URL,
    FakeBank,
    FakeJudge,
    FakeResolver,
    FakeSubmitter,
    FakeUploader,
    ScriptedReplies,
    candidate,
    make_job,
    make_paper,
)

__all__ = [
    "PNG_DATA_URL",
    "FakeBank",
    "FakeJudge",
    "FakeResolver",
    "FakeSubmitter",
    "FakeUploader",
    "ScriptedReplies",
    "candidate",
    "make_job",
    "make_paper",
]
