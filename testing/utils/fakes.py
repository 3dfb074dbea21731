"""
In-memory stand-ins for the pipeline's external collaborators.

Each fake records its calls so tests can assert on order and content.
"""

import asyncio
from pathlib import Path
from typing import Any, Callable

from core.bank import Candidate, SearchError, SearchSource, SubmitError, UploadError
from workflows.paper_reconcile.prompts import MATCH_SYSTEM
from workflows.paper_reconcile.types import Paper, PaperJob, Question
from workflows.paper_reconcile.loader import prepare_paper

PNG_DATA_URL = (
    "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk"
    "+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)


class ScriptedReplies:
    """Replies served in order; the last one repeats once the script runs out.

    Exception instances in the script are raised instead of returned.
    """

    def __init__(self, replies: list[Any]):
        self.replies = list(replies)
        self.calls = 0

    def next(self) -> Any:
        self.calls += 1
        if not self.replies:
            raise AssertionError("No scripted reply available")
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FakeJudge:
    """Judge with separate scripts for candidate matching and authoring."""

    def __init__(self, match: list[Any] | None = None, author: list[Any] | None = None):
        self.match = ScriptedReplies(match or ["None"])
        self.author = ScriptedReplies(author or ["NotSupport"])
        self.calls: list[tuple[str, list]] = []

    async def ask(self, system: str, content) -> str:
        self.calls.append((system, list(content)))
        await asyncio.sleep(0)
        if system == MATCH_SYSTEM:
            return self.match.next()
        return self.author.next()


class FakeBank:
    """Search backend returning canned candidates per source."""

    def __init__(
        self,
        primary: list[Candidate] | None = None,
        secondary: list[Candidate] | None = None,
        fail: set[SearchSource] | None = None,
    ):
        self.results = {
            SearchSource.PRIMARY: list(primary or []),
            SearchSource.SECONDARY: list(secondary or []),
        }
        self.fail = fail or set()
        self.calls: list[tuple[SearchSource, str, str, str]] = []

    async def search(
        self, source: SearchSource, stage: str, subject: str, text: str
    ) -> list[Candidate]:
        self.calls.append((source, stage, subject, text))
        await asyncio.sleep(0)
        if source in self.fail:
            raise SearchError(f"{source.value} unreachable")
        return list(self.results[source])


class FakeUploader:
    """Returns a deterministic CDN URL; fails the first ``failures`` calls."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls = 0

    async def upload(self, screenshot: str) -> str:
        self.calls += 1
        await asyncio.sleep(0)
        if self.calls <= self.failures:
            raise UploadError("storage unavailable")
        return f"https://cdn.test/shot-{abs(hash(screenshot)) % 10_000}.png"


class FakeSubmitter:
    """Records submitted payloads in arrival order."""

    def __init__(
        self,
        fail_positions: set[int] | None = None,
        fail_paper: bool = False,
    ):
        self.fail_positions = fail_positions or set()
        self.fail_paper = fail_paper
        self.saved: list[dict[str, Any]] = []
        self.papers: list[str] = []

    @property
    def positions(self) -> list[int]:
        return [p["questionIndex"] for p in self.saved]

    async def save_question(self, payload: dict[str, Any]) -> dict[str, Any]:
        await asyncio.sleep(0)
        if payload["questionIndex"] in self.fail_positions:
            raise SubmitError(f"rejected position {payload['questionIndex']}")
        self.saved.append(payload)
        return {"success": True}

    async def submit_paper(self, paper_id: str) -> dict[str, Any]:
        await asyncio.sleep(0)
        if self.fail_paper:
            raise SubmitError("paper submit rejected")
        self.papers.append(paper_id)
        return {"success": True}


class FakeResolver:
    """Resolver driven by a function of (context, attempt number)."""

    def __init__(self, decide: Callable, delay: Callable | None = None):
        self.decide = decide
        self.delay = delay
        self.attempts: dict[int, int] = {}
        self.completed: list[int] = []

    async def resolve(self, ctx, ocr_text: str, screenshot_url: str):
        attempt = self.attempts.get(ctx.position, 0) + 1
        self.attempts[ctx.position] = attempt
        if self.delay is not None:
            await asyncio.sleep(self.delay(ctx))
        try:
            return self.decide(ctx, attempt, screenshot_url)
        finally:
            self.completed.append(ctx.position)


def candidate(text: str, question_id: str = "q-1", **extra: Any) -> Candidate:
    record = {"questionContent": text, "questionId": question_id, **extra}
    return Candidate.from_record(record)


def make_paper(
    stems: list[str | tuple[str, bool]],
    page_id: str | None = "paper-1",
    subject: str = "数学",
    name: str = "Test paper",
) -> Paper:
    """Build a paper; a (stem, True) tuple marks a title row."""
    questions = []
    for stem in stems:
        text, is_title = stem if isinstance(stem, tuple) else (stem, False)
        questions.append(Question(stem=text, is_title=is_title, screenshot=PNG_DATA_URL))
    return Paper(page_id=page_id, name=name, subject=subject, stemlist=questions)


def make_job(stems: list[str | tuple[str, bool]], path: Path | None = None, **kwargs) -> PaperJob:
    paper = make_paper(stems, **kwargs)
    return prepare_paper(path or Path("papers/test.toml"), paper)
