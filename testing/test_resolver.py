"""Tests for the per-question resolution cascade."""

import json

import httpx
import pytest

from core.bank import QuestionBankClient, SearchSource
from workflows.paper_reconcile.authoring import GenerativeAuthor
from workflows.paper_reconcile.errors import InfrastructureError
from workflows.paper_reconcile.judge import JudgeError
from workflows.paper_reconcile.resolver import QuestionResolver
from workflows.paper_reconcile.types import Found, Generated, ManualRequired, QuestionShape
from workflows.paper_reconcile.verifier import MatchVerifier

from testing.utils import FakeBank, FakeJudge, candidate, make_job

SHOT = "https://cdn.test/shot.png"
FREE_RESPONSE = json.dumps({"shape": "free_response", "stem": "Explain.", "answer": "Because."})


@pytest.fixture
def ctx():
    job = make_job([("Part A", True), "q1", "q2"])
    return job.contexts[1]


def _resolver(bank: FakeBank, judge: FakeJudge) -> QuestionResolver:
    return QuestionResolver(
        bank,
        MatchVerifier(judge, retry_delay=0),
        GenerativeAuthor(judge, retry_delay=0),
    )


class TestCascade:
    async def test_primary_match(self, ctx):
        bank = FakeBank(primary=[candidate("a", "A1"), candidate("b", "A2")])
        judge = FakeJudge(match=["1"])

        outcome = await _resolver(bank, judge).resolve(ctx, "ocr text", SHOT)

        assert isinstance(outcome, Found)
        assert outcome.source is SearchSource.PRIMARY
        assert outcome.matched_index == 1
        assert outcome.payload["questionId"] == "A2"
        assert [c[0] for c in bank.calls] == [SearchSource.PRIMARY]
        assert bank.calls[0][1:] == (ctx.stage, ctx.subject_code, "ocr text")

    async def test_secondary_after_primary_rejected(self, ctx):
        bank = FakeBank(primary=[candidate("a")], secondary=[candidate("b", "B1")])
        judge = FakeJudge(match=["None", "0"])

        outcome = await _resolver(bank, judge).resolve(ctx, "ocr", SHOT)

        assert isinstance(outcome, Found)
        assert outcome.source is SearchSource.SECONDARY
        assert outcome.payload["questionId"] == "B1"

    async def test_secondary_after_primary_empty(self, ctx):
        bank = FakeBank(secondary=[candidate("b")])
        judge = FakeJudge(match=["0"])

        outcome = await _resolver(bank, judge).resolve(ctx, "ocr", SHOT)

        assert isinstance(outcome, Found)
        assert judge.match.calls == 1

    async def test_generative_fallback(self, ctx):
        bank = FakeBank(primary=[candidate("a")])
        judge = FakeJudge(match=["None"], author=[FREE_RESPONSE])

        outcome = await _resolver(bank, judge).resolve(ctx, "ocr", SHOT)

        assert isinstance(outcome, Generated)
        assert outcome.shape is QuestionShape.FREE_RESPONSE
        assert outcome.screenshot_url == SHOT

    async def test_empty_primary_rejected_secondary_then_authored(self, ctx):
        single_choice = {
            "shape": "single_choice",
            "stem": "2 + 2 = ?",
            "options": ["3", "4"],
            "answer_index": 1,
        }
        bank = FakeBank(secondary=[candidate("close but different")])
        judge = FakeJudge(match=["None"], author=[json.dumps(single_choice)])

        outcome = await _resolver(bank, judge).resolve(ctx, "ocr", SHOT)

        assert isinstance(outcome, Generated)
        assert outcome.shape is QuestionShape.SINGLE_CHOICE
        assert outcome.payload["questionIndex"] == ctx.position
        assert [c[0] for c in bank.calls] == [SearchSource.PRIMARY, SearchSource.SECONDARY]

    async def test_manual_when_everything_misses(self, ctx):
        bank = FakeBank()
        judge = FakeJudge(author=["NotSupport"])

        outcome = await _resolver(bank, judge).resolve(ctx, "ocr", SHOT)

        assert isinstance(outcome, ManualRequired)
        assert outcome.paper_id == ctx.paper_id
        assert outcome.index == ctx.number
        assert outcome.screenshot_url == SHOT
        assert outcome.reason.startswith("UnsupportedShape")

    async def test_judge_outage_falls_through_to_manual(self, ctx):
        bank = FakeBank(primary=[candidate("a")], secondary=[candidate("b")])
        judge = FakeJudge(match=[JudgeError("down")], author=[JudgeError("down")])

        outcome = await _resolver(bank, judge).resolve(ctx, "ocr", SHOT)

        assert isinstance(outcome, ManualRequired)
        assert outcome.reason.startswith("RetryBudgetExhausted")


class TestInfrastructure:
    async def test_search_failure_aborts(self, ctx):
        bank = FakeBank(fail={SearchSource.PRIMARY})
        judge = FakeJudge()

        with pytest.raises(InfrastructureError):
            await _resolver(bank, judge).resolve(ctx, "ocr", SHOT)
        assert judge.calls == []

    async def test_secondary_failure_aborts(self, ctx):
        bank = FakeBank(fail={SearchSource.SECONDARY})
        judge = FakeJudge()

        with pytest.raises(InfrastructureError):
            await _resolver(bank, judge).resolve(ctx, "ocr", SHOT)
        assert [c[0] for c in bank.calls] == [SearchSource.PRIMARY, SearchSource.SECONDARY]

    async def test_malformed_bank_record_is_infrastructure(self, ctx):
        record = {"questionContent": "x", "xkwQuestionSimilarity": "N/A"}
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"data": [record]}))
        judge = FakeJudge()

        async with QuestionBankClient(
            "https://bank.test", attempts=2, retry_delay=0, transport=transport
        ) as bank:
            with pytest.raises(InfrastructureError):
                await _resolver(bank, judge).resolve(ctx, "ocr", SHOT)
        assert judge.calls == []
