"""Paper finalization: ordered submission, disposition, audit and cleanup.

A paper is perfect when every question was matched from a bank and every
submission went through. Perfect papers get the whole-paper signal;
imperfect ones get one line in the JSON-lines audit file so they can be
followed up by hand.
"""

import logging
from pathlib import Path
from typing import Any, Protocol, assert_never

from core.bank import BankError

from .payloads import matched_payload, title_payload
from .types import (
    PaperJob,
    PaperOutcomeSummary,
    PaperReport,
    QuestionResult,
    Skip,
    SubmitFound,
    SubmitGenerated,
    SubmitTitle,
)

logger = logging.getLogger(__name__)


class Submitter(Protocol):
    async def save_question(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def submit_paper(self, paper_id: str) -> dict[str, Any]: ...


class SourceStore(Protocol):
    def remove(self, path: Path) -> None: ...


class AuditLog:
    """Append-only JSON-lines file of imperfect papers."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def append(self, summary: PaperOutcomeSummary) -> None:
        """Write one record.

        Raises:
            OSError: If the file cannot be written
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(summary.model_dump_json() + "\n")


def build_summary(job: PaperJob, results: list[QuestionResult]) -> PaperOutcomeSummary:
    """Bucket question numbers by outcome."""
    summary = PaperOutcomeSummary(
        paper_id=job.paper_id,
        paper_name=job.name,
        source_file=str(job.path),
    )
    for result in results:
        number = result.context.number
        match result.action:
            case SubmitFound():
                summary.matched.append(number)
            case SubmitGenerated():
                summary.generated.append(number)
            case Skip(reason=reason):
                if result.has_error:
                    summary.errors.append(number)
                else:
                    summary.manual.append(number)
                summary.reasons[str(number)] = reason
            case SubmitTitle():
                pass
    return summary


class PaperFinalizer:
    """Submit a processed paper and decide its terminal disposition."""

    def __init__(
        self,
        submitter: Submitter,
        audit_log: AuditLog,
        store: SourceStore,
        retain_imperfect_sources: bool = False,
    ):
        self.submitter = submitter
        self.audit_log = audit_log
        self.store = store
        self.retain_imperfect_sources = retain_imperfect_sources

    async def finalize(self, job: PaperJob, results: list[QuestionResult]) -> PaperReport:
        summary = build_summary(job, results)
        submitted = await self._submit_in_order(results, summary)
        summary.errors.sort()

        perfect = summary.is_perfect
        if perfect:
            try:
                await self.submitter.submit_paper(job.paper_id)
                logger.info(f"Paper {job.paper_id} fully matched, whole paper submitted")
            except BankError as e:
                logger.error(f"Whole-paper submit failed for {job.paper_id}: {e}")
                summary.reasons["paper"] = f"Whole-paper submit failed: {e}"
                perfect = False
        else:
            logger.info(
                f"Paper {job.paper_id} imperfect (generated: {len(summary.generated)}, "
                f"manual: {len(summary.manual)}, errors: {len(summary.errors)})"
            )

        audited = False
        if not perfect:
            try:
                self.audit_log.append(summary)
                audited = True
                logger.info(f"Recorded imperfect paper {job.paper_id} in {self.audit_log.path}")
            except OSError as e:
                logger.error(f"Could not write audit record for {job.paper_id}: {e}")

        source_removed = False
        if perfect or (audited and not self.retain_imperfect_sources):
            try:
                self.store.remove(job.path)
                source_removed = True
            except OSError as e:
                logger.error(f"Could not remove paper source {job.path}: {e}")

        return PaperReport(
            summary=summary,
            submitted=submitted,
            perfect=perfect,
            audited=audited,
            source_removed=source_removed,
        )

    async def _submit_in_order(
        self, results: list[QuestionResult], summary: PaperOutcomeSummary
    ) -> list[int]:
        """Submit every non-skipped row strictly by row position.

        A submission failure becomes a processing error for that question;
        later rows are still submitted.
        """
        submitted: list[int] = []
        seen: set[int] = set()

        for result in sorted(results, key=lambda r: r.index):
            ctx = result.context
            match result.action:
                case SubmitTitle():
                    payload = title_payload(ctx, result.question)
                case SubmitFound(payload=record):
                    payload = matched_payload(ctx, record)
                case SubmitGenerated(payload=generated):
                    payload = generated
                case Skip():
                    continue
                case _:
                    assert_never(result.action)

            if ctx.position in seen:
                logger.warning(f"{ctx.log_prefix} Already submitted in this run, skipping")
                continue
            seen.add(ctx.position)

            try:
                await self.submitter.save_question(payload)
                submitted.append(ctx.position)
                logger.debug(f"{ctx.log_prefix} Submitted")
            except BankError as e:
                logger.error(f"{ctx.log_prefix} Submit failed: {e}")
                if ctx.is_title:
                    summary.reasons.setdefault("paper", f"Title row {ctx.position} not saved: {e}")
                else:
                    summary.errors.append(ctx.number)
                    summary.reasons[str(ctx.number)] = f"Submit failed: {e}"

        logger.info(f"Submitted {len(submitted)} rows for paper {summary.paper_id}")
        return submitted
