"""Fleet runner: reconcile every pending paper source.

Papers run concurrently under their own bound, separate from the per-paper
question bound. One paper failing to load or process is logged and skipped;
the rest of the fleet carries on.
"""

import logging
from pathlib import Path

from core.bank import QuestionBankClient, ScreenshotUploader, SubmitClient
from core.config import AppConfig
from workflows.shared.async_utils import run_staggered

from .authoring import GenerativeAuthor
from .finalizer import AuditLog, PaperFinalizer
from .judge import VisionJudge
from .loader import PaperSourceStore, prepare_paper
from .processor import ConcurrentPaperProcessor
from .resolver import QuestionResolver
from .types import DEFAULT_STAGE, MAX_CONCURRENT_PAPERS, FleetReport, PaperReport
from .verifier import Judge, MatchVerifier

logger = logging.getLogger(__name__)


class ProgressFile:
    """Best-effort completed/remaining/total snapshot.

    Write failures are logged and otherwise ignored.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def write(self, completed: int, total: int) -> None:
        remaining = max(total - completed, 0)
        try:
            self.path.write_text(
                f"completed: {completed}\nremaining: {remaining}\ntotal: {total}\n",
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning(f"Could not write progress file {self.path}: {e}")


class FleetRunner:
    """Discover pending papers and drive processor + finalizer over each."""

    def __init__(
        self,
        store: PaperSourceStore,
        processor: ConcurrentPaperProcessor,
        finalizer: PaperFinalizer,
        progress: ProgressFile,
        max_concurrent: int = MAX_CONCURRENT_PAPERS,
        default_stage: str = DEFAULT_STAGE,
    ):
        self.store = store
        self.processor = processor
        self.finalizer = finalizer
        self.progress = progress
        self.max_concurrent = max_concurrent
        self.default_stage = default_stage

    async def run(self) -> FleetReport:
        paths = self.store.discover()
        total = len(paths)
        report = FleetReport(total=total)
        logger.info(f"Found {total} pending papers in {self.store.papers_dir}")
        self.progress.write(0, total)

        async def run_one(index: int, path: Path) -> None:
            logger.info(f"Starting paper {index + 1}/{total}: {path.name}")
            try:
                paper_report = await self.run_paper(path, paper_index=index + 1)
            except Exception as e:
                logger.error(f"Paper {path.name} failed, skipping: {e}", exc_info=True)
                report.skipped[str(path)] = str(e)
            else:
                report.succeeded += 1
                if paper_report.perfect:
                    report.perfect += 1
                report.reports.append(paper_report)
            self.progress.write(report.completed, total)

        await run_staggered(
            paths, run_one, max_concurrent=self.max_concurrent, return_exceptions=False
        )

        logger.info(
            f"Fleet done: {report.succeeded}/{total} papers processed, "
            f"{report.perfect} perfect, {len(report.skipped)} skipped"
        )
        return report

    async def run_paper(self, path: Path, paper_index: int = 1) -> PaperReport:
        """Load, process and finalize one paper.

        Raises:
            PaperLoadError: If the source cannot be loaded or prepared
        """
        paper = self.store.load(path)
        job = prepare_paper(path, paper, paper_index=paper_index, default_stage=self.default_stage)
        results = await self.processor.process(job)
        return await self.finalizer.finalize(job, results)


async def run_fleet(config: AppConfig, judge: Judge | None = None) -> FleetReport:
    """Wire every component from config and run one fleet pass."""
    judge = judge or VisionJudge(model=config.judge_model)
    client_kwargs = {
        "timeout": config.http_timeout,
        "token": config.bank_token,
        "cookies": config.cookies,
    }

    async with (
        QuestionBankClient(config.api_base_url, **client_kwargs) as bank,
        ScreenshotUploader(config.resolved_upload_url, **client_kwargs) as uploader,
        SubmitClient(config.api_base_url, **client_kwargs) as submitter,
    ):
        store = PaperSourceStore(config.papers_dir)
        resolver = QuestionResolver(bank, MatchVerifier(judge), GenerativeAuthor(judge))
        processor = ConcurrentPaperProcessor(
            resolver,
            uploader,
            max_concurrent=config.max_concurrent_questions,
            stagger=config.question_stagger_seconds,
            max_retries=config.max_resolution_retries,
            retry_delay=config.resolution_retry_delay,
        )
        finalizer = PaperFinalizer(
            submitter,
            AuditLog(config.audit_file),
            store,
            retain_imperfect_sources=config.retain_imperfect_sources,
        )
        runner = FleetRunner(
            store,
            processor,
            finalizer,
            ProgressFile(config.progress_file),
            max_concurrent=config.max_concurrent_papers,
            default_stage=config.stage,
        )
        return await runner.run()
