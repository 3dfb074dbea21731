"""Paper source discovery, loading and preparation."""

import json
import logging
import tomllib
from pathlib import Path

from pydantic import ValidationError

from .errors import PaperLoadError
from .subjects import find_subject_code
from .types import DEFAULT_STAGE, Paper, PaperJob, QuestionContext

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = (".toml", ".json")


class PaperSourceStore:
    """Directory of pending paper sources (TOML or JSON).

    Example:
        store = PaperSourceStore(Path("output_toml"))
        for path in store.discover():
            paper = store.load(path)
    """

    def __init__(self, papers_dir: Path):
        self.papers_dir = Path(papers_dir)

    def discover(self) -> list[Path]:
        """Pending sources, sorted by file name."""
        if not self.papers_dir.is_dir():
            logger.warning(f"Papers directory not found: {self.papers_dir}")
            return []
        return sorted(
            p for p in self.papers_dir.iterdir()
            if p.is_file() and p.suffix.lower() in SOURCE_SUFFIXES
        )

    def load(self, path: Path) -> Paper:
        """Parse one source file.

        Raises:
            PaperLoadError: If the file cannot be read or does not describe a paper
        """
        try:
            if path.suffix.lower() == ".json":
                data = json.loads(path.read_text(encoding="utf-8"))
            else:
                with path.open("rb") as f:
                    data = tomllib.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
            raise PaperLoadError(f"Cannot read paper source: {e}", path=str(path)) from e

        try:
            return Paper.model_validate(data)
        except ValidationError as e:
            raise PaperLoadError(f"Invalid paper source: {e}", path=str(path)) from e

    def remove(self, path: Path) -> None:
        """Delete a processed source. A file that is already gone is not an error."""
        path.unlink(missing_ok=True)
        logger.info(f"Removed paper source {path}")


def build_contexts(
    paper: Paper,
    paper_id: str,
    subject_code: str,
    stage: str,
    paper_index: int = 1,
) -> tuple[QuestionContext, ...]:
    """Assign row positions and question numbers to every row of a paper."""
    contexts = []
    number = 0
    for i, question in enumerate(paper.stemlist):
        if not question.is_title:
            number += 1
        contexts.append(
            QuestionContext(
                paper_id=paper_id,
                subject_code=subject_code,
                stage=stage,
                paper_index=paper_index,
                position=i + 1,
                number=number,
                is_title=question.is_title,
                screenshot=question.screenshot,
            )
        )
    return tuple(contexts)


def prepare_paper(
    path: Path,
    paper: Paper,
    paper_index: int = 1,
    default_stage: str = DEFAULT_STAGE,
) -> PaperJob:
    """Validate a loaded paper and build its question contexts.

    Raises:
        PaperLoadError: If the paper has no id or an unrecognized subject
    """
    if not paper.page_id:
        raise PaperLoadError("Paper has no page_id", path=str(path))

    subject_code = find_subject_code(paper.subject)
    if subject_code is None:
        raise PaperLoadError(f"Unrecognized subject: {paper.subject!r}", path=str(path))

    stage = paper.stage or default_stage
    contexts = build_contexts(paper, paper.page_id, subject_code, stage, paper_index)
    return PaperJob(
        path=path,
        paper=paper,
        paper_id=paper.page_id,
        subject_code=subject_code,
        contexts=contexts,
    )
