"""Types for question bank search results."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchSource(str, Enum):
    """Question bank a candidate set came from."""

    PRIMARY = "k12"
    SECONDARY = "xueke"


class Candidate(BaseModel):
    """One bank question returned by a search.

    ``raw`` is the complete bank record; it is submitted verbatim (plus
    paper bookkeeping fields) when this candidate is accepted.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(default="", description="Question content as returned by the bank")
    similarity: float | None = Field(default=None, description="Bank-side similarity score")
    images: list[str] = Field(default_factory=list, description="Image URLs of the question")
    raw: dict[str, Any] = Field(default_factory=dict, description="Opaque bank record")

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Candidate":
        """Build a candidate from a bank search record.

        Raises:
            ValueError: If the similarity score is not a number
        """
        similarity = record.get("xkwQuestionSimilarity")
        images = record.get("img_urls") or []
        if isinstance(images, str):
            images = [images]
        return cls(
            text=str(record.get("questionContent") or ""),
            similarity=float(similarity) if similarity is not None else None,
            images=[url for url in images if isinstance(url, str) and url],
            raw=record,
        )
