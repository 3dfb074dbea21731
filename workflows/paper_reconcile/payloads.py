"""Submission payloads for /question/new/save."""

import copy
import random
import string
from typing import Any

from .types import Question, QuestionContext

_CODE_ALPHABET = string.ascii_letters + string.digits


def random_code(length: int = 4) -> str:
    """Short alphanumeric code for options and blanks.

    Codes only need to be distinct within one question; a collision is
    cosmetic.
    """
    return "".join(random.choices(_CODE_ALPHABET, k=length))


def option_title(index: int) -> str:
    return string.ascii_uppercase[index]


def _paper_fields(ctx: QuestionContext) -> dict[str, Any]:
    return {
        "paperId": ctx.paper_id,
        "inputType": 1,
        "questionIndex": ctx.position,
        "addFlag": 1,
        "sysCode": 1,
    }


def title_payload(ctx: QuestionContext, question: Question) -> dict[str, Any]:
    """Section heading row."""
    return {
        **_paper_fields(ctx),
        "questionType": "2",
        "relationType": 0,
        "questionSource": 3,
        "structureType": "biaoti",
        "questionInfo": {"stem": f"<span>{question.stem}</span>"},
    }


def matched_payload(ctx: QuestionContext, record: dict[str, Any]) -> dict[str, Any]:
    """Accepted bank record, relinked to this paper position."""
    payload = copy.deepcopy(record)
    payload.update(_paper_fields(ctx))
    payload.update({"questionType": "1", "relationType": 1, "questionSource": 2})
    return payload


def _p(text: str) -> str:
    return f"<p>{text}</p>\n"


def _authored_fields(ctx: QuestionContext) -> dict[str, Any]:
    return {
        **_paper_fields(ctx),
        "questionProperty": {"knwIds": []},
        "questionSource": 2,
        "questionType": 1,
        "relationType": 0,
    }


def single_choice_payload(
    ctx: QuestionContext,
    stem: str,
    options: list[str],
    answer_index: int,
    analysis: str,
) -> dict[str, Any]:
    return {
        "structureType": "danxuan",
        "businessType": "CSX-DANXUAN",
        "questionInfo": {
            "stem": _p(stem),
            "options": [
                {
                    "optCode": random_code(),
                    "htmlCode": f'<span class="qml-op"><span>{text}</span></span>',
                    "title": option_title(i),
                    "flagAnswer": "1" if i == answer_index else "0",
                }
                for i, text in enumerate(options)
            ],
            "answer": option_title(answer_index),
            "analysis": _p(analysis),
        },
        **_authored_fields(ctx),
    }


def free_response_payload(
    ctx: QuestionContext, stem: str, answer: str, analysis: str
) -> dict[str, Any]:
    return {
        "structureType": "zhuguan",
        "businessType": "CSX-JIEDA",
        "questionInfo": {
            "stem": _p(stem),
            "options": [],
            "answer": _p(answer),
            "analysis": _p(analysis),
        },
        **_authored_fields(ctx),
    }


def fill_blank_payload(
    ctx: QuestionContext,
    stem_parts: list[str],
    blanks: list[str],
    analysis: str,
) -> dict[str, Any]:
    """Fill-in-the-blank question.

    ``stem_parts`` is the stem split at its blank markers, so it has one
    more element than ``blanks``.
    """
    codes = [random_code() for _ in blanks]
    stem = stem_parts[0]
    for code, part in zip(codes, stem_parts[1:]):
        stem += f'<span class="qml-bk" data-id="{code}">____</span>{part}'
    return {
        "structureType": "tiankong",
        "businessType": "CSX-TIANKONG",
        "questionInfo": {
            "stem": _p(stem),
            "options": [],
            "blanks": [
                {"blankCode": code, "answer": _p(answer)} for code, answer in zip(codes, blanks)
            ],
            "answer": _p("；".join(blanks)),
            "analysis": _p(analysis),
        },
        **_authored_fields(ctx),
    }
