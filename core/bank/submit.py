"""
Async client for the grading backend's submission endpoints.

- POST /question/new/save: store one question of a paper
- POST /paper/process/submit: mark a whole paper as submitted
"""

import logging
from typing import Any

from core.utils import BaseAsyncHttpClient, json_body, safe_http_request

from .errors import SubmitError

logger = logging.getLogger(__name__)

SAVE_QUESTION_PATH = "/question/new/save"
SUBMIT_PAPER_PATH = "/paper/process/submit"


class SubmitClient(BaseAsyncHttpClient):
    """Submit resolved questions and whole-paper signals."""

    async def save_question(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Store one question payload.

        Raises:
            SubmitError: On transport failure or an explicit rejection
        """
        return await self._post(SAVE_QUESTION_PATH, payload)

    async def submit_paper(self, paper_id: str) -> dict[str, Any]:
        """Signal that every question of a paper has been stored.

        Raises:
            SubmitError: On transport failure or an explicit rejection
        """
        logger.info(f"Submitting whole paper {paper_id}")
        return await self._post(SUBMIT_PAPER_PATH, {"paperId": paper_id, "type": "NEW_INPUT"})

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        client = await self._get_client()
        response = await safe_http_request(
            client, "POST", path, SubmitError, json=payload, headers=self._request_headers()
        )
        body = json_body(response, SubmitError)
        if body.get("success") is False:
            message = body.get("message") or body.get("msg") or "rejected"
            raise SubmitError(f"{path} rejected: {message}", endpoint=path)
        return body
