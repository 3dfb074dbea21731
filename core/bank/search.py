"""
Async client for the question bank text search endpoints.

Two banks sit behind the same API host:

- POST /api/questionsimilar/queryByText: primary (own) bank
- POST /api/third/xkw/question/v2/text-search: secondary (partner) bank

Both answer ``{"data": [record, ...]}``. An empty or missing ``data`` is
retried a few times before being reported as a genuine miss.
"""

import asyncio
import logging
from typing import Any

from core.utils import BaseAsyncHttpClient, json_body, safe_http_request

from .errors import SearchError
from .types import Candidate, SearchSource

logger = logging.getLogger(__name__)

PRIMARY_SEARCH_PATH = "/api/questionsimilar/queryByText"
SECONDARY_SEARCH_PATH = "/api/third/xkw/question/v2/text-search"

SEARCH_ATTEMPTS = 3
SEARCH_RETRY_DELAY = 0.5


class QuestionBankClient(BaseAsyncHttpClient):
    """
    Async client for primary and secondary question bank search.

    Example:
        async with QuestionBankClient(config.api_base_url, token=config.bank_token) as bank:
            candidates = await bank.search(SearchSource.PRIMARY, "3", "54", "已知函数...")
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        token: str | None = None,
        cookies: list[str] | None = None,
        attempts: int = SEARCH_ATTEMPTS,
        retry_delay: float = SEARCH_RETRY_DELAY,
        transport=None,
    ):
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            token=token,
            cookies=cookies,
            transport=transport,
        )
        self.attempts = max(1, attempts)
        self.retry_delay = retry_delay

    async def search(
        self, source: SearchSource, stage: str, subject: str, text: str
    ) -> list[Candidate]:
        """Search one bank by free text.

        Args:
            source: Which bank to query
            stage: Stage code (e.g. "3")
            subject: Subject code (e.g. "54")
            text: OCR text of the question

        Returns:
            Candidates in bank order; empty when every attempt came back empty

        Raises:
            SearchError: If every attempt failed at the transport level or
                returned malformed records
        """
        if source is SearchSource.PRIMARY:
            path = PRIMARY_SEARCH_PATH
            payload: dict[str, Any] = {"text": text, "subject": subject, "stage": stage}
        else:
            path = SECONDARY_SEARCH_PATH
            payload = {"stage": stage, "subject": subject, "imagePath": None, "text": text}

        last_error: SearchError | None = None
        transport_failures = 0

        for attempt in range(1, self.attempts + 1):
            logger.debug(
                f"{source.value} search attempt {attempt}/{self.attempts}: "
                f"stage={stage}, subject={subject}, text={text[:40]!r}"
            )
            try:
                candidates = await self._post_search(path, payload)
            except SearchError as e:
                last_error = e
                transport_failures += 1
                logger.warning(f"{source.value} search attempt {attempt} failed: {e}")
            else:
                if candidates:
                    logger.info(f"{source.value} search returned {len(candidates)} candidates")
                    return candidates
                logger.info(f"{source.value} search returned no data (attempt {attempt})")

            if attempt < self.attempts:
                await asyncio.sleep(self.retry_delay)

        if transport_failures == self.attempts and last_error is not None:
            raise SearchError(
                f"{source.value} search failed after {self.attempts} attempts: {last_error}",
                endpoint=path,
            )
        return []

    async def _post_search(self, path: str, payload: dict[str, Any]) -> list[Candidate]:
        client = await self._get_client()
        response = await safe_http_request(
            client, "POST", path, SearchError, json=payload, headers=self._request_headers()
        )
        body = json_body(response, SearchError)
        data = body.get("data")
        if not isinstance(data, list):
            return []
        try:
            return [Candidate.from_record(r) for r in data if isinstance(r, dict)]
        except (ValueError, TypeError) as e:
            raise SearchError(f"Malformed search record: {e}", endpoint=path) from e
