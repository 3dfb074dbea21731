"""Tests for the question bank HTTP clients against a mocked transport."""

import base64
import json

import httpx
import pytest

from core.bank import (
    PRIMARY_SEARCH_PATH,
    SECONDARY_SEARCH_PATH,
    QuestionBankClient,
    ScreenshotUploader,
    SearchError,
    SearchSource,
    SubmitClient,
    SubmitError,
    UploadError,
    decode_screenshot,
)

BASE_URL = "https://bank.test"


def _transport(handler, log: list | None = None) -> httpx.MockTransport:
    def wrapped(request: httpx.Request) -> httpx.Response:
        if log is not None:
            log.append(request)
        return handler(request)

    return httpx.MockTransport(wrapped)


class TestQuestionBankClient:
    async def test_primary_search_request_and_candidates(self):
        requests = []
        records = [
            {"questionContent": "已知函数 f(x)", "questionId": "A1", "img_urls": ["https://i/1.png"]},
            {"questionContent": "另一题", "questionId": "A2", "xkwQuestionSimilarity": 0.82},
        ]
        transport = _transport(lambda r: httpx.Response(200, json={"data": records}), requests)

        async with QuestionBankClient(
            BASE_URL, token="tok", cookies=["c1", "c2"], transport=transport
        ) as bank:
            candidates = await bank.search(SearchSource.PRIMARY, "3", "54", "已知函数")
            await bank.search(SearchSource.PRIMARY, "3", "54", "已知函数")

        assert requests[0].url.path == PRIMARY_SEARCH_PATH
        assert json.loads(requests[0].content) == {"text": "已知函数", "subject": "54", "stage": "3"}
        assert requests[0].headers["tikutoken"] == "tok"
        assert [r.headers["cookie"] for r in requests] == ["c1", "c2"]

        assert [c.raw["questionId"] for c in candidates] == ["A1", "A2"]
        assert candidates[0].images == ["https://i/1.png"]
        assert candidates[1].similarity == pytest.approx(0.82)

    async def test_secondary_search_path(self):
        requests = []
        transport = _transport(
            lambda r: httpx.Response(200, json={"data": [{"questionContent": "x"}]}), requests
        )

        async with QuestionBankClient(BASE_URL, transport=transport) as bank:
            await bank.search(SearchSource.SECONDARY, "3", "54", "text")

        assert requests[0].url.path == SECONDARY_SEARCH_PATH
        body = json.loads(requests[0].content)
        assert body["imagePath"] is None
        assert "cookie" not in requests[0].headers

    async def test_empty_data_is_retried_then_empty(self):
        requests = []
        transport = _transport(lambda r: httpx.Response(200, json={"data": []}), requests)

        async with QuestionBankClient(
            BASE_URL, attempts=3, retry_delay=0, transport=transport
        ) as bank:
            candidates = await bank.search(SearchSource.PRIMARY, "3", "54", "t")

        assert candidates == []
        assert len(requests) == 3

    async def test_empty_then_data(self):
        replies = iter([{"data": None}, {"data": [{"questionContent": "found"}]}])
        transport = _transport(lambda r: httpx.Response(200, json=next(replies)))

        async with QuestionBankClient(BASE_URL, retry_delay=0, transport=transport) as bank:
            candidates = await bank.search(SearchSource.PRIMARY, "3", "54", "t")

        assert [c.text for c in candidates] == ["found"]

    async def test_transport_failures_raise(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with QuestionBankClient(
            BASE_URL, attempts=2, retry_delay=0, transport=_transport(handler)
        ) as bank:
            with pytest.raises(SearchError):
                await bank.search(SearchSource.PRIMARY, "3", "54", "t")

    async def test_server_error_then_empty_is_a_miss(self):
        replies = iter([httpx.Response(502, text="bad gateway"), httpx.Response(200, json={})])
        transport = _transport(lambda r: next(replies))

        async with QuestionBankClient(
            BASE_URL, attempts=2, retry_delay=0, transport=transport
        ) as bank:
            assert await bank.search(SearchSource.PRIMARY, "3", "54", "t") == []

    async def test_malformed_similarity_is_a_search_failure(self):
        requests = []
        record = {"questionContent": "x", "xkwQuestionSimilarity": "N/A"}
        transport = _transport(lambda r: httpx.Response(200, json={"data": [record]}), requests)

        async with QuestionBankClient(
            BASE_URL, attempts=3, retry_delay=0, transport=transport
        ) as bank:
            with pytest.raises(SearchError, match="Malformed"):
                await bank.search(SearchSource.PRIMARY, "3", "54", "t")

        assert len(requests) == 3

    async def test_malformed_then_valid_record(self):
        replies = iter([
            {"data": [{"questionContent": "x", "xkwQuestionSimilarity": "N/A"}]},
            {"data": [{"questionContent": "ok", "xkwQuestionSimilarity": "0.5"}]},
        ])
        transport = _transport(lambda r: httpx.Response(200, json=next(replies)))

        async with QuestionBankClient(
            BASE_URL, attempts=2, retry_delay=0, transport=transport
        ) as bank:
            candidates = await bank.search(SearchSource.PRIMARY, "3", "54", "t")

        assert candidates[0].text == "ok"
        assert candidates[0].similarity == pytest.approx(0.5)

    async def test_loose_image_fields(self):
        records = [
            {"questionContent": "a", "img_urls": "https://i/only.png"},
            {"questionContent": "b", "img_urls": ["https://i/1.png", 7, None, ""]},
        ]
        transport = _transport(lambda r: httpx.Response(200, json={"data": records}))

        async with QuestionBankClient(BASE_URL, transport=transport) as bank:
            candidates = await bank.search(SearchSource.PRIMARY, "3", "54", "t")

        assert candidates[0].images == ["https://i/only.png"]
        assert candidates[1].images == ["https://i/1.png"]


class TestScreenshotUploader:
    async def test_uploads_multipart_and_returns_url(self):
        requests = []
        transport = _transport(
            lambda r: httpx.Response(200, json={"data": {"url": "https://cdn.test/a.png"}}),
            requests,
        )
        screenshot = "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()

        async with ScreenshotUploader(
            f"{BASE_URL}/attachment/upload", token="tok", transport=transport
        ) as uploader:
            url = await uploader.upload(screenshot)

        assert url == "https://cdn.test/a.png"
        assert requests[0].url.path == "/attachment/upload"
        assert requests[0].headers["content-type"].startswith("multipart/form-data")
        assert b"png-bytes" in requests[0].content

    async def test_hosted_url_passes_through(self):
        requests = []
        transport = _transport(lambda r: httpx.Response(500), requests)

        async with ScreenshotUploader(f"{BASE_URL}/up", transport=transport) as uploader:
            url = await uploader.upload("https://cdn.test/existing.png")

        assert url == "https://cdn.test/existing.png"
        assert requests == []

    async def test_reply_without_url(self):
        transport = _transport(lambda r: httpx.Response(200, json={"data": {}}))

        async with ScreenshotUploader(f"{BASE_URL}/up", transport=transport) as uploader:
            with pytest.raises(UploadError):
                await uploader.upload(base64.b64encode(b"x").decode())

    def test_decode_rejects_garbage(self):
        with pytest.raises(UploadError):
            decode_screenshot("data:image/png;base64,@@not base64@@")
        with pytest.raises(UploadError):
            decode_screenshot("   ")

    def test_decode_bare_base64(self):
        assert decode_screenshot(base64.b64encode(b"abc").decode()) == b"abc"


class TestSubmitClient:
    async def test_save_question(self):
        requests = []
        transport = _transport(lambda r: httpx.Response(200, json={"success": True}), requests)

        async with SubmitClient(BASE_URL, transport=transport) as client:
            await client.save_question({"paperId": "P", "questionIndex": 1})

        assert requests[0].url.path == "/question/new/save"
        assert json.loads(requests[0].content)["questionIndex"] == 1

    async def test_submit_paper_body(self):
        requests = []
        transport = _transport(lambda r: httpx.Response(200, json={"success": True}), requests)

        async with SubmitClient(BASE_URL, transport=transport) as client:
            await client.submit_paper("P-9")

        assert requests[0].url.path == "/paper/process/submit"
        assert json.loads(requests[0].content) == {"paperId": "P-9", "type": "NEW_INPUT"}

    async def test_explicit_rejection(self):
        transport = _transport(
            lambda r: httpx.Response(200, json={"success": False, "message": "duplicate"})
        )

        async with SubmitClient(BASE_URL, transport=transport) as client:
            with pytest.raises(SubmitError, match="duplicate"):
                await client.save_question({"questionIndex": 1})

    async def test_http_error(self):
        transport = _transport(lambda r: httpx.Response(503, text="maintenance"))

        async with SubmitClient(BASE_URL, transport=transport) as client:
            with pytest.raises(SubmitError, match="503"):
                await client.submit_paper("P")
