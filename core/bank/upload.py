"""Screenshot upload to the bank's attachment storage."""

import base64
import binascii
import logging
import uuid

import httpx

from core.utils import BaseAsyncHttpClient, json_body, safe_http_request

from .errors import UploadError

logger = logging.getLogger(__name__)


def decode_screenshot(screenshot: str) -> bytes:
    """Decode a base64 screenshot, with or without a ``data:`` URL prefix.

    Args:
        screenshot: ``data:image/png;base64,...`` or bare base64

    Returns:
        Raw image bytes

    Raises:
        UploadError: If the payload is empty or not valid base64
    """
    data = screenshot.strip()
    if data.startswith("data:"):
        marker = data.find("base64,")
        if marker >= 0:
            data = data[marker + len("base64,"):]
        elif "," in data:
            data = data.split(",", 1)[1]
    if not data:
        raise UploadError("Screenshot is empty")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UploadError(f"Screenshot is not valid base64: {e}") from e


def is_hosted_url(screenshot: str) -> bool:
    return screenshot.startswith(("http://", "https://"))


class ScreenshotUploader(BaseAsyncHttpClient):
    """Upload question screenshots and return their durable URL.

    The endpoint takes a multipart ``file`` field and answers
    ``{"data": {"url": "..."}}``.
    """

    def __init__(
        self,
        upload_url: str,
        timeout: float = 30.0,
        token: str | None = None,
        cookies: list[str] | None = None,
        transport=None,
    ):
        url = httpx.URL(upload_url)
        super().__init__(
            base_url=f"{url.scheme}://{url.netloc.decode()}",
            timeout=timeout,
            token=token,
            cookies=cookies,
            transport=transport,
        )
        self.upload_path = url.path or "/"

    async def upload(self, screenshot: str) -> str:
        """Store one screenshot.

        Raises:
            UploadError: On decode failure, transport failure or a reply
                without a URL
        """
        if is_hosted_url(screenshot):
            return screenshot

        image = decode_screenshot(screenshot)
        filename = f"{uuid.uuid4().hex}.png"
        client = await self._get_client()
        response = await safe_http_request(
            client,
            "POST",
            self.upload_path,
            UploadError,
            files={"file": (filename, image, "image/png")},
            headers=self._request_headers(),
        )
        body = json_body(response, UploadError)
        data = body.get("data")
        url = data.get("url") if isinstance(data, dict) else data
        if not isinstance(url, str) or not url:
            raise UploadError(f"Upload reply has no URL: {body}", endpoint=self.base_url)

        logger.debug(f"Uploaded screenshot ({len(image)} bytes) to {url}")
        return url
