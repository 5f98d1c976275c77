import base64
import logging
from dataclasses import dataclass

import httpx
from fastapi import Request, UploadFile

from ..utils.error_handlers import UpstreamError, get_error_message

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/utils/upload"


@dataclass(frozen=True)
class UploadResult:
    url: str
    public_id: str


async def file_to_data_uri(file: UploadFile) -> str:
    """Encode an uploaded file as a `data:<mime>;base64,...` buffer for the upload relay."""
    content = await file.read()
    if not content:
        raise UpstreamError(get_error_message("buffer_failed"))
    content_type = file.content_type or "application/octet-stream"
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


class UploadClient:
    """
    HTTP client for the upload relay (utils service).

    `upload()` sends `{buffer, public_id?}`; when `public_id` is given the relay
    deletes that asset before storing the new one.
    """

    def __init__(self, base_url: str, *, timeout_s: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout_s = timeout_s
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout_s, transport=self.transport
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
        self._client = None

    async def upload(self, buffer: str, public_id: str | None = None) -> UploadResult:
        if self._client is None:
            raise RuntimeError("UploadClient is not connected")

        body = {"buffer": buffer}
        if public_id:
            body["public_id"] = public_id

        try:
            r = await self._client.post(UPLOAD_PATH, json=body)
        except httpx.HTTPError as e:
            logger.error("Upload relay request failed: %s", e)
            raise UpstreamError(get_error_message("upload_failed")) from None

        if r.status_code >= 400:
            logger.error("Upload relay returned %s: %s", r.status_code, r.text[:500])
            raise UpstreamError(get_error_message("upload_failed"))

        data = r.json() or {}
        if not data.get("url") or not data.get("public_id"):
            logger.error("Upload relay response missing url/public_id: %s", data)
            raise UpstreamError(get_error_message("upload_failed"))
        return UploadResult(url=str(data["url"]), public_id=str(data["public_id"]))


def get_upload_client(request: Request) -> UploadClient:
    return request.app.state.uploads
