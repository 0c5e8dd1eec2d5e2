"""HTTP side of the upload flow.

``HttpUploadTransport`` is the ``UploadTransport`` a host injects into an
``UploadSlot`` to stream bytes to the ingestion endpoint. ``MediaClient`` is
a small synchronous client for the same API. Only imports from
``inkpad.api.schemas`` — never the server internals.
"""
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import httpx

from inkpad.api.schemas.media import IngestResponse
from inkpad.domain.exceptions import APIError, TransportError, UploadCancelledError
from inkpad.upload.files import CancellationToken, SelectedFile
from inkpad.upload.transport import ProgressCallback

_DEFAULT_BASE_URL = "http://127.0.0.1:8000"
_INGEST_PATH = "/api/image-gallery"


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    try:
        detail = resp.json().get("error", resp.text)
    except Exception:
        detail = resp.text
    raise APIError(resp.status_code, detail)


class HttpUploadTransport:
    """Streams the file as a raw request body, reporting bytes sent as progress.

    Pass ``client`` to reuse a connection pool (or to point the transport at
    an in-process app); otherwise a client is opened per upload.
    """

    def __init__(
        self,
        base_url: str = _DEFAULT_BASE_URL,
        *,
        client: httpx.AsyncClient | None = None,
        path: str = _INGEST_PATH,
        chunk_size: int = 64 * 1024,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url
        self._client = client
        self._path = path
        self._chunk_size = chunk_size
        self._timeout = timeout

    async def upload(
        self,
        file: SelectedFile,
        on_progress: ProgressCallback,
        token: CancellationToken,
    ) -> str | None:
        if self._client is not None:
            return await self._send(self._client, file, on_progress, token)
        async with httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout) as client:
            return await self._send(client, file, on_progress, token)

    async def _send(
        self,
        client: httpx.AsyncClient,
        file: SelectedFile,
        on_progress: ProgressCallback,
        token: CancellationToken,
    ) -> str | None:
        data = file.data
        total = len(data)

        async def body() -> AsyncIterator[bytes]:
            sent = 0
            for start in range(0, total, self._chunk_size):
                token.raise_if_cancelled()
                chunk = data[start:start + self._chunk_size]
                sent += len(chunk)
                on_progress(sent * 100 / total)
                yield chunk

        request = asyncio.ensure_future(client.post(
            self._path,
            content=body(),
            headers={
                "Content-Type": file.mime_type,
                "Content-Length": str(total),
            },
        ))
        cancelled = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait({request, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancelled.cancel()

        if request not in done:
            request.cancel()
            raise UploadCancelledError()

        try:
            resp = request.result()
        except UploadCancelledError:
            raise
        except httpx.HTTPError as exc:
            raise TransportError(f"Upload failed: {exc}") from exc

        _raise_for_status(resp)
        token.raise_if_cancelled()
        return IngestResponse.model_validate(resp.json()).url


class MediaClient:
    """Synchronous client for the media API."""

    def __init__(self, base_url: str = _DEFAULT_BASE_URL, *, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client(base_url=base_url, timeout=30.0)

    def ingest(self, content: bytes, content_type: str = "application/octet-stream") -> IngestResponse:
        resp = self._client.post(
            _INGEST_PATH, content=content, headers={"Content-Type": content_type},
        )
        _raise_for_status(resp)
        return IngestResponse.model_validate(resp.json())

    def health(self) -> dict:
        resp = self._client.get("/health")
        _raise_for_status(resp)
        return resp.json()

    def close(self) -> None:
        self._client.close()
