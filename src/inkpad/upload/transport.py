"""Pluggable upload transport.

The host injects an ``UploadTransport`` when it builds a slot. ``run_transport``
wraps every call with the rules the slot relies on: a missing transport is a
configuration error, progress is clamped, cancellation is checked before a
URL is handed back, and an empty result is an error.
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from inkpad.domain.exceptions import (
    InkpadError,
    NoUrlReturnedError,
    TransportError,
    UploadFunctionNotConfiguredError,
)
from inkpad.upload.files import CancellationToken, SelectedFile

ProgressCallback = Callable[[int], None]
UploadFunction = Callable[[SelectedFile, ProgressCallback, CancellationToken], Awaitable[str | None]]


@runtime_checkable
class UploadTransport(Protocol):
    """Moves the bytes of one file to storage and returns its URL."""

    async def upload(
        self,
        file: SelectedFile,
        on_progress: ProgressCallback,
        token: CancellationToken,
    ) -> str | None:
        ...


class FunctionTransport:
    """Adapter turning a plain async upload function into an ``UploadTransport``."""

    def __init__(self, fn: UploadFunction) -> None:
        self._fn = fn

    async def upload(
        self,
        file: SelectedFile,
        on_progress: ProgressCallback,
        token: CancellationToken,
    ) -> str | None:
        return await self._fn(file, on_progress, token)


def clamp_percent(value: float) -> int:
    return max(0, min(100, int(round(value))))


async def run_transport(
    transport: UploadTransport | None,
    file: SelectedFile,
    on_progress: ProgressCallback,
    token: CancellationToken,
) -> str:
    """Run ``transport`` for ``file`` and return the URL it produced.

    Raises:
        UploadFunctionNotConfiguredError: no transport was injected.
        UploadCancelledError: the token fired before the result was handed back.
        NoUrlReturnedError: the transport finished without a URL.
        TransportError: any other failure, with the original message kept.
    """
    if transport is None:
        raise UploadFunctionNotConfiguredError()

    def report(percent: float) -> None:
        if not token.cancelled:
            on_progress(clamp_percent(percent))

    try:
        url = await transport.upload(file, report, token)
    except (InkpadError, asyncio.CancelledError):
        raise
    except Exception as exc:
        raise TransportError(str(exc) or "Upload failed") from exc

    token.raise_if_cancelled()
    if not url:
        raise NoUrlReturnedError()
    return url
