"""Async driver for one upload slot.

Holds the current ``FileItem``, feeds events through the pure machine in
``inkpad.upload.machine`` and performs the intents it returns.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from inkpad.domain.exceptions import InkpadError, UploadCancelledError
from inkpad.upload import machine
from inkpad.upload.files import FileItem, ObjectUrlRegistry, SelectedFile, SlotStatus
from inkpad.upload.transport import UploadTransport, run_transport
from inkpad.upload.validator import SlotConfig

logger = logging.getLogger(__name__)


class UploadSlot:
    """A single attachment point holding at most one upload attempt.

    ``select()`` on a busy slot replaces the previous attempt: an in-flight
    transfer is cancelled and its preview released before the new one starts.
    """

    def __init__(
        self,
        config: SlotConfig,
        transport: UploadTransport | None,
        *,
        on_success: Callable[[str], None] | None = None,
        on_error: Callable[[InkpadError], None] | None = None,
        on_change: Callable[[FileItem | None], None] | None = None,
        previews: ObjectUrlRegistry | None = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._on_success = on_success
        self._on_error = on_error
        self._on_change = on_change
        self.previews = previews if previews is not None else ObjectUrlRegistry()
        self._item: FileItem | None = None

    @property
    def item(self) -> FileItem | None:
        return self._item

    @property
    def status(self) -> SlotStatus:
        return machine.status_of(self._item)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def select(self, files: Sequence[SelectedFile]) -> str | None:
        """Validate ``files`` and upload the first one.

        Returns the URL on success, ``None`` on validation failure, transport
        failure or cancellation. Errors reach the host through ``on_error``.
        """
        if self._item is not None:
            self.clear()

        preview_url = self.previews.create(files[0]) if files else None
        transition = machine.select(self._item, files, self.config, preview_url)
        self._apply(transition)

        for intent in transition.intents:
            if isinstance(intent, machine.InvokeTransport):
                return await self._transfer(intent.item)
        return None

    def cancel(self) -> None:
        self._apply(machine.cancel(self._item))

    def clear(self) -> None:
        self._apply(machine.clear(self._item))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _transfer(self, item: FileItem) -> str | None:
        def on_progress(percent: int) -> None:
            self._apply(machine.progress(self._item, item.id, percent))

        try:
            url = await run_transport(self._transport, item.file, on_progress, item.token)
        except InkpadError as exc:
            self._apply(machine.fail(self._item, item.id, exc))
            return None
        except asyncio.CancelledError:
            self._apply(machine.fail(self._item, item.id, UploadCancelledError()))
            raise

        self._apply(machine.succeed(self._item, item.id, url))
        current = self._item
        if current is not None and current.id == item.id and current.status is SlotStatus.SUCCESS:
            return url
        return None

    def _apply(self, transition: machine.Transition) -> None:
        changed = transition.state is not self._item
        self._item = transition.state
        for intent in transition.intents:
            if isinstance(intent, machine.CancelTransfer):
                if intent.token.cancel():
                    logger.info("Upload cancelled")
            elif isinstance(intent, machine.RevokeObjectUrl):
                self.previews.revoke(intent.url)
            elif isinstance(intent, machine.NotifySuccess):
                if self._on_success is not None:
                    self._on_success(intent.url)
            elif isinstance(intent, machine.NotifyError):
                logger.warning("Upload failed: %s", intent.error.message)
                if self._on_error is not None:
                    self._on_error(intent.error)
        if changed and self._on_change is not None:
            self._on_change(self._item)
