"""Upload placeholder node: one slot bound to one document position."""
from __future__ import annotations

from collections.abc import Callable, Sequence

from inkpad.document.patcher import DocumentPatcher, ImageNode, PositionGetter
from inkpad.domain.exceptions import InkpadError, NoFileSelectedError, PositionResolutionError
from inkpad.upload.files import SelectedFile
from inkpad.upload.slot import UploadSlot


class ImageUploadNode:
    """Runs an upload through ``slot`` and, only on success, patches the document."""

    def __init__(
        self,
        slot: UploadSlot,
        patcher: DocumentPatcher,
        get_pos: PositionGetter,
        *,
        on_error: Callable[[InkpadError], None] | None = None,
    ) -> None:
        self.slot = slot
        self._patcher = patcher
        self._get_pos = get_pos
        self._on_error = on_error

    async def handle_files(self, files: Sequence[SelectedFile]) -> ImageNode | None:
        url = await self.slot.select(files)
        if url is None:
            return None
        try:
            node = self._patcher.patch(self._get_pos, url, files[0].name)
        except PositionResolutionError as exc:
            if self._on_error is not None:
                self._on_error(exc)
            return None
        # the image node now owns the URL; the slot's item is consumed
        self.slot.clear()
        return node

    async def handle_picker(self, files: Sequence[SelectedFile] | None) -> ImageNode | None:
        """File-input change handler; an empty pick is reported without touching the slot."""
        if not files:
            if self._on_error is not None:
                self._on_error(NoFileSelectedError())
            return None
        return await self.handle_files(files)

    def remove(self) -> None:
        """The preview's remove button: cancel if uploading, then clear."""
        self.slot.clear()
