"""Records for one upload attempt: the selected file, its cancellation token,
the FileItem tracking it, and the registry of local preview URLs.
"""
from __future__ import annotations

import asyncio
import mimetypes
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

from inkpad.domain.exceptions import InkpadError, UploadCancelledError


@dataclass(frozen=True)
class SelectedFile:
    """A file picked or dropped by the user."""

    name: str
    data: bytes = field(repr=False)
    mime_type: str = "application/octet-stream"
    size: int = -1

    def __post_init__(self) -> None:
        # size may be declared up front (browser File.size); default to the buffer length
        if self.size < 0:
            object.__setattr__(self, "size", len(self.data))

    @classmethod
    def from_path(cls, path: Path | str) -> "SelectedFile":
        path = Path(path)
        mime, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            data=path.read_bytes(),
            mime_type=mime or "application/octet-stream",
        )


class CancellationToken:
    """Single-use abort handle owned by one FileItem.

    Once triggered it stays triggered; every state-mutating callback checks it.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> bool:
        """Trigger the token. Returns False if it was already triggered."""
        if self._event.is_set():
            return False
        self._event.set()
        return True

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise UploadCancelledError()

    async def wait(self) -> None:
        await self._event.wait()


class SlotStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class FileItem:
    id: str
    file: SelectedFile
    token: CancellationToken = field(compare=False, repr=False)
    status: SlotStatus = SlotStatus.UPLOADING
    progress: int = 0
    url: str | None = None
    error: InkpadError | None = None
    preview_url: str | None = None

    @classmethod
    def create(cls, file: SelectedFile, preview_url: str | None = None) -> "FileItem":
        return cls(
            id=str(uuid.uuid4()),
            file=file,
            token=CancellationToken(),
            preview_url=preview_url,
        )

    @property
    def aborted(self) -> bool:
        """An error whose cause is an explicit cancel rather than a real failure."""
        return self.status is SlotStatus.ERROR and isinstance(self.error, UploadCancelledError)

    @property
    def terminal(self) -> bool:
        return self.status in (SlotStatus.SUCCESS, SlotStatus.ERROR)

    def evolve(self, **changes) -> "FileItem":
        return replace(self, **changes)


class ObjectUrlRegistry:
    """Local ``blob:`` URLs handed to the UI for previewing a selected file."""

    def __init__(self) -> None:
        self._urls: dict[str, SelectedFile] = {}

    def create(self, file: SelectedFile) -> str:
        url = f"blob:inkpad/{uuid.uuid4()}"
        self._urls[url] = file
        return url

    def resolve(self, url: str) -> SelectedFile | None:
        return self._urls.get(url)

    def revoke(self, url: str) -> None:
        self._urls.pop(url, None)

    def __len__(self) -> int:
        return len(self._urls)

    def __contains__(self, url: object) -> bool:
        return url in self._urls
