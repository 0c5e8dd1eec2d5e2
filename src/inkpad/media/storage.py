"""Write-once storage for transcoded images."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from inkpad.domain.exceptions import StorageError

MAX_NAME_ATTEMPTS = 100


def make_filename(now: datetime, extension: str = "webp") -> str:
    """``image-2026-10-17T12-00-00-123456Z.webp``: ISO timestamp, filesystem-safe."""
    stamp = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return f"image-{stamp.replace(':', '-').replace('.', '-')}.{extension}"


class MediaStore:
    """Directory of stored assets plus the URL prefix they are served under."""

    def __init__(self, root: Path, url_prefix: str = "/uploads") -> None:
        self.root = Path(root)
        self.url_prefix = "/" + url_prefix.strip("/")

    def ensure_dir(self) -> None:
        # exist_ok tolerates a concurrent first-time creation
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create upload directory {self.root}: {exc}") from exc

    def write(self, filename: str, data: bytes) -> Path:
        """Create a new file holding ``data``; existing assets are never replaced.

        If ``filename`` is taken, ``<stem>-1<suffix>``, ``<stem>-2<suffix>``, ... are tried.
        The returned path carries the name actually used.
        """
        self.ensure_dir()
        stem, suffix = Path(filename).stem, Path(filename).suffix
        for attempt in range(MAX_NAME_ATTEMPTS):
            name = filename if attempt == 0 else f"{stem}-{attempt}{suffix}"
            path = self.root / name
            try:
                with path.open("xb") as fh:
                    fh.write(data)
            except FileExistsError:
                continue
            except OSError as exc:
                raise StorageError(f"Cannot write {path}: {exc}") from exc
            return path
        raise StorageError(f"No free name for {filename} after {MAX_NAME_ATTEMPTS} attempts")

    def url_for(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"
