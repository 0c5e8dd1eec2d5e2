"""Media ingestion pipeline: sniff -> size ceiling -> transcode -> persist.

Stateless per request. The detected format comes from the image bytes
themselves; client-supplied names and content types are never consulted.
"""
from __future__ import annotations

import io
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from inkpad.config import Settings, settings
from inkpad.domain.exceptions import (
    EmptyPayloadError,
    FormatError,
    PayloadTooLargeError,
    UnsupportedFormatError,
)
from inkpad.media.storage import MediaStore, make_filename

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_FORMATS = ("jpeg", "png", "webp", "gif", "tiff")
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_QUALITY = 80

# Pillow reports multi-picture camera JPEGs as MPO
_FORMAT_ALIASES = {"mpo": "jpeg"}


@dataclass(frozen=True)
class IngestionResult:
    url: str
    filename: str
    path: Path
    source_format: str
    source_bytes: int
    stored_bytes: int


def sniff_format(data: bytes) -> str | None:
    """Return the lowercase image format of ``data``, or None if it is not an image."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            fmt = (image.format or "").lower()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        return None
    return _FORMAT_ALIASES.get(fmt, fmt) or None


def transcode_to_webp(data: bytes, quality: int = DEFAULT_QUALITY) -> bytes:
    """Re-encode ``data`` as lossy WebP. Multi-frame inputs keep their first frame."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.seek(0)
            image.load()
            has_alpha = "A" in image.getbands() or "transparency" in image.info
            target_mode = "RGBA" if has_alpha else "RGB"
            frame = image if image.mode == target_mode else image.convert(target_mode)
            output = io.BytesIO()
            frame.save(output, format="WEBP", quality=quality)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, EOFError) as exc:
        raise FormatError(f"Could not decode image: {exc}") from exc
    return output.getvalue()


class MediaIngestionPipeline:
    def __init__(
        self,
        store: MediaStore,
        *,
        max_bytes: int = DEFAULT_MAX_BYTES,
        quality: int = DEFAULT_QUALITY,
        allowed_formats: Iterable[str] = DEFAULT_ALLOWED_FORMATS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._max_bytes = max_bytes
        self._quality = quality
        self._allowed = frozenset(f.lower() for f in allowed_formats)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def ingest(self, data: bytes) -> IngestionResult:
        """Validate, transcode and store one image.

        Raises:
            EmptyPayloadError: ``data`` is empty.
            UnsupportedFormatError: sniffed format is missing or not allowed.
            PayloadTooLargeError: ``data`` is over the ceiling.
            FormatError: the image could not be decoded for transcoding.
            StorageError: the transcoded bytes could not be written.
        """
        if not data:
            raise EmptyPayloadError()

        fmt = sniff_format(data)
        if fmt not in self._allowed:
            raise UnsupportedFormatError(fmt)

        if len(data) > self._max_bytes:
            raise PayloadTooLargeError(self._max_bytes)

        webp = transcode_to_webp(data, self._quality)
        path = self._store.write(make_filename(self._clock()), webp)
        filename = path.name
        logger.info(
            "Stored %s (%s, %d bytes -> %d bytes)", filename, fmt, len(data), len(webp),
        )
        return IngestionResult(
            url=self._store.url_for(filename),
            filename=filename,
            path=path,
            source_format=fmt,
            source_bytes=len(data),
            stored_bytes=len(webp),
        )


def build_pipeline(cfg: Settings | None = None) -> MediaIngestionPipeline:
    """Pipeline wired from application settings."""
    cfg = cfg or settings
    store = MediaStore(cfg.upload_dir, cfg.url_prefix)
    return MediaIngestionPipeline(
        store,
        max_bytes=cfg.MAX_UPLOAD_BYTES,
        quality=cfg.WEBP_QUALITY,
        allowed_formats=cfg.ALLOWED_FORMATS,
    )
