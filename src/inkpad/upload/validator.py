"""Pre-flight checks on a selection. Pure: no I/O, no state."""
from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, Field

from inkpad.domain.exceptions import FileTooLargeError, NoFileSelectedError, TooManyFilesError
from inkpad.upload.files import SelectedFile


class SlotConfig(BaseModel):
    model_config = {"frozen": True}

    max_size: int = Field(gt=0, description="Maximum file size in bytes")
    limit: int = Field(1, ge=1, description="Maximum number of files per selection")
    accept: str = "image/*"


def validate_selection(files: Sequence[SelectedFile], config: SlotConfig) -> SelectedFile:
    """Return the single file to upload, or raise an ``UploadValidationError``.

    Only the first file is uploaded; extra files within ``limit`` are dropped.
    """
    if not files:
        raise NoFileSelectedError()
    if len(files) > config.limit:
        raise TooManyFilesError(config.limit)
    candidate = files[0]
    if candidate.size > config.max_size:
        raise FileTooLargeError(config.max_size)
    return candidate
