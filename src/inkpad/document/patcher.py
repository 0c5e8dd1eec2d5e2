"""Document Patcher: swap the upload placeholder for the finished image.

The document model itself belongs to the editor; the patcher only needs the
``EditorCommands`` capability to delete a range and insert content.
"""
from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel

from inkpad.domain.exceptions import PositionResolutionError
from inkpad.logging import logger

PositionGetter = Callable[[], "int | None"]

_EXTENSION = re.compile(r"\.[^/.]+$")


@runtime_checkable
class EditorCommands(Protocol):
    def delete_range(self, start: int, end: int) -> None:
        ...

    def insert_content_at(self, position: int, content: list[dict[str, Any]]) -> None:
        ...


class ImageAttrs(BaseModel):
    src: str
    alt: str
    title: str


class ImageNode(BaseModel):
    type: Literal["image"] = "image"
    attrs: ImageAttrs

    @classmethod
    def for_upload(cls, url: str, filename: str) -> "ImageNode":
        label = image_label(filename)
        return cls(attrs=ImageAttrs(src=url, alt=label, title=label))


def image_label(filename: str) -> str:
    """Filename without its extension, used as alt and title."""
    return _EXTENSION.sub("", filename) or "unknown"


class DocumentPatcher:
    def __init__(self, editor: EditorCommands) -> None:
        self._editor = editor

    def patch(self, get_pos: PositionGetter, url: str, filename: str) -> ImageNode:
        """Replace the one-node placeholder at ``get_pos()`` with an image node.

        ``get_pos`` is the position getter captured when the placeholder was
        created; it returns None once the placeholder is gone.

        Raises:
            PositionResolutionError: the placeholder position no longer resolves.
                Nothing is inserted elsewhere and the stored asset is left as is.
        """
        pos = get_pos()
        if not isinstance(pos, int) or isinstance(pos, bool) or pos < 0:
            logger.warning("Placeholder position lost; %s is stored but not referenced", url)
            raise PositionResolutionError()

        node = ImageNode.for_upload(url, filename)
        self._editor.delete_range(pos, pos + 1)
        self._editor.insert_content_at(pos, [node.model_dump()])
        return node
