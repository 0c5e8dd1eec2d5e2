r"""Pure upload-slot state machine.

The slot state is ``FileItem | None`` (``None`` means idle). Each transition
takes the current state and returns a ``Transition``: the next state plus the
side effects the driver must perform. Nothing here touches the network, the
clock or the UI, so every rule is testable without I/O.

    idle --select--> uploading --succeed--> success --clear--> idle
                         |  \--fail-----> error ----clear--> idle
                         \----cancel----> error (aborted)
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Union

from inkpad.domain.exceptions import (
    IllegalTransitionError,
    InkpadError,
    UploadCancelledError,
    UploadValidationError,
)
from inkpad.upload.files import CancellationToken, FileItem, SelectedFile, SlotStatus
from inkpad.upload.validator import SlotConfig, validate_selection

# ---------------------------------------------------------------------------
# Side-effect intents
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CancelTransfer:
    token: CancellationToken


@dataclass(frozen=True)
class RevokeObjectUrl:
    url: str


@dataclass(frozen=True)
class InvokeTransport:
    item: FileItem


@dataclass(frozen=True)
class NotifySuccess:
    url: str


@dataclass(frozen=True)
class NotifyError:
    error: InkpadError


Intent = Union[CancelTransfer, RevokeObjectUrl, InvokeTransport, NotifySuccess, NotifyError]


@dataclass(frozen=True)
class Transition:
    state: FileItem | None
    intents: tuple[Intent, ...] = field(default_factory=tuple)


def status_of(state: FileItem | None) -> SlotStatus:
    return SlotStatus.IDLE if state is None else state.status


def _unchanged(state: FileItem | None) -> Transition:
    return Transition(state)


def _is_current(state: FileItem | None, item_id: str) -> bool:
    return state is not None and state.id == item_id and state.status is SlotStatus.UPLOADING


def _aborted(state: FileItem) -> Transition:
    return Transition(state.evolve(status=SlotStatus.ERROR, progress=0, error=UploadCancelledError()))


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def select(
    state: FileItem | None,
    files: Sequence[SelectedFile],
    config: SlotConfig,
    preview_url: str | None = None,
) -> Transition:
    """Start an upload attempt from an idle slot.

    A failed validation still produces a FileItem, already in ``error``, and
    never asks for the transport. An empty selection leaves the slot idle.
    """
    if state is not None:
        raise IllegalTransitionError(f"select() requires an idle slot, not {state.status.value}")
    try:
        candidate = validate_selection(files, config)
    except UploadValidationError as exc:
        if not files:
            return Transition(None, (NotifyError(exc),))
        item = FileItem.create(files[0], preview_url).evolve(status=SlotStatus.ERROR, error=exc)
        return Transition(item, (NotifyError(exc),))

    item = FileItem.create(candidate, preview_url)
    return Transition(item, (InvokeTransport(item),))


def progress(state: FileItem | None, item_id: str, percent: int) -> Transition:
    """Record transfer progress. Last value wins; stale or late events are ignored."""
    if not _is_current(state, item_id) or state.token.cancelled:
        return _unchanged(state)
    return Transition(state.evolve(progress=int(percent)))


def succeed(state: FileItem | None, item_id: str, url: str) -> Transition:
    if not _is_current(state, item_id):
        return _unchanged(state)
    if state.token.cancelled:
        return _aborted(state)
    item = state.evolve(status=SlotStatus.SUCCESS, progress=100, url=url)
    return Transition(item, (NotifySuccess(url),))


def fail(state: FileItem | None, item_id: str, error: InkpadError) -> Transition:
    """Terminate the current attempt with ``error``.

    If the token was already triggered the failure is reported as an abort,
    never through the error callback.
    """
    if not _is_current(state, item_id):
        return _unchanged(state)
    if state.token.cancelled or isinstance(error, UploadCancelledError):
        return _aborted(state)
    item = state.evolve(status=SlotStatus.ERROR, progress=0, error=error)
    return Transition(item, (NotifyError(error),))


def cancel(state: FileItem | None) -> Transition:
    """Abort the in-flight transfer. No-op unless uploading."""
    if state is None or state.status is not SlotStatus.UPLOADING:
        return _unchanged(state)
    aborted = _aborted(state)
    return Transition(aborted.state, (CancelTransfer(state.token),))


def clear(state: FileItem | None) -> Transition:
    """Return the slot to idle, releasing the preview URL.

    Clearing while uploading cancels the transfer first (the preview's
    remove button).
    """
    if state is None:
        return _unchanged(state)
    intents: list[Intent] = []
    if state.status is SlotStatus.UPLOADING:
        intents.append(CancelTransfer(state.token))
    if state.preview_url is not None:
        intents.append(RevokeObjectUrl(state.preview_url))
    return Transition(None, tuple(intents))
