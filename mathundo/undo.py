"""Linear undo/redo history for an expression document.

The history is a bounded list of full-state snapshots plus a cursor that
names the current entry. Entries above the cursor form the redo region and
are thrown away by the next snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from .constants import HistoryConstants
from .model import ApplyOptions, DocumentAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    content: str
    selection: str


class TransitionKind(Enum):
    UNDO = "undo"
    REDO = "redo"
    SNAPSHOT = "snapshot"


class LifecycleHooks:
    """Notifications around history transitions.

    Both methods are optional to override and do nothing by default. They
    run synchronously and must not call back into the history manager.
    """

    def before_transition(self, owner: Any, kind: TransitionKind) -> None:
        pass

    def after_transition(self, owner: Any, kind: TransitionKind) -> None:
        pass


TransitionListener = Callable[[Any, TransitionKind], None]


class CallbackHooks(LifecycleHooks):
    """Hooks built from two optional plain callables."""

    def __init__(
        self,
        on_will_change: Optional[TransitionListener] = None,
        on_did_change: Optional[TransitionListener] = None,
    ):
        self._on_will_change = on_will_change
        self._on_did_change = on_did_change

    def before_transition(self, owner: Any, kind: TransitionKind) -> None:
        if self._on_will_change is not None:
            self._on_will_change(owner, kind)

    def after_transition(self, owner: Any, kind: TransitionKind) -> None:
        if self._on_did_change is not None:
            self._on_did_change(owner, kind)


_NO_HOOKS = LifecycleHooks()


class HistoryManager:
    def __init__(
        self,
        document: DocumentAdapter,
        owner: Any = None,
        maximum_depth: int = HistoryConstants.MAXIMUM_DEPTH,
    ):
        if not isinstance(maximum_depth, int) or isinstance(maximum_depth, bool) or maximum_depth < 1:
            raise ValueError(f"maximum_depth must be a positive integer, got {maximum_depth!r}")
        self._document = document
        self._owner = owner
        self._maximum_depth = maximum_depth
        # One-way latch: there is no way to stop recording once started
        self._recording = False
        self._coalesce_pending = False
        self._entries: list[Snapshot] = []
        self._cursor: int = -1
        self.reset()

    @property
    def entries(self) -> tuple[Snapshot, ...]:
        return tuple(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def maximum_depth(self) -> int:
        return self._maximum_depth

    @property
    def recording(self) -> bool:
        return self._recording

    @property
    def coalesce_pending(self) -> bool:
        return self._coalesce_pending

    def __len__(self) -> int:
        return len(self._entries)

    def reset(self) -> None:
        self._entries = []
        self._cursor = -1

    def start_recording(self) -> None:
        self._recording = True

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def undo(
        self,
        hooks: Optional[LifecycleHooks] = None,
        suppress_change_notifications: Optional[bool] = None,
    ) -> bool:
        """Step back to the previous entry.

        Returns False, without side effects, when there is nothing to undo.
        """
        if not self.can_undo():
            return False
        if hooks is None:
            hooks = _NO_HOOKS
        hooks.before_transition(self._owner, TransitionKind.UNDO)
        # Restore first, move the cursor only once the document accepted it
        self.restore(self._entries[self._cursor - 1], suppress_change_notifications)
        self._cursor -= 1
        logger.debug("undo: cursor=%d entries=%d", self._cursor, len(self._entries))
        hooks.after_transition(self._owner, TransitionKind.UNDO)
        self._coalesce_pending = False
        return True

    def redo(
        self,
        hooks: Optional[LifecycleHooks] = None,
        suppress_change_notifications: Optional[bool] = None,
    ) -> bool:
        """Step forward to the next entry.

        Returns False, without side effects, when there is nothing to redo.
        """
        if not self.can_redo():
            return False
        if hooks is None:
            hooks = _NO_HOOKS
        hooks.before_transition(self._owner, TransitionKind.REDO)
        self._cursor += 1
        self.restore(self._entries[self._cursor], suppress_change_notifications)
        logger.debug("redo: cursor=%d entries=%d", self._cursor, len(self._entries))
        hooks.after_transition(self._owner, TransitionKind.REDO)
        self._coalesce_pending = False
        return True

    def pop(self) -> None:
        if self.can_undo():
            self._cursor -= 1
            self._entries.pop()

    def snapshot(self, hooks: Optional[LifecycleHooks] = None) -> None:
        """Push the current content and selection onto the history.

        Does nothing until start_recording() has been called.
        """
        if not self._recording:
            return
        if hooks is None:
            hooks = _NO_HOOKS
        hooks.before_transition(self._owner, TransitionKind.SNAPSHOT)
        # Drop any entries that are part of the redo region
        del self._entries[self._cursor + 1:]
        self._entries.append(self.save())
        self._cursor += 1
        # Forget the oldest entry when over capacity
        if len(self._entries) > self._maximum_depth:
            self._entries.pop(0)
            self._cursor -= 1
            logger.debug("snapshot: evicted oldest entry (maximum_depth=%d)", self._maximum_depth)
        logger.debug("snapshot: cursor=%d entries=%d", self._cursor, len(self._entries))
        hooks.after_transition(self._owner, TransitionKind.SNAPSHOT)
        self._coalesce_pending = False

    def snapshot_and_coalesce(self, hooks: Optional[LifecycleHooks] = None) -> None:
        """Snapshot, replacing the previous entry if it was also coalesced.

        A burst of calls with no plain snapshot(), undo() or redo() in
        between leaves a single entry holding the latest state.
        """
        if self._coalesce_pending:
            self.pop()
        self.snapshot(hooks)
        self._coalesce_pending = True

    def end_coalescing(self) -> None:
        """Make the next snapshot_and_coalesce() start a new entry."""
        self._coalesce_pending = False

    def save(self) -> Snapshot:
        """Capture the document's content and selection.

        Pass the result to restore() to return to it later. The history is
        not affected.
        """
        return Snapshot(
            content=self._document.serialize(),
            selection=self._document.serialize_selection(),
        )

    def restore(
        self,
        snapshot: Optional[Snapshot],
        suppress_change_notifications: Optional[bool] = None,
    ) -> None:
        """Apply a snapshot from save() or from the history to the document.

        None restores an empty document with the selection at the start.
        The history is not affected. Errors raised by the document while
        applying the snapshot propagate to the caller.
        """
        was_suppressing = self._document.suppress_change_notifications
        if suppress_change_notifications is not None:
            self._document.suppress_change_notifications = suppress_change_notifications
        try:
            self._document.apply_text(
                snapshot.content if snapshot is not None else "",
                ApplyOptions(
                    format=HistoryConstants.RESTORE_FORMAT,
                    mode=HistoryConstants.RESTORE_MODE,
                    insertion_mode="replaceAll",
                    selection_mode="after",
                    smart_fence=False,
                    suppress_change_notifications=suppress_change_notifications,
                ),
            )
            self._document.apply_selection(
                snapshot.selection if snapshot is not None else HistoryConstants.ROOT_SELECTION_PATH
            )
        finally:
            self._document.suppress_change_notifications = was_suppressing
