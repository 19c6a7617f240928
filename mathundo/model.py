import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

SelectionPath = List[dict]

OPENING_FENCES = {"(": ")", "[": "]"}
CLOSING_FENCES = set(OPENING_FENCES.values())


class InvalidSnapshotError(ValueError):
    """Raised when content or a selection path cannot be applied to a document."""


@dataclass(frozen=True)
class ApplyOptions:
    format: str = "latex"
    mode: str = "math"
    insertion_mode: str = "replaceSelection"  # replaceAll, replaceSelection, insertBefore, insertAfter
    selection_mode: str = "after"  # after, before, item
    smart_fence: bool = True
    suppress_change_notifications: Optional[bool] = None


class DocumentAdapter(ABC):
    """The document operations a HistoryManager relies on."""

    suppress_change_notifications: bool = False

    @abstractmethod
    def serialize(self) -> str:
        """Return the full content as text."""

    @abstractmethod
    def serialize_selection(self) -> str:
        """Return the full selection as text."""

    @abstractmethod
    def apply_text(self, text: str, options: ApplyOptions) -> None:
        """Insert text according to options.

        Raise InvalidSnapshotError if the text cannot be applied.
        """

    @abstractmethod
    def apply_selection(self, path: Union[str, SelectionPath]) -> None:
        """Set the selection from a serialized or parsed selection path.

        Raise InvalidSnapshotError if the path does not fit the content.
        """


def _check_groups(text: str):
    """Raise InvalidSnapshotError if braces in text are unbalanced."""
    depth = 0
    escaped = False
    for i, ch in enumerate(text):
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                raise InvalidSnapshotError(f"Unexpected '}}' at offset {i}")
    if depth:
        raise InvalidSnapshotError(f"{depth} unclosed '{{' group(s)")


def _missing_fences(text: str) -> str:
    """Return the closing fences needed to balance ( and [ in text."""
    pending = []
    escaped = False
    for ch in text:
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
        elif ch in OPENING_FENCES:
            pending.append(OPENING_FENCES[ch])
        elif ch in CLOSING_FENCES and pending and pending[-1] == ch:
            pending.pop()
    return "".join(reversed(pending))


class ExpressionModel(DocumentAdapter):
    """In-memory LaTeX expression with a caret or range selection.

    The selection is an anchor and a focus offset into the content. A
    selection path has a single "body" segment whose "offset" is the anchor
    and whose optional "extent" is the signed distance to the focus.
    """

    content: str
    anchor: int
    focus: int

    def __init__(self, content: str = ""):
        _check_groups(content)
        self.content = content
        self.anchor = len(content)
        self.focus = len(content)
        self.suppress_change_notifications = False
        self._listeners: list[Callable[["ExpressionModel"], None]] = []

    # Listeners

    def add_listener(self, callback: Callable[["ExpressionModel"], None]):
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[["ExpressionModel"], None]):
        self._listeners.remove(callback)

    def _notify(self, suppress: Optional[bool] = None):
        if suppress is None:
            suppress = self.suppress_change_notifications
        if suppress:
            return
        for callback in list(self._listeners):
            callback(self)

    # Selection helpers

    @property
    def selection_start(self) -> int:
        return min(self.anchor, self.focus)

    @property
    def selection_end(self) -> int:
        return max(self.anchor, self.focus)

    def has_selection(self) -> bool:
        return self.anchor != self.focus

    def selected_text(self) -> str:
        return self.content[self.selection_start:self.selection_end]

    def set_selection(self, anchor: int, focus: Optional[int] = None):
        if focus is None:
            focus = anchor
        for offset in (anchor, focus):
            if not 0 <= offset <= len(self.content):
                raise ValueError(f"Offset {offset} outside 0..{len(self.content)}")
        self.anchor = anchor
        self.focus = focus

    # DocumentAdapter

    def serialize(self) -> str:
        return self.content

    def serialize_selection(self) -> str:
        segment = {"relation": "body", "offset": self.anchor}
        if self.focus != self.anchor:
            segment["extent"] = self.focus - self.anchor
        return json.dumps([segment])

    def apply_text(self, text: str, options: ApplyOptions) -> None:
        if options.format != "latex":
            raise InvalidSnapshotError(f"Unsupported format: {options.format}")
        _check_groups(text)

        closing = _missing_fences(text) if options.smart_fence else ""
        # Typing a closing fence over the one smart fencing inserted moves past it
        if (options.smart_fence and options.insertion_mode == "replaceSelection"
                and text in CLOSING_FENCES and not self.has_selection()
                and self.content[self.focus:self.focus + 1] == text):
            self.anchor = self.focus = self.focus + 1
            self._notify(options.suppress_change_notifications)
            return

        mode = options.insertion_mode
        if mode == "replaceAll":
            before, after = "", ""
        elif mode == "replaceSelection":
            before = self.content[:self.selection_start]
            after = self.content[self.selection_end:]
        elif mode == "insertBefore":
            before, after = "", self.content
        elif mode == "insertAfter":
            before, after = self.content, ""
        else:
            raise ValueError(f"Unknown insertion mode: {mode}")

        start = len(before)
        end = start + len(text)
        self.content = before + text + closing + after

        if options.selection_mode == "after":
            self.anchor = self.focus = end
        elif options.selection_mode == "before":
            self.anchor = self.focus = start
        elif options.selection_mode == "item":
            self.anchor, self.focus = start, end + len(closing)
        else:
            raise ValueError(f"Unknown selection mode: {options.selection_mode}")

        self._notify(options.suppress_change_notifications)

    def apply_selection(self, path: Union[str, SelectionPath]) -> None:
        if isinstance(path, str):
            try:
                path = json.loads(path)
            except json.JSONDecodeError as e:
                raise InvalidSnapshotError(f"Malformed selection path: {e}") from e
        if not isinstance(path, list) or len(path) != 1 or not isinstance(path[0], dict):
            raise InvalidSnapshotError(f"Expected a single-segment selection path, got {path!r}")

        segment = path[0]
        if segment.get("relation") != "body":
            raise InvalidSnapshotError(f"Unknown relation: {segment.get('relation')!r}")
        anchor = segment.get("offset")
        extent = segment.get("extent", 0)
        for value in (anchor, extent):
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidSnapshotError(f"Selection offsets must be integers, got {value!r}")
        focus = anchor + extent
        if not (0 <= anchor <= len(self.content) and 0 <= focus <= len(self.content)):
            raise InvalidSnapshotError(
                f"Selection {anchor}..{focus} outside content of length {len(self.content)}"
            )

        self.anchor = anchor
        self.focus = focus
        self._notify()

    # Editing

    def insert(self, text: str, smart_fence: bool = True):
        self.apply_text(text, ApplyOptions(smart_fence=smart_fence))

    def delete_backward(self) -> bool:
        """Delete the selection or the character before the caret."""
        if self.has_selection():
            return self._delete_range(self.selection_start, self.selection_end)
        if self.focus == 0:
            return False
        return self._delete_range(self.focus - 1, self.focus)

    def delete_forward(self) -> bool:
        """Delete the selection or the character after the caret."""
        if self.has_selection():
            return self._delete_range(self.selection_start, self.selection_end)
        if self.focus >= len(self.content):
            return False
        return self._delete_range(self.focus, self.focus + 1)

    def _delete_range(self, start: int, end: int) -> bool:
        candidate = self.content[:start] + self.content[end:]
        # Refuse deletions that would split a {...} group
        try:
            _check_groups(candidate)
        except InvalidSnapshotError:
            return False
        self.content = candidate
        self.anchor = self.focus = start
        self._notify()
        return True

    def move_left(self):
        if self.has_selection():
            self.anchor = self.focus = self.selection_start
        elif self.focus > 0:
            self.anchor = self.focus = self.focus - 1

    def move_right(self):
        if self.has_selection():
            self.anchor = self.focus = self.selection_end
        elif self.focus < len(self.content):
            self.anchor = self.focus = self.focus + 1

    def move_to_start(self):
        self.anchor = self.focus = 0

    def move_to_end(self):
        self.anchor = self.focus = len(self.content)

    def select_all(self):
        self.anchor = 0
        self.focus = len(self.content)
