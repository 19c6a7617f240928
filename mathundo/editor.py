"""Expression editor controller tying the model to its undo history."""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from .commands import CommandRegistry
from .constants import HistoryConstants
from .model import ApplyOptions, ExpressionModel
from .settings_persistence import get_persistence, resolve_maximum_depth
from .undo import HistoryManager, LifecycleHooks


class ExpressionEditor:
    """Editable math expression with undo/redo."""

    def __init__(
        self,
        value: str = "",
        hooks: Optional[LifecycleHooks] = None,
        settings: Optional[Dict[str, Any]] = None,
    ):
        settings = settings or {}
        self.model = ExpressionModel(value)
        self.hooks = hooks
        coalesce = settings.get('coalesce_typing')
        self.coalesce_typing = coalesce if isinstance(coalesce, bool) else True
        self.history = HistoryManager(
            self.model, owner=self, maximum_depth=resolve_maximum_depth(settings))
        self.command_registry = CommandRegistry()
        self.status_message: Optional[str] = None
        # The initial value is the floor of the history: it can't be undone
        self.history.start_recording()
        self.history.snapshot()

    @classmethod
    def for_document(cls, document_path: str, value: str = "",
                     hooks: Optional[LifecycleHooks] = None) -> "ExpressionEditor":
        """Create an editor using the settings stored for document_path."""
        return cls(value, hooks=hooks, settings=get_persistence().load_settings(document_path))

    @property
    def value(self) -> str:
        return self.model.content

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def execute(self, name: str, argument: Any = None) -> bool:
        """Run a registered command; return True if the document changed."""
        return self.command_registry.execute(self, name, argument)

    def undo(self) -> bool:
        """Step back one entry; return False if there was nothing to undo."""
        if self.history.undo(self.hooks):
            self.status_message = HistoryConstants.UNDONE_MESSAGE
            return True
        self.status_message = HistoryConstants.NOTHING_TO_UNDO_MESSAGE
        return False

    def redo(self) -> bool:
        """Step forward one entry; return False if there was nothing to redo."""
        if self.history.redo(self.hooks):
            self.status_message = HistoryConstants.REDONE_MESSAGE
            return True
        self.status_message = HistoryConstants.NOTHING_TO_REDO_MESSAGE
        return False

    def set_value(self, text: str, caret: Optional[int] = None) -> bool:
        """Replace the whole expression as part of a typing burst.

        Args:
            text: New expression
            caret: Caret offset to restore after the replacement

        Returns:
            True if the document changed
        """
        if caret is None:
            return self.execute('replace_all', text)
        return self.execute('replace_all', (text, caret))

    def commit(self):
        """Close the current typing burst as its own undo step."""
        self.execute('commit')

    @contextmanager
    def preview(self, text: str) -> Iterator[ExpressionModel]:
        """Temporarily show text, then put back the previous content and selection.

        Neither the preview nor the restore is recorded in the history.
        """
        saved = self.history.save()
        self.model.apply_text(text, ApplyOptions(
            insertion_mode="replaceAll", smart_fence=False, suppress_change_notifications=True))
        try:
            yield self.model
        finally:
            self.history.restore(saved, suppress_change_notifications=True)
