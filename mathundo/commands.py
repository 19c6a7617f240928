"""Command pattern implementation for editor actions."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, TYPE_CHECKING

from .model import ApplyOptions, InvalidSnapshotError

if TYPE_CHECKING:
    from .editor import ExpressionEditor

logger = logging.getLogger(__name__)


class EditorCommand(ABC):
    """Base class for editor commands."""

    @abstractmethod
    def execute(self, editor: 'ExpressionEditor', argument: Any = None) -> bool:
        """Execute the command.

        Args:
            editor: Editor instance
            argument: Command argument, such as the text to insert

        Returns:
            True if the command modified the document
        """
        pass


class MovementCommand(EditorCommand):
    """Base class for selection movement commands."""

    def execute(self, editor: 'ExpressionEditor', argument: Any = None) -> bool:
        """Movement commands don't modify the document and are never recorded."""
        self._move(editor, argument)
        return False

    @abstractmethod
    def _move(self, editor: 'ExpressionEditor', argument: Any):
        pass


class MoveLeftCommand(MovementCommand):
    def _move(self, editor, argument):
        editor.model.move_left()


class MoveRightCommand(MovementCommand):
    def _move(self, editor, argument):
        editor.model.move_right()


class MoveToStartCommand(MovementCommand):
    def _move(self, editor, argument):
        editor.model.move_to_start()


class MoveToEndCommand(MovementCommand):
    def _move(self, editor, argument):
        editor.model.move_to_end()


class SelectAllCommand(MovementCommand):
    def _move(self, editor, argument):
        editor.model.select_all()


class EditCommand(EditorCommand):
    """Base class for editing commands.

    A successful edit is committed to the model first, then recorded as one
    history entry.
    """

    def execute(self, editor: 'ExpressionEditor', argument: Any = None) -> bool:
        try:
            changed = self._edit(editor, argument)
        except InvalidSnapshotError as e:
            # The model rejected the edit and is unchanged
            logger.debug("Edit rejected: %s", e)
            editor.status_message = f"Cannot insert: {e}"
            return False
        if changed:
            self._record(editor)
        return changed

    def _record(self, editor: 'ExpressionEditor'):
        editor.history.snapshot(editor.hooks)

    @abstractmethod
    def _edit(self, editor: 'ExpressionEditor', argument: Any) -> bool:
        """Perform the edit and return whether the document changed."""
        pass


class CoalescingEditCommand(EditCommand):
    """Edit whose consecutive repetitions collapse into one undo step."""

    def _record(self, editor):
        if editor.coalesce_typing:
            editor.history.snapshot_and_coalesce(editor.hooks)
        else:
            editor.history.snapshot(editor.hooks)


class InsertCommand(CoalescingEditCommand):
    def _edit(self, editor, argument):
        if not argument:
            return False
        editor.model.insert(argument)
        return True


class ReplaceAllCommand(CoalescingEditCommand):
    """Replace the whole expression.

    The argument is the new text, or a (text, caret) pair. The caret is placed
    before the edit is recorded so the history holds the real selection.
    """

    def _edit(self, editor, argument):
        caret = None
        if isinstance(argument, tuple):
            argument, caret = argument
        text = argument or ""
        if text == editor.model.content:
            return False
        editor.model.apply_text(text, ApplyOptions(insertion_mode="replaceAll", smart_fence=False))
        if caret is not None:
            editor.model.set_selection(min(max(caret, 0), len(editor.model.content)))
        return True


class PasteCommand(EditCommand):
    def _edit(self, editor, argument):
        if not argument:
            return False
        editor.model.insert(argument, smart_fence=False)
        return True


class DeleteBackwardCommand(EditCommand):
    def _edit(self, editor, argument):
        return editor.model.delete_backward()


class DeleteForwardCommand(EditCommand):
    def _edit(self, editor, argument):
        return editor.model.delete_forward()


class ClearCommand(EditCommand):
    def _edit(self, editor, argument):
        if not editor.model.content:
            return False
        editor.model.apply_text("", ApplyOptions(insertion_mode="replaceAll"))
        return True


class SystemCommand(EditorCommand):
    """Base class for history and other non-editing commands."""

    def execute(self, editor: 'ExpressionEditor', argument: Any = None) -> bool:
        """System commands don't modify document content directly."""
        self._execute_system(editor, argument)
        return False

    @abstractmethod
    def _execute_system(self, editor: 'ExpressionEditor', argument: Any):
        pass


class UndoCommand(SystemCommand):
    def _execute_system(self, editor, argument):
        editor.undo()


class RedoCommand(SystemCommand):
    def _execute_system(self, editor, argument):
        editor.redo()


class CommitCommand(SystemCommand):
    """End a coalescing burst so the next edit starts a new undo step."""

    def _execute_system(self, editor, argument):
        history = editor.history
        if history.cursor >= 0 and history.entries[history.cursor] == history.save():
            # Already recorded; only close the burst
            history.end_coalescing()
        else:
            history.snapshot(editor.hooks)


class CommandRegistry:
    """Registry mapping command names to commands."""

    def __init__(self):
        self._commands: Dict[str, EditorCommand] = {}
        self._setup_default_commands()

    def _setup_default_commands(self):
        # Movement commands
        self.register('move_left', MoveLeftCommand())
        self.register('move_right', MoveRightCommand())
        self.register('move_to_start', MoveToStartCommand())
        self.register('move_to_end', MoveToEndCommand())
        self.register('select_all', SelectAllCommand())

        # Editing commands
        self.register('insert', InsertCommand())
        self.register('replace_all', ReplaceAllCommand())
        self.register('paste', PasteCommand())
        self.register('delete_backward', DeleteBackwardCommand())
        self.register('delete_forward', DeleteForwardCommand())
        self.register('clear', ClearCommand())

        # History commands
        self.register('undo', UndoCommand())
        self.register('redo', RedoCommand())
        self.register('commit', CommitCommand())

    def register(self, name: str, command: EditorCommand):
        self._commands[name] = command

    def get_command(self, name: str) -> Optional[EditorCommand]:
        return self._commands.get(name)

    def execute(self, editor: 'ExpressionEditor', name: str, argument: Any = None) -> bool:
        """Execute the named command.

        Returns:
            True if the document was modified

        Raises:
            KeyError: if no command is registered under name
        """
        command = self.get_command(name)
        if command is None:
            raise KeyError(name)
        return command.execute(editor, argument)
