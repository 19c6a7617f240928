"""Textual front end for editing an expression with undo/redo."""

from pathlib import Path
from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, Input, Static

from .editor import ExpressionEditor
from .undo import CallbackHooks, TransitionKind


class MathUndoApp(App):
    """Single-line expression editor backed by ExpressionEditor."""

    CSS = """
    Input {
        border: none;
    }
    #status {
        height: 1;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+s", "save", "Save"),
        Binding("ctrl+z", "undo", "Undo", priority=True),
        Binding("ctrl+y", "redo", "Redo", priority=True),
    ]

    def __init__(self, filename: Optional[str] = None, value: str = ""):
        super().__init__()
        self.filename = filename
        if filename and Path(filename).exists():
            value = Path(filename).read_text(encoding="utf-8").strip()
        hooks = CallbackHooks(on_did_change=self._on_history_changed)
        if filename:
            self.editor = ExpressionEditor.for_document(filename, value, hooks=hooks)
        else:
            self.editor = ExpressionEditor(value, hooks=hooks)
        self.last_transition: Optional[TransitionKind] = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Input(value=self.editor.value, placeholder="LaTeX expression", id="expression")
        yield Static(self.status_text(), id="status")
        yield Footer()

    def on_mount(self) -> None:
        if self.filename:
            self.sub_title = f"Editing: {self.filename}"
        self.query_one("#expression", Input).focus()

    def status_text(self) -> str:
        history = self.editor.history
        text = f"step {history.cursor + 1}/{len(history)}"
        if self.last_transition is not None:
            text = f"{text}  last: {self.last_transition.value}"
        if self.editor.status_message:
            text = f"{self.editor.status_message}  {text}"
        return text

    def _on_history_changed(self, owner, kind: TransitionKind) -> None:
        self.last_transition = kind

    def _refresh_status(self) -> None:
        if self.is_running:
            self.query_one("#status", Static).update(self.status_text())

    def _sync_input(self) -> None:
        """Show the editor's value without recording it as a new edit."""
        field = self.query_one("#expression", Input)
        with self.prevent(Input.Changed):
            field.value = self.editor.value
            field.cursor_position = self.editor.model.focus

    def on_input_changed(self, event: Input.Changed) -> None:
        self.editor.status_message = None
        self.editor.set_value(event.value, caret=event.input.cursor_position)
        self._refresh_status()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.editor.commit()
        self._refresh_status()

    def action_undo(self) -> None:
        self.editor.execute('undo')
        self._sync_input()
        self._refresh_status()

    def action_redo(self) -> None:
        self.editor.execute('redo')
        self._sync_input()
        self._refresh_status()

    def action_save(self) -> None:
        """Save the expression and close the current undo step."""
        self.editor.commit()
        self._refresh_status()
        if not self.filename:
            self.notify("No filename set", severity="warning")
            return
        try:
            Path(self.filename).write_text(self.editor.value + "\n", encoding="utf-8")
        except OSError as e:
            self.notify(f"Error saving: {e}", severity="error")
            return
        self.notify(f"Saved to {self.filename}")


def main():
    """Run the Textual app."""
    import sys
    filename = sys.argv[1] if len(sys.argv) > 1 else None
    MathUndoApp(filename=filename).run()


if __name__ == "__main__":
    main()
