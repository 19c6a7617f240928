"""Tests for restore() against a mocked document adapter."""

import pytest
from unittest.mock import Mock

from mathundo.constants import HistoryConstants
from mathundo.model import DocumentAdapter, InvalidSnapshotError
from mathundo.undo import HistoryManager, Snapshot


@pytest.fixture
def document():
    doc = Mock(spec=DocumentAdapter)
    doc.suppress_change_notifications = False
    doc.serialize.return_value = "x"
    doc.serialize_selection.return_value = '[{"relation": "body", "offset": 1}]'
    return doc


class TestRestoreOptions:
    """Options passed to the adapter."""

    def test_replaces_everything_without_smart_fence(self, document):
        history = HistoryManager(document)
        history.restore(Snapshot("y+(", "sel"))

        text, options = document.apply_text.call_args.args
        assert text == "y+("
        assert options.format == "latex"
        assert options.mode == "math"
        assert options.insertion_mode == "replaceAll"
        assert options.selection_mode == "after"
        assert options.smart_fence is False
        assert options.suppress_change_notifications is None
        document.apply_selection.assert_called_once_with("sel")

    def test_absent_snapshot_uses_root_selection(self, document):
        history = HistoryManager(document)
        history.restore(None)

        assert document.apply_text.call_args.args[0] == ""
        document.apply_selection.assert_called_once_with(HistoryConstants.ROOT_SELECTION_PATH)

    def test_content_applied_before_selection(self, document):
        history = HistoryManager(document)
        history.restore(Snapshot("y", "sel"))
        names = [c[0] for c in document.method_calls]
        assert names == ["apply_text", "apply_selection"]


class TestSuppressFlag:
    """Scoped override of the adapter's suppress flag."""

    def test_override_applies_during_restore(self, document):
        seen = []
        document.apply_text.side_effect = lambda text, options: seen.append(
            document.suppress_change_notifications)
        document.apply_selection.side_effect = lambda path: seen.append(
            document.suppress_change_notifications)

        history = HistoryManager(document)
        history.restore(Snapshot("y", "sel"), suppress_change_notifications=True)

        assert seen == [True, True]
        assert document.suppress_change_notifications is False
        assert document.apply_text.call_args.args[1].suppress_change_notifications is True

    def test_unset_override_keeps_flag(self, document):
        document.suppress_change_notifications = True
        seen = []
        document.apply_text.side_effect = lambda text, options: seen.append(
            document.suppress_change_notifications)

        history = HistoryManager(document)
        history.restore(Snapshot("y", "sel"))

        assert seen == [True]
        assert document.suppress_change_notifications is True

    def test_flag_restored_when_adapter_fails(self, document):
        document.apply_selection.side_effect = InvalidSnapshotError("bad path")

        history = HistoryManager(document)
        with pytest.raises(InvalidSnapshotError):
            history.restore(Snapshot("y", "garbage"), suppress_change_notifications=True)

        assert document.suppress_change_notifications is False


class TestRestoreFailures:
    """Adapter errors propagate through undo and redo."""

    def test_undo_failure_propagates_and_keeps_cursor(self, document):
        history = HistoryManager(document)
        history.start_recording()
        history.snapshot()
        history.snapshot()
        document.apply_text.side_effect = InvalidSnapshotError("cannot apply")

        with pytest.raises(InvalidSnapshotError):
            history.undo()

        assert history.cursor == 1
        assert len(history) == 2

    def test_redo_failure_propagates(self, document):
        history = HistoryManager(document)
        history.start_recording()
        history.snapshot()
        history.snapshot()
        history.undo()
        document.apply_selection.side_effect = InvalidSnapshotError("cannot apply")

        with pytest.raises(InvalidSnapshotError):
            history.redo(suppress_change_notifications=True)

        # The cursor moves before the entry is applied
        assert history.cursor == 1
        assert len(history) == 2
        assert document.suppress_change_notifications is False

    def test_history_untouched_by_restore(self, document):
        history = HistoryManager(document)
        history.start_recording()
        history.snapshot()
        entries = history.entries

        history.restore(history.save())

        assert history.entries == entries
        assert history.cursor == 0
