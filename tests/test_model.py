"""Tests for the in-memory expression model."""

import json

import pytest
from unittest.mock import Mock

from mathundo.model import ApplyOptions, ExpressionModel, InvalidSnapshotError


class TestSerialization:
    def test_caret_selection(self):
        model = ExpressionModel("x+1")
        assert model.serialize() == "x+1"
        assert json.loads(model.serialize_selection()) == [{"relation": "body", "offset": 3}]

    def test_range_selection_keeps_direction(self):
        model = ExpressionModel("x+1")
        model.set_selection(3, 1)
        path = json.loads(model.serialize_selection())
        assert path == [{"relation": "body", "offset": 3, "extent": -2}]

    def test_unbalanced_initial_content(self):
        with pytest.raises(InvalidSnapshotError):
            ExpressionModel("\\frac{1}{2")


class TestApplyText:
    def test_replace_all(self):
        model = ExpressionModel("x+1")
        model.apply_text("y", ApplyOptions(insertion_mode="replaceAll"))
        assert model.content == "y"
        assert model.focus == 1

    def test_replace_selection(self):
        model = ExpressionModel("x+1")
        model.set_selection(0, 1)
        model.apply_text("y", ApplyOptions())
        assert model.content == "y+1"
        assert (model.anchor, model.focus) == (1, 1)

    def test_insert_before_and_after(self):
        model = ExpressionModel("b")
        model.apply_text("a", ApplyOptions(insertion_mode="insertBefore"))
        model.apply_text("c", ApplyOptions(insertion_mode="insertAfter"))
        assert model.content == "abc"

    def test_selection_modes(self):
        model = ExpressionModel("")
        model.apply_text("xy", ApplyOptions(selection_mode="before"))
        assert model.focus == 0
        model.apply_text("z", ApplyOptions(insertion_mode="replaceAll", selection_mode="item"))
        assert model.selected_text() == "z"

    def test_smart_fence_closes_open_fences(self):
        model = ExpressionModel("")
        model.apply_text("f(", ApplyOptions())
        assert model.content == "f()"
        assert model.focus == 2

    def test_typing_closing_fence_moves_past_it(self):
        model = ExpressionModel("")
        model.insert("(")
        model.insert("x")
        model.insert(")")
        assert model.content == "(x)"
        assert model.focus == 3

    def test_replace_all_before_closing_fence(self):
        model = ExpressionModel("x)")
        model.set_selection(1)
        model.apply_text(")", ApplyOptions(insertion_mode="replaceAll"))
        assert model.content == ")"
        assert model.focus == 1

    def test_insert_after_before_closing_fence(self):
        model = ExpressionModel("x)")
        model.set_selection(1)
        model.apply_text(")", ApplyOptions(insertion_mode="insertAfter"))
        assert model.content == "x))"

    def test_smart_fence_disabled(self):
        model = ExpressionModel("")
        model.apply_text("f(", ApplyOptions(smart_fence=False))
        assert model.content == "f("

    def test_escaped_fence_not_closed(self):
        model = ExpressionModel("")
        model.apply_text("\\{\\(", ApplyOptions())
        assert model.content == "\\{\\("

    def test_rejects_unbalanced_group(self):
        model = ExpressionModel("x")
        with pytest.raises(InvalidSnapshotError):
            model.apply_text("}", ApplyOptions())
        assert model.content == "x"

    def test_rejects_other_formats(self):
        model = ExpressionModel("x")
        with pytest.raises(InvalidSnapshotError):
            model.apply_text("x", ApplyOptions(format="ascii-math"))

    def test_unknown_insertion_mode(self):
        model = ExpressionModel("x")
        with pytest.raises(ValueError):
            model.apply_text("y", ApplyOptions(insertion_mode="sideways"))


class TestApplySelection:
    def test_string_path(self):
        model = ExpressionModel("x+1")
        model.apply_selection('[{"relation": "body", "offset": 0, "extent": 2}]')
        assert model.selected_text() == "x+"

    def test_parsed_path(self):
        model = ExpressionModel("x+1")
        model.apply_selection([{"relation": "body", "offset": 1}])
        assert (model.anchor, model.focus) == (1, 1)

    @pytest.mark.parametrize("path", [
        "not json",
        "{}",
        "[]",
        '[{"relation": "numer", "offset": 0}]',
        '[{"relation": "body", "offset": 9}]',
        '[{"relation": "body", "offset": 1, "extent": 5}]',
        '[{"relation": "body", "offset": "1"}]',
        '[{"relation": "body", "offset": true}]',
    ])
    def test_malformed_paths(self, path):
        model = ExpressionModel("x+1")
        with pytest.raises(InvalidSnapshotError):
            model.apply_selection(path)
        assert model.focus == 3


class TestNotifications:
    def test_listeners_called_on_change(self):
        model = ExpressionModel("")
        listener = Mock()
        model.add_listener(listener)
        model.insert("x")
        listener.assert_called_once_with(model)

    def test_model_flag_suppresses(self):
        model = ExpressionModel("")
        listener = Mock()
        model.add_listener(listener)
        model.suppress_change_notifications = True
        model.insert("x")
        model.apply_selection([{"relation": "body", "offset": 0}])
        listener.assert_not_called()

    def test_option_overrides_model_flag(self):
        model = ExpressionModel("")
        listener = Mock()
        model.add_listener(listener)
        model.apply_text("x", ApplyOptions(suppress_change_notifications=True))
        listener.assert_not_called()
        model.suppress_change_notifications = True
        model.apply_text("y", ApplyOptions(suppress_change_notifications=False))
        listener.assert_called_once_with(model)

    def test_remove_listener(self):
        model = ExpressionModel("")
        listener = Mock()
        model.add_listener(listener)
        model.remove_listener(listener)
        model.insert("x")
        listener.assert_not_called()


class TestEditing:
    def test_delete_backward_and_forward(self):
        model = ExpressionModel("abc")
        model.set_selection(1)
        assert model.delete_backward()
        assert model.content == "bc"
        assert model.delete_forward()
        assert model.content == "c"
        assert not model.delete_backward()

    def test_delete_selection(self):
        model = ExpressionModel("x+1")
        model.select_all()
        assert model.delete_forward()
        assert model.content == ""

    def test_delete_refuses_to_split_group(self):
        model = ExpressionModel("x^{2}")
        assert not model.delete_backward()
        assert model.content == "x^{2}"

    def test_movement(self):
        model = ExpressionModel("abc")
        model.move_left()
        assert model.focus == 2
        model.move_to_start()
        model.move_right()
        assert model.focus == 1
        model.move_to_end()
        assert model.focus == 3

    def test_movement_collapses_selection(self):
        model = ExpressionModel("abc")
        model.set_selection(1, 3)
        model.move_left()
        assert (model.anchor, model.focus) == (1, 1)
        model.set_selection(3, 1)
        model.move_right()
        assert (model.anchor, model.focus) == (3, 3)

    def test_set_selection_out_of_range(self):
        model = ExpressionModel("abc")
        with pytest.raises(ValueError):
            model.set_selection(4)
