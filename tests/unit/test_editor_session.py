"""
Unit Tests for Editor Session
=============================

Tests for center snapping, the undo/redo history and the pure session
transitions, without any document.
"""

import pytest

from storefront.core.editor import session as s
from storefront.core.editor.geometry import Offset, Rect, Viewport, distance_label, snap_offset
from storefront.core.editor.history import History, MoveCommand, TextCommand

VIEWPORT = Viewport(1280, 800)
# Center at (600, 130); the viewport center is (640, 400)
LAYOUT = Rect(left=400, top=100, width=400, height=60)


def active_session(**kwargs) -> s.EditorSession:
    return s.enter_move_mode(s.EditorSession(**kwargs)).session


def effects_of(transition, kind):
    return [e for e in transition.effects if isinstance(e, kind)]


class TestSnapOffset:
    """Test the center snap rule."""

    def test_within_threshold_aligns_exactly(self):
        """Test that a near-center candidate is clamped to the center."""
        result = snap_offset(Offset(37, 0), LAYOUT, VIEWPORT, 8)
        assert result.snapped_x and not result.snapped_y
        assert result.offset == Offset(40, 0)

    def test_threshold_is_inclusive(self):
        """Test a candidate exactly 8px away."""
        result = snap_offset(Offset(32, 0), LAYOUT, VIEWPORT, 8)
        assert result.snapped_x
        assert result.offset.left == 40

    def test_outside_threshold_is_unchanged(self):
        """Test that far candidates pass through exactly."""
        result = snap_offset(Offset(30, 12.5), LAYOUT, VIEWPORT, 8)
        assert not result.snapped_x and not result.snapped_y
        assert result.offset == Offset(30, 12.5)

    def test_both_axes(self):
        """Test snapping on both axes at once."""
        result = snap_offset(Offset(41, 265), LAYOUT, VIEWPORT, 8)
        assert result.offset == Offset(40, 270)

    def test_distance_label_rounds_half_up(self):
        """Test label formatting."""
        assert distance_label(-2.5, 10.5) == "ΔX center: -2px, ΔY center: 11px"
        assert snap_offset(Offset(30, 0), LAYOUT, VIEWPORT, 8).label == "ΔX center: -10px, ΔY center: -270px"


class TestHistory:
    """Test the linear undo/redo history."""

    def test_push_undo_redo(self):
        """Test cursor movement."""
        first = MoveCommand("a", Offset(), Offset(1, 0))
        second = TextCommand("b", "old", "new")
        history = History().push(first).push(second)
        assert history.can_undo and not history.can_redo

        history, command = history.undo()
        assert command is second
        history, command = history.redo()
        assert command is second
        assert history.cursor == 2

    def test_push_after_undo_truncates(self):
        """Test that a new command drops the redo tail."""
        history = History().push(MoveCommand("a", Offset(), Offset(1, 0))).push(MoveCommand("a", Offset(1, 0), Offset(2, 0)))
        history, _ = history.undo()
        history = history.push(TextCommand("b", "x", "y"))
        assert len(history) == 2
        assert not history.can_redo

    def test_empty_history(self):
        """Test undo and redo with nothing recorded."""
        history = History()
        assert history.undo() == (history, None)
        assert history.redo() == (history, None)

    def test_command_wire_form(self):
        """Test the {type, id, from, to} form."""
        assert MoveCommand("a", Offset(0, 0), Offset(3, 4)).to_dict() == {
            "type": "move",
            "id": "a",
            "from": {"left": 0, "top": 0},
            "to": {"left": 3, "top": 4},
        }
        assert TextCommand("b", "x", "y").to_dict()["type"] == "text"


class TestMoveMode:
    """Test entering and leaving move mode."""

    def test_enter_installs_listeners_once(self):
        """Test that re-entering is a no-op."""
        first = s.enter_move_mode(s.EditorSession())
        assert effects_of(first, s.InstallListeners)
        again = s.enter_move_mode(first.session)
        assert again.effects == ()
        assert again.session is first.session

    def test_exit_clears_selection(self):
        """Test that leaving removes listeners and the selection."""
        session = s.select(active_session(), "h1-a").session
        transition = s.exit_move_mode(session)
        assert not transition.session.active
        assert transition.session.selection is None
        assert s.SetSelection("h1-a", None) in transition.effects
        assert effects_of(transition, s.RemoveListeners)

    def test_inactive_session_ignores_input(self):
        """Test that nothing happens outside move mode."""
        session = s.EditorSession()
        assert s.select(session, "h1-a").session is session
        assert s.press(session, "h1-a", 0, 0, LAYOUT).session is session
        assert s.nudge(session, "ArrowLeft").session is session


class TestDrag:
    """Test drag gestures."""

    def test_drag_without_snap(self):
        """Test that offset equals pointer delta plus base offset."""
        session = active_session(offsets={"h1-a": Offset(5, 5)})
        session = s.press(session, "h1-a", 100, 100, LAYOUT).session
        moved = s.move(session, 120, 90, VIEWPORT)
        assert moved.session.offset_of("h1-a") == Offset(25, -5)
        assert effects_of(moved, s.ShowDistance)

        released = s.release(moved.session, 120, 90, VIEWPORT)
        assert released.session.drag is None
        command = released.session.history.entries[-1]
        assert command == MoveCommand("h1-a", Offset(5, 5), Offset(25, -5))
        assert effects_of(released, s.HideDistance)

    def test_release_snaps(self):
        """Test that the final offset follows the snap rule."""
        session = s.press(active_session(), "h1-a", 0, 0, LAYOUT).session
        released = s.release(session, 36, 0, VIEWPORT)
        assert released.session.offset_of("h1-a") == Offset(40, 0)

    def test_release_without_movement_records_nothing(self):
        """Test that a click-like press and release leaves history empty."""
        session = s.press(active_session(), "h1-a", 10, 10, LAYOUT).session
        released = s.release(session, 10, 10, VIEWPORT)
        assert len(released.session.history) == 0

    def test_second_press_during_drag_is_ignored(self):
        """Test one gesture at a time."""
        session = s.press(active_session(), "h1-a", 0, 0, LAYOUT).session
        second = s.press(session, "p-b", 50, 50, LAYOUT)
        assert second.session is session
        assert second.session.drag.element_id == "h1-a"

    def test_press_selects(self):
        """Test that pressing selects and clears the prior marker."""
        session = s.select(active_session(), "p-b").session
        pressed = s.press(session, "h1-a", 0, 0, LAYOUT)
        assert pressed.session.selection == "h1-a"
        assert s.SetSelection("p-b", "h1-a") in pressed.effects

    def test_press_on_node_being_edited_is_ignored(self):
        """Test that drag and inline edit exclude each other per node."""
        session = s.begin_text_edit(active_session(), "h1-a", "Title").session
        assert s.press(session, "h1-a", 0, 0, LAYOUT).session is session


class TestNudge:
    """Test keyboard nudges."""

    @pytest.mark.parametrize(
        "key,large,expected",
        [
            ("ArrowLeft", False, Offset(-1, 0)),
            ("ArrowRight", True, Offset(10, 0)),
            ("ArrowUp", False, Offset(0, -1)),
            ("ArrowDown", True, Offset(0, 10)),
        ],
    )
    def test_arrow_steps(self, key, large, expected):
        """Test step sizes and directions."""
        session = s.select(active_session(), "h1-a").session
        assert s.nudge(session, key, large).session.offset_of("h1-a") == expected

    def test_each_nudge_is_one_history_entry(self):
        """Test per-keypress history."""
        session = s.select(active_session(), "h1-a").session
        for _ in range(3):
            session = s.nudge(session, "ArrowRight").session
        assert len(session.history) == 3
        assert session.offset_of("h1-a") == Offset(3, 0)

    def test_nudge_requires_selection_and_no_editing(self):
        """Test ignored nudges."""
        session = active_session()
        assert s.nudge(session, "ArrowRight").session is session
        editing = s.begin_text_edit(session, "h1-a", "x").session
        assert s.nudge(editing, "ArrowRight").session is editing

    def test_other_keys_ignored(self):
        """Test that non-arrow keys do nothing."""
        session = s.select(active_session(), "h1-a").session
        assert s.nudge(session, "Tab").session is session


class TestUndoRedo:
    """Test undo and redo over mixed commands."""

    def test_n_undos_restore_pre_sequence_state(self):
        """Test that undoing everything returns every node to its start."""
        session = active_session(offsets={"p-b": Offset(2, 2)})
        session = s.select(session, "h1-a").session
        session = s.nudge(session, "ArrowRight", large=True).session
        session = s.press(session, "p-b", 0, 0, LAYOUT).session
        session = s.release(session, 100, 0, VIEWPORT).session
        session = s.nudge(session, "ArrowDown").session
        after = dict(session.offsets)
        assert len(session.history) == 3

        for _ in range(3):
            session = s.undo(session).session
        assert session.offset_of("h1-a") == Offset(0, 0)
        assert session.offset_of("p-b") == Offset(2, 2)
        assert not session.history.can_undo

        for _ in range(3):
            session = s.redo(session).session
        assert session.offsets == after

    def test_text_undo_emits_set_text(self):
        """Test that text commands replay through effects."""
        session = s.begin_text_edit(active_session(), "h1-a", "Old").session
        session = s.finish_text_edit(session, "New").session
        undone = s.undo(session)
        assert s.SetText("h1-a", "Old") in undone.effects
        assert s.ContentChanged("h1-a") in undone.effects
        redone = s.redo(undone.session)
        assert s.SetText("h1-a", "New") in redone.effects

    def test_undo_ignored_while_editing(self):
        """Test that history is frozen during inline editing."""
        session = s.select(active_session(), "h1-a").session
        session = s.nudge(session, "ArrowLeft").session
        editing = s.begin_text_edit(session, "p-b", "x").session
        assert s.undo(editing).session is editing


class TestTextEdit:
    """Test inline text editing transitions."""

    def test_unchanged_text_records_nothing(self):
        """Test that finishing without changes emits no notification."""
        session = s.begin_text_edit(active_session(), "h1-a", "Same").session
        finished = s.finish_text_edit(session, "Same")
        assert finished.session.editing is None
        assert len(finished.session.history) == 0
        assert not effects_of(finished, s.ContentChanged)

    def test_changed_text_records_command(self):
        """Test the text command and the change notification."""
        session = s.begin_text_edit(active_session(), "h1-a", "Old").session
        finished = s.finish_text_edit(session, "New")
        assert finished.session.history.entries[-1] == TextCommand("h1-a", "Old", "New")
        assert s.ContentChanged("h1-a") in finished.effects

    def test_cannot_edit_node_being_dragged(self):
        """Test mutual exclusion from the drag side."""
        session = s.press(active_session(), "h1-a", 0, 0, LAYOUT).session
        assert s.begin_text_edit(session, "h1-a", "x").session is session

    def test_finish_without_edit_is_noop(self):
        """Test finishing when nothing is being edited."""
        session = active_session()
        assert s.finish_text_edit(session, "x").session is session
