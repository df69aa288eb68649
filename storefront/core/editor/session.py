"""
Editor Session
==============

The editor's interaction state as an immutable value. Every transition is a
pure function taking a session and returning a ``Transition``: the next
session plus the effects the engine must apply to the document. Transitions
that do not apply in the current state return the session unchanged with no
effects, so invalid interactions silently do nothing.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

from storefront.core.editor.geometry import ZERO, Offset, Rect, Viewport, snap_offset
from storefront.core.editor.history import History, MoveCommand, TextCommand


# Effects
@dataclass(frozen=True)
class InstallListeners:
    pass


@dataclass(frozen=True)
class RemoveListeners:
    pass


@dataclass(frozen=True)
class SetSelection:
    previous: Optional[str]
    current: Optional[str]


@dataclass(frozen=True)
class SetOffset:
    element_id: str
    offset: Offset


@dataclass(frozen=True)
class ShowDistance:
    text: str


@dataclass(frozen=True)
class HideDistance:
    pass


@dataclass(frozen=True)
class BeginTextEdit:
    element_id: str


@dataclass(frozen=True)
class EndTextEdit:
    element_id: str


@dataclass(frozen=True)
class SetText:
    element_id: str
    html: str


@dataclass(frozen=True)
class ContentChanged:
    element_id: str


@dataclass(frozen=True)
class DragState:
    element_id: str
    origin_x: float
    origin_y: float
    base: Offset
    layout: Rect


@dataclass(frozen=True)
class EditState:
    element_id: str
    original: str


@dataclass(frozen=True)
class EditorSession:
    active: bool = False
    selection: Optional[str] = None
    drag: Optional[DragState] = None
    editing: Optional[EditState] = None
    history: History = field(default_factory=History)
    offsets: Dict[str, Offset] = field(default_factory=dict)
    snap_threshold: float = 8.0
    nudge_step: float = 1.0
    nudge_step_large: float = 10.0

    def offset_of(self, element_id: str) -> Offset:
        return self.offsets.get(element_id, ZERO)

    def with_offset(self, element_id: str, offset: Offset) -> "EditorSession":
        offsets = dict(self.offsets)
        offsets[element_id] = offset
        return replace(self, offsets=offsets)


@dataclass(frozen=True)
class Transition:
    session: EditorSession
    effects: Tuple[object, ...] = ()


def _unchanged(session: EditorSession) -> Transition:
    return Transition(session)


def enter_move_mode(session: EditorSession) -> Transition:
    if session.active:
        return _unchanged(session)
    return Transition(replace(session, active=True), (InstallListeners(),))


def exit_move_mode(session: EditorSession) -> Transition:
    """Leave move mode; an inline edit in progress must be finished first."""
    if not session.active:
        return _unchanged(session)
    effects = (HideDistance(), SetSelection(session.selection, None), RemoveListeners())
    return Transition(replace(session, active=False, selection=None, drag=None), effects)


def select(session: EditorSession, element_id: str) -> Transition:
    if not session.active or session.selection == element_id:
        return _unchanged(session)
    return Transition(
        replace(session, selection=element_id), (SetSelection(session.selection, element_id),)
    )


def press(session: EditorSession, element_id: str, x: float, y: float, layout: Rect) -> Transition:
    """Start a drag gesture on an element."""
    if not session.active or session.drag is not None:
        return _unchanged(session)
    if session.editing is not None and session.editing.element_id == element_id:
        return _unchanged(session)
    selected = select(session, element_id)
    drag = DragState(element_id, x, y, session.offset_of(element_id), layout)
    return Transition(replace(selected.session, drag=drag), selected.effects)


def _drag_result(drag: DragState, x: float, y: float, viewport: Viewport, threshold: float):
    candidate = drag.base + Offset(x - drag.origin_x, y - drag.origin_y)
    return snap_offset(candidate, drag.layout, viewport, threshold)


def move(session: EditorSession, x: float, y: float, viewport: Viewport) -> Transition:
    drag = session.drag
    if drag is None:
        return _unchanged(session)
    result = _drag_result(drag, x, y, viewport, session.snap_threshold)
    return Transition(
        session.with_offset(drag.element_id, result.offset),
        (SetOffset(drag.element_id, result.offset), ShowDistance(result.label)),
    )


def release(session: EditorSession, x: float, y: float, viewport: Viewport) -> Transition:
    """Finish a drag; records a move command unless the offset is unchanged."""
    drag = session.drag
    if drag is None:
        return _unchanged(session)
    final = _drag_result(drag, x, y, viewport, session.snap_threshold).offset
    next_session = replace(session.with_offset(drag.element_id, final), drag=None)
    if final != drag.base:
        next_session = replace(
            next_session, history=next_session.history.push(MoveCommand(drag.element_id, drag.base, final))
        )
    return Transition(next_session, (SetOffset(drag.element_id, final), HideDistance()))


_ARROWS = {
    "ArrowLeft": (-1, 0),
    "ArrowRight": (1, 0),
    "ArrowUp": (0, -1),
    "ArrowDown": (0, 1),
}


def nudge(session: EditorSession, key: str, large: bool = False) -> Transition:
    """Move the selection one step with an arrow key."""
    if not session.active or session.selection is None or session.editing is not None:
        return _unchanged(session)
    direction = _ARROWS.get(key)
    if direction is None:
        return _unchanged(session)
    step = session.nudge_step_large if large else session.nudge_step
    element_id = session.selection
    before = session.offset_of(element_id)
    after = before + Offset(direction[0] * step, direction[1] * step)
    next_session = session.with_offset(element_id, after)
    next_session = replace(next_session, history=next_session.history.push(MoveCommand(element_id, before, after)))
    return Transition(next_session, (SetOffset(element_id, after),))


def _apply_side(session: EditorSession, command, use_after: bool) -> Transition:
    if isinstance(command, MoveCommand):
        offset = command.after if use_after else command.before
        return Transition(session.with_offset(command.element_id, offset), (SetOffset(command.element_id, offset),))
    html = command.after if use_after else command.before
    return Transition(session, (SetText(command.element_id, html), ContentChanged(command.element_id)))


def undo(session: EditorSession) -> Transition:
    if session.editing is not None or session.drag is not None:
        return _unchanged(session)
    history, command = session.history.undo()
    if command is None:
        return _unchanged(session)
    return _apply_side(replace(session, history=history), command, use_after=False)


def redo(session: EditorSession) -> Transition:
    if session.editing is not None or session.drag is not None:
        return _unchanged(session)
    history, command = session.history.redo()
    if command is None:
        return _unchanged(session)
    return _apply_side(replace(session, history=history), command, use_after=True)


def begin_text_edit(session: EditorSession, element_id: str, current_html: str) -> Transition:
    if not session.active or session.editing is not None:
        return _unchanged(session)
    if session.drag is not None and session.drag.element_id == element_id:
        return _unchanged(session)
    selected = select(session, element_id)
    return Transition(
        replace(selected.session, editing=EditState(element_id, current_html)),
        selected.effects + (BeginTextEdit(element_id),),
    )


def finish_text_edit(session: EditorSession, new_html: str) -> Transition:
    """End inline editing; records a text command only when the markup changed."""
    editing = session.editing
    if editing is None:
        return _unchanged(session)
    next_session = replace(session, editing=None)
    effects: Tuple[object, ...] = (EndTextEdit(editing.element_id),)
    if new_html != editing.original:
        next_session = replace(
            next_session,
            history=next_session.history.push(TextCommand(editing.element_id, editing.original, new_html)),
        )
        effects += (ContentChanged(editing.element_id),)
    return Transition(next_session, effects)
