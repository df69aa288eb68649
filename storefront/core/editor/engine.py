"""
Live Mutation Engine
====================

Drives the interactive preview. The engine owns a ``LiveDocument`` built from
the template, applies the store's content to it, and translates document
events into ``EditorSession`` transitions. Interaction state lives in the
session value; the engine only applies the effects each transition returns.

Interaction errors never reach the host: an event on something that cannot be
selected does nothing.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from bs4 import BeautifulSoup, Tag

from storefront.config.logging import get_logger
from storefront.config.settings import Settings, get_settings
from storefront.core.editor import session as transitions
from storefront.core.editor.dom import (
    LOCKED_ATTR,
    SELECTED_ATTR,
    DomEvent,
    LiveDocument,
    resolve_selectable,
)
from storefront.core.editor.geometry import GeometryProvider, Offset, StaticGeometry, Viewport
from storefront.core.editor.session import EditorSession, Transition
from storefront.core.identity.resolver import ID_ATTR, IdAllocator, TreeIdentityResolver, compose_element_id
from storefront.core.markup import collapse_whitespace
from storefront.core.rendering.products import ProductInjector
from storefront.core.rendering.regions import tree_hero_button, tree_hero_subtitle, tree_hero_title
from storefront.core.rendering.render_model import RenderModel, RenderNode, TreeRenderBackend, apply_node_attrs
from storefront.core.rendering.rules import hero_subtitle_markup, hero_title_text
from storefront.core.rendering.styles import render_style_block
from storefront.models.schemas import (
    ContentDocument,
    ElementState,
    LayerInfo,
    Product,
    StoreRecord,
    TemplateDocument,
)

logger = get_logger(__name__)

LISTENED_EVENTS = ("mousedown", "mousemove", "mouseup", "click", "dblclick", "keydown", "blur")
EDITABLE_ATTR = "contenteditable"
LAYER_TEXT_LENGTH = 60


@dataclass(frozen=True)
class ContentChange:
    """Notification sent to the host when an inline edit changes an element."""

    element_id: str
    html: str


def _confirm_always(message: str) -> bool:
    return True


class LiveMutationEngine:
    """Interactive editor over one store's page."""

    def __init__(
        self,
        template: TemplateDocument,
        content: ContentDocument,
        products: Iterable[Product] = (),
        store: Optional[StoreRecord] = None,
        geometry: Optional[GeometryProvider] = None,
        on_change: Optional[Callable[[ContentChange], None]] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.template = template
        self.content = content.model_copy(deep=True)
        self.store = store or StoreRecord(id="preview", domain_name=template.brand_text)
        self.geometry: GeometryProvider = geometry or StaticGeometry(
            Viewport(self.settings.viewport_width, self.settings.viewport_height)
        )
        self.on_change = on_change
        self.confirm = confirm or _confirm_always

        self.resolver = TreeIdentityResolver()
        self.allocator = IdAllocator()
        self.states: Dict[str, ElementState] = {}
        self.edited: Set[str] = set()
        self.session = EditorSession(
            snap_threshold=self.settings.snap_threshold,
            nudge_step=self.settings.nudge_step,
            nudge_step_large=self.settings.nudge_step_large,
        )
        self.document = LiveDocument(template.raw_markup)
        self._handlers = {
            "mousedown": self._on_mousedown,
            "mousemove": self._on_mousemove,
            "mouseup": self._on_mouseup,
            "click": self._on_click,
            "dblclick": self._on_dblclick,
            "keydown": self._on_keydown,
            "blur": self._on_blur,
        }
        self.logger: Any = logger.bind(engine="live", template=template.template_key)
        self._load(list(products))

    # Loading
    def _load(self, products: List[Product]) -> None:
        soup = self.document.soup
        # Ids come from the untouched template so they match the static side
        for element_id, _ in self.resolver.assign(soup):
            self.allocator.claim(element_id)
        self._hero_slot_ids = {
            "title": self._slot_id(tree_hero_title(soup)),
            "subtitle": self._slot_id(tree_hero_subtitle(soup)),
            "button": self._slot_id(tree_hero_button(soup)),
        }

        self._apply_hero_text(soup)
        self._insert_style_block(soup)
        ProductInjector(self.settings).inject_tree(soup, products)

        model = RenderModel.from_content(self.content)
        TreeRenderBackend().apply(soup, model)
        self.states = {node.node_id: node.to_state() for node in model}
        offsets = {node.node_id: Offset(node.offset_left, node.offset_top) for node in model if node.moved}
        self.session = replace(self.session, offsets=offsets)
        self.logger.info("Live document loaded", products=len(products), overrides=len(model))

    @staticmethod
    def _slot_id(element: Optional[Tag]) -> Optional[str]:
        return element.get(ID_ATTR) if element is not None else None

    def _apply_hero_text(self, soup: BeautifulSoup) -> None:
        title = tree_hero_title(soup)
        if title is not None:
            title.string = hero_title_text(self.content, self.store)

        subtitle_markup = hero_subtitle_markup(self.content, self.store)
        subtitle = tree_hero_subtitle(soup)
        if subtitle is not None and subtitle_markup:
            _set_inner_html(subtitle, subtitle_markup)

        button_text = self.content.hero.button_text.strip()
        button = tree_hero_button(soup)
        if button is not None and button_text:
            button.string = button_text

    def _insert_style_block(self, soup: BeautifulSoup) -> None:
        fragment = BeautifulSoup(render_style_block(self.template, self.content), "html.parser")
        target = soup.head or soup
        for node in list(fragment.contents):
            target.append(node)

    # Move mode
    @property
    def move_mode(self) -> bool:
        return self.session.active

    def enter_move_mode(self) -> None:
        self._run(transitions.enter_move_mode(self.session))

    def exit_move_mode(self) -> None:
        if self.session.editing is not None:
            self._finish_editing()
        self._run(transitions.exit_move_mode(self.session))

    def dispatch(self, event: DomEvent) -> bool:
        return self.document.dispatch(event)

    # Event handlers
    def _target(self, event: DomEvent) -> Optional[str]:
        element = resolve_selectable(event.target)
        if element is None:
            return None
        element_id = element.get(ID_ATTR)
        if not element_id:
            # Heuristic matches get a session id; only allow-list ids persist
            element_id = self.allocator.claim(
                compose_element_id(element.name, " ".join(element.get("class") or []), element.get_text(), 0)
            )
            element[ID_ATTR] = element_id
        if element.get(LOCKED_ATTR) == "true" or not self.state_of(element_id).visible:
            return None
        return element_id

    def _on_mousedown(self, event: DomEvent) -> None:
        element_id = self._target(event)
        if element_id is None:
            return
        if self.session.editing is not None and self.session.editing.element_id == element_id:
            return
        event.prevent_default()
        layout = self.geometry.rect_for(element_id)
        if layout is None:
            self._run(transitions.select(self.session, element_id))
            return
        self._run(transitions.press(self.session, element_id, event.client_x, event.client_y, layout))

    def _on_mousemove(self, event: DomEvent) -> None:
        if self.session.drag is None:
            return
        event.prevent_default()
        self._run(transitions.move(self.session, event.client_x, event.client_y, self.geometry.viewport()))

    def _on_mouseup(self, event: DomEvent) -> None:
        if self.session.drag is None:
            return
        self._run(transitions.release(self.session, event.client_x, event.client_y, self.geometry.viewport()))

    def _on_click(self, event: DomEvent) -> None:
        element_id = self._target(event)
        if element_id is None:
            return
        if self.session.editing is None:
            event.prevent_default()
        self._run(transitions.select(self.session, element_id))

    def _on_dblclick(self, event: DomEvent) -> None:
        element_id = self._target(event)
        if element_id is None:
            return
        event.prevent_default()
        element = self.document.by_id(element_id)
        self._run(transitions.begin_text_edit(self.session, element_id, element.decode_contents()))

    def _on_keydown(self, event: DomEvent) -> None:
        if self.session.editing is not None:
            if event.key == "Escape" or (event.key == "Enter" and (event.ctrl or event.meta)):
                event.prevent_default()
                self._finish_editing()
            return

        if (event.ctrl or event.meta) and event.key.lower() == "z":
            event.prevent_default()
            if event.shift:
                self.redo()
            else:
                self.undo()
            return

        if event.key.startswith("Arrow") and self.session.selection is not None:
            event.prevent_default()
            self._run(transitions.nudge(self.session, event.key, large=event.shift))

    def _on_blur(self, event: DomEvent) -> None:
        if self.session.editing is not None:
            self._finish_editing()

    # Text editing
    def type_text(self, html: str) -> None:
        """Replace the content of the element being edited, as typing would."""
        editing = self.session.editing
        if editing is None:
            return
        element = self.document.by_id(editing.element_id)
        if element is not None:
            _set_inner_html(element, html)

    def _finish_editing(self) -> None:
        editing = self.session.editing
        element = self.document.by_id(editing.element_id)
        html = element.decode_contents() if element is not None else editing.original
        self._run(transitions.finish_text_edit(self.session, html))

    # History
    def undo(self) -> None:
        self._run(transitions.undo(self.session))

    def redo(self) -> None:
        self._run(transitions.redo(self.session))

    # Layers
    def state_of(self, element_id: str) -> ElementState:
        state = self.states.get(element_id, ElementState())
        offset = self.session.offset_of(element_id)
        return state.model_copy(update={"offset_left": offset.left, "offset_top": offset.top})

    def layers(self) -> List[LayerInfo]:
        """Rescan the selectable elements, skipping deleted ones."""
        found: List[LayerInfo] = []
        for element in self.resolver.selectables(self.document.soup):
            element_id = element.get(ID_ATTR)
            state = self.state_of(element_id)
            if state.deleted:
                continue
            text = collapse_whitespace(element.get_text()).strip()[:LAYER_TEXT_LENGTH]
            found.append(
                LayerInfo(
                    id=element_id,
                    text=text or f"{element.name} element",
                    hidden=state.hidden,
                    locked=element.get(LOCKED_ATTR) == "true",
                    tag=element.name,
                )
            )
        return found

    def select_layer(self, element_id: str) -> bool:
        """Select an element from the layer list, as clicking it would in move mode."""
        element = self.document.by_id(element_id)
        if element is None or element.get(LOCKED_ATTR) == "true" or not self.state_of(element_id).visible:
            return False
        self._run(transitions.select(self.session, element_id))
        return self.session.selection == element_id

    def toggle_lock(self, element_id: str) -> bool:
        element = self.document.by_id(element_id)
        if element is None:
            return False
        if element.get(LOCKED_ATTR) == "true":
            del element[LOCKED_ATTR]
            return False
        element[LOCKED_ATTR] = "true"
        if self.session.selection == element_id:
            self._clear_selection()
        return True

    def toggle_hidden(self, element_id: str) -> bool:
        if self.document.by_id(element_id) is None:
            return False
        state = self.states.get(element_id, ElementState())
        self._set_state(element_id, state.model_copy(update={"hidden": not state.hidden}))
        return not state.hidden

    def delete(self, element_id: str) -> bool:
        """Hide an element and mark it deleted, after the host confirms."""
        if self.document.by_id(element_id) is None:
            return False
        if not self.confirm("Delete this element?"):
            return False
        state = self.states.get(element_id, ElementState())
        self._set_state(element_id, state.model_copy(update={"deleted": True}))
        if self.session.selection == element_id:
            self._clear_selection()
        return True

    def restore(self, element_id: str) -> bool:
        state = self.states.get(element_id)
        if state is None or not state.deleted:
            return False
        self._set_state(element_id, state.model_copy(update={"deleted": False}))
        return True

    def _set_state(self, element_id: str, state: ElementState) -> None:
        self.states[element_id] = state
        self._render(element_id)

    def _clear_selection(self) -> None:
        self._apply(transitions.SetSelection(self.session.selection, None))
        self.session = replace(self.session, selection=None)

    # Capture
    def capture_state(self) -> Dict[str, ElementState]:
        """Sparse map of every allow-listed element that deviates from the template."""
        captured: Dict[str, ElementState] = {}
        for element in self.resolver.selectables(self.document.soup):
            element_id = element.get(ID_ATTR)
            state = self.state_of(element_id)
            if not state.is_default():
                captured[element_id] = state
        return captured

    def capture_content(self) -> ContentDocument:
        """The content document as it stands after this session's edits."""
        hero = self.content.hero
        updates: Dict[str, str] = {}
        soup = self.document.soup
        if self._hero_slot_ids["title"] in self.edited:
            updates["title"] = tree_hero_title(soup).get_text().strip()
        if self._hero_slot_ids["subtitle"] in self.edited:
            updates["subtitle"] = tree_hero_subtitle(soup).decode_contents().strip()
        if self._hero_slot_ids["button"] in self.edited:
            updates["button_text"] = tree_hero_button(soup).get_text().strip()
        return self.content.model_copy(
            update={"hero": hero.model_copy(update=updates), "element_states": self.capture_state()},
            deep=True,
        )

    def serialize(self) -> str:
        return self.document.serialize()

    # Effects
    def _run(self, transition: Transition) -> None:
        self.session = transition.session
        for effect in transition.effects:
            self._apply(effect)

    def _render(self, element_id: str) -> None:
        element = self.document.by_id(element_id)
        if element is None:
            return
        node = RenderNode.from_state(element_id, self.state_of(element_id))
        attrs = dict(element.attrs)
        apply_node_attrs(attrs, node)
        element.attrs = attrs

    def _apply(self, effect: Any) -> None:
        doc = self.document
        if isinstance(effect, transitions.InstallListeners):
            for event_type in LISTENED_EVENTS:
                doc.add_event_listener(event_type, self._handlers[event_type], capture=True)
            doc.ensure_overlay()
        elif isinstance(effect, transitions.RemoveListeners):
            for event_type in LISTENED_EVENTS:
                doc.remove_event_listener(event_type, self._handlers[event_type], capture=True)
            doc.remove_overlay()
        elif isinstance(effect, transitions.SetSelection):
            previous = doc.by_id(effect.previous) if effect.previous else None
            if previous is not None and previous.has_attr(SELECTED_ATTR):
                del previous[SELECTED_ATTR]
            current = doc.by_id(effect.current) if effect.current else None
            if current is not None:
                current[SELECTED_ATTR] = "true"
        elif isinstance(effect, transitions.SetOffset):
            self._render(effect.element_id)
        elif isinstance(effect, transitions.ShowDistance):
            doc.set_distance(effect.text)
        elif isinstance(effect, transitions.HideDistance):
            doc.hide_distance()
        elif isinstance(effect, transitions.BeginTextEdit):
            element = doc.by_id(effect.element_id)
            if element is not None:
                element[EDITABLE_ATTR] = "true"
        elif isinstance(effect, transitions.EndTextEdit):
            element = doc.by_id(effect.element_id)
            if element is not None and element.has_attr(EDITABLE_ATTR):
                del element[EDITABLE_ATTR]
        elif isinstance(effect, transitions.SetText):
            element = doc.by_id(effect.element_id)
            if element is not None:
                _set_inner_html(element, effect.html)
        elif isinstance(effect, transitions.ContentChanged):
            self.edited.add(effect.element_id)
            element = doc.by_id(effect.element_id)
            if self.on_change is not None and element is not None:
                self.on_change(ContentChange(effect.element_id, element.decode_contents()))


def _set_inner_html(element: Tag, html: str) -> None:
    element.clear()
    fragment = BeautifulSoup(html, "html.parser")
    for node in list(fragment.contents):
        element.append(node)


