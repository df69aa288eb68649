"""
Live Document
=============

A BeautifulSoup tree standing in for the embedded browsing surface: event
listeners with capture and bubble phases, the move-mode overlay, and the
selectable-node heuristic used when a click lands on an element outside the
allow-list.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from storefront.core.identity.resolver import ID_ATTR, INJECTED_ATTR, is_selectable
from storefront.core.markup import parse_style

OVERLAY_ID = "__storefront-move-overlay"
DISTANCE_ID = "__storefront-distance"
LOCKED_ATTR = "data-move-locked"
SELECTED_ATTR = "data-move-selected"

MAX_ANCESTOR_DEPTH = 5

BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt",
        "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5",
        "h6", "header", "li", "main", "nav", "ol", "p", "pre", "section", "table",
        "td", "th", "ul",
    }
)
INLINE_TAGS = frozenset(
    {
        "a", "abbr", "b", "button", "cite", "code", "em", "i", "label", "mark",
        "q", "small", "span", "strong", "sub", "sup", "u",
    }
)
NEVER_SELECTABLE = frozenset({"html", "head", "body"})

Handler = Callable[["DomEvent"], None]


@dataclass
class DomEvent:
    """A pointer, keyboard or focus event delivered to the document."""

    type: str
    target: Optional[Tag] = None
    client_x: float = 0.0
    client_y: float = 0.0
    key: str = ""
    shift: bool = False
    ctrl: bool = False
    meta: bool = False
    default_prevented: bool = False
    propagation_stopped: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


class LiveDocument:
    """Parsed page plus its event listener registry."""

    def __init__(self, markup: str) -> None:
        self.soup = BeautifulSoup(markup, "html.parser")
        self._listeners: Dict[str, List[Tuple[Handler, bool]]] = {}

    def add_event_listener(self, event_type: str, handler: Handler, capture: bool = False) -> None:
        entries = self._listeners.setdefault(event_type, [])
        if (handler, capture) not in entries:
            entries.append((handler, capture))

    def remove_event_listener(self, event_type: str, handler: Handler, capture: bool = False) -> None:
        entries = self._listeners.get(event_type, [])
        if (handler, capture) in entries:
            entries.remove((handler, capture))

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return sum(len(v) for v in self._listeners.values())

    def dispatch(self, event: DomEvent) -> bool:
        """
        Deliver an event to capture listeners first, then bubble listeners.

        Returns:
            False if a listener prevented the default action
        """
        entries = list(self._listeners.get(event.type, []))
        ordered = [h for h, capture in entries if capture] + [h for h, capture in entries if not capture]
        for handler in ordered:
            handler(event)
            if event.propagation_stopped:
                break
        return not event.default_prevented

    def by_id(self, element_id: str) -> Optional[Tag]:
        if not element_id:
            return None
        return self.soup.find(attrs={ID_ATTR: element_id})

    def serialize(self) -> str:
        return str(self.soup)

    # Overlay
    def ensure_overlay(self) -> Tag:
        overlay = self.soup.find(id=OVERLAY_ID)
        if overlay is not None:
            return overlay
        overlay = self.soup.new_tag("div", attrs={"id": OVERLAY_ID, INJECTED_ATTR: "true"})
        for axis in ("x", "y"):
            overlay.append(
                self.soup.new_tag("div", attrs={"class": f"__storefront-guide-{axis}", INJECTED_ATTR: "true"})
            )
        overlay.append(
            self.soup.new_tag("div", attrs={"id": DISTANCE_ID, INJECTED_ATTR: "true", "style": "display: none"})
        )
        (self.soup.body or self.soup).append(overlay)
        return overlay

    def remove_overlay(self) -> None:
        overlay = self.soup.find(id=OVERLAY_ID)
        if overlay is not None:
            overlay.decompose()

    def set_distance(self, text: str) -> None:
        label = self.ensure_overlay().find(id=DISTANCE_ID)
        label.string = text
        label["style"] = "display: block"

    def hide_distance(self) -> None:
        label = self.soup.find(id=DISTANCE_ID)
        if label is not None:
            label["style"] = "display: none"

    def distance_text(self) -> Optional[str]:
        label = self.soup.find(id=DISTANCE_ID)
        if label is None or "none" in label.get("style", ""):
            return None
        return label.get_text()


def _injected(element: Tag) -> bool:
    if element.has_attr(INJECTED_ATTR):
        return True
    return any(isinstance(p, Tag) and p.has_attr(INJECTED_ATTR) for p in element.parents)


def is_text_bearing(element: Tag) -> bool:
    """Block or inline element, not display:none, with visible text."""
    if element.name in NEVER_SELECTABLE:
        return False
    if element.name not in BLOCK_TAGS and element.name not in INLINE_TAGS:
        return False
    if parse_style(element.get("style", "")).get("display") == "none":
        return False
    return bool(element.get_text(strip=True))


def resolve_selectable(target: Optional[Tag]) -> Optional[Tag]:
    """
    The element a pointer event on ``target`` selects.

    The target itself when it is on the allow-list, otherwise the nearest
    of the target and its ancestors, ``MAX_ANCESTOR_DEPTH`` elements in all,
    that is on the allow-list or passes the text-bearing heuristic.
    """
    if not isinstance(target, Tag) or _injected(target):
        return None
    node: Optional[Tag] = target
    depth = 0
    while isinstance(node, Tag) and depth < MAX_ANCESTOR_DEPTH:
        if node.name in NEVER_SELECTABLE or isinstance(node, BeautifulSoup):
            return None
        if is_selectable(node.name, node.get("class") or []) or is_text_bearing(node):
            return node
        node = node.parent
        depth += 1
    return None
