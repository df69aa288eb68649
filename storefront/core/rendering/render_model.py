"""
Render Model
============

Per-element overrides from a content document, as an ordered list of nodes,
plus two backends that apply them: one mutating a BeautifulSoup tree for the
live engine and one rewriting open tags in raw markup for the static
renderer. Both backends derive attributes and inline styles from the same
functions below, so a new override kind is added in one place.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from bs4 import BeautifulSoup

from storefront.config.logging import get_logger
from storefront.core.identity.resolver import ID_ATTR
from storefront.core.markup import OPEN_TAG_RE, build_open_tag, format_style, mask_inert, parse_attrs, parse_style
from storefront.models.schemas import ContentDocument, ElementState

logger = get_logger(__name__)

DELETED_ATTR = "data-deleted"
OFFSET_LEFT_ATTR = "data-offset-left"
OFFSET_TOP_ATTR = "data-offset-top"

_MANAGED_STYLE = ("display", "position", "transform")


def format_px(value: float) -> str:
    return f"{value:g}px"


def format_offset(value: float) -> str:
    return f"{value:g}"


@dataclass(frozen=True)
class RenderNode:
    """Override for one identified element."""

    node_id: str
    deleted: bool = False
    hidden: bool = False
    offset_left: float = 0.0
    offset_top: float = 0.0

    @property
    def visible(self) -> bool:
        return not (self.deleted or self.hidden)

    @property
    def moved(self) -> bool:
        return self.offset_left != 0 or self.offset_top != 0

    @classmethod
    def from_state(cls, node_id: str, state: ElementState) -> "RenderNode":
        return cls(
            node_id=node_id,
            deleted=state.deleted,
            hidden=state.hidden,
            offset_left=state.offset_left,
            offset_top=state.offset_top,
        )

    def to_state(self) -> ElementState:
        return ElementState(
            deleted=self.deleted,
            hidden=self.hidden,
            offset_left=self.offset_left,
            offset_top=self.offset_top,
        )


def apply_node_style(style: str, node: RenderNode) -> str:
    """Rewrite an inline style attribute for a node's visibility and offset."""
    props = parse_style(style)
    for key in _MANAGED_STYLE:
        props.pop(key, None)
    if not node.visible:
        props["display"] = "none"
    if node.moved:
        props["position"] = "relative"
        props["transform"] = f"translate({format_px(node.offset_left)}, {format_px(node.offset_top)})"
    return format_style(props)


def apply_node_attrs(attrs: Dict[str, Any], node: RenderNode) -> None:
    """Update an element's attribute map in place."""
    style = apply_node_style(attrs.get("style", ""), node)
    if style:
        attrs["style"] = style
    else:
        attrs.pop("style", None)

    if node.deleted:
        attrs[DELETED_ATTR] = "true"
    else:
        attrs.pop(DELETED_ATTR, None)

    if node.moved:
        attrs[OFFSET_LEFT_ATTR] = format_offset(node.offset_left)
        attrs[OFFSET_TOP_ATTR] = format_offset(node.offset_top)
    else:
        attrs.pop(OFFSET_LEFT_ATTR, None)
        attrs.pop(OFFSET_TOP_ATTR, None)


class RenderModel:
    """Ordered, immutable list of element overrides."""

    def __init__(self, nodes: Tuple[RenderNode, ...] = ()) -> None:
        self.nodes = tuple(nodes)
        self._by_id = {n.node_id: n for n in self.nodes}

    @classmethod
    def from_content(cls, content: ContentDocument) -> "RenderModel":
        return cls(
            tuple(RenderNode.from_state(k, v) for k, v in content.element_states.items() if not v.is_default())
        )

    def get(self, node_id: str) -> Optional[RenderNode]:
        return self._by_id.get(node_id)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes)


class RenderBackend(ABC):
    """Applies a render model to a page representation."""

    @abstractmethod
    def apply(self, target: Any, model: RenderModel) -> Any:
        pass


class TreeRenderBackend(RenderBackend):
    """Applies overrides to a parsed document tree in place."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(backend="tree")

    def apply(self, target: BeautifulSoup, model: RenderModel) -> BeautifulSoup:
        missing = 0
        for node in model:
            element = target.find(attrs={ID_ATTR: node.node_id})
            if element is None:
                missing += 1
                continue
            attrs = dict(element.attrs)
            apply_node_attrs(attrs, node)
            element.attrs = attrs
        if missing:
            self.logger.debug("Overrides without a matching element", missing=missing)
        return target


class MarkupRenderBackend(RenderBackend):
    """Applies overrides by rewriting open tags that carry an element id."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(backend="markup")

    def apply(self, target: str, model: RenderModel) -> str:
        if not len(model):
            return target
        masked = mask_inert(target)
        pieces = []
        last = 0
        applied = 0
        for m in OPEN_TAG_RE.finditer(masked):
            attrs = parse_attrs(m.group(2))
            node = model.get(attrs.get(ID_ATTR, ""))
            if node is None:
                continue
            apply_node_attrs(attrs, node)
            pieces.append(target[last : m.start()])
            pieces.append(build_open_tag(m.group(1).lower(), attrs, bool(m.group(3))))
            last = m.end()
            applied += 1
        pieces.append(target[last:])
        self.logger.debug("Overrides applied to markup", applied=applied, total=len(model))
        return "".join(pieces)
