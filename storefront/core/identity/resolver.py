"""
Element Identity Resolver
=========================

Computes the id under which an element's saved state is stored. The live
engine computes ids on a BeautifulSoup tree; the static renderer computes them
on raw markup. Both scan the same selectable elements in document order and
compose ids from the same (tag, class, text) triple, so a state map written by
one engine is read back correctly by the other.

Ids are always computed on the unmodified template markup, before any content
substitution.
"""

import re
from typing import Any, Iterable, List, Optional, Set, Tuple

from bs4 import BeautifulSoup, Tag

from storefront.config.logging import get_logger
from storefront.core.markup import MarkupElement, iter_elements

logger = get_logger(__name__)

ID_ATTR = "data-move-id"
INJECTED_ATTR = "data-injected"

SELECTABLE_TAGS = frozenset({"h1", "h2", "h3", "p", "button"})
SELECTABLE_CLASSES = frozenset(
    {
        "title",
        "subtitle",
        "welcome-title",
        "product-title",
        "section-title",
        "headline",
        "subhead",
        "button",
        "cta-button",
    }
)

TEXT_SAMPLE_LENGTH = 60
MAX_ID_LENGTH = 50

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def sanitize(value: str) -> str:
    return _NON_ALNUM.sub("-", value.lower()).strip("-")


def compose_element_id(tag: str, class_name: str, text: str, ordinal: int) -> str:
    """
    Compose the base id for an element.

    Args:
        tag: Lowercase tag name
        class_name: Class tokens joined by single spaces
        text: Visible text of the element
        ordinal: Position of the element in the selectable scan

    Returns:
        Id before collision suffixing
    """
    parts = [p for p in (sanitize(class_name), sanitize(text.strip()[:TEXT_SAMPLE_LENGTH])) if p]
    if not parts:
        return f"{tag}-{ordinal}"
    return "-".join([tag, *parts])[:MAX_ID_LENGTH].strip("-")


def is_selectable(tag: str, classes: Iterable[str]) -> bool:
    return tag in SELECTABLE_TAGS or any(c in SELECTABLE_CLASSES for c in classes)


class IdAllocator:
    """Hands out unique ids, suffixing repeats with -2, -3, ..."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def claim(self, base: str) -> str:
        candidate = base
        n = 2
        while candidate in self._seen:
            candidate = f"{base}-{n}"
            n += 1
        self._seen.add(candidate)
        return candidate


class TreeIdentityResolver:
    """Identity resolution over a parsed document tree."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(resolver="tree")

    @staticmethod
    def _excluded(element: Tag) -> bool:
        if element.has_attr(INJECTED_ATTR):
            return True
        return any(isinstance(p, Tag) and p.has_attr(INJECTED_ATTR) for p in element.parents)

    def selectables(self, root: BeautifulSoup) -> List[Tag]:
        """Selectable template-owned elements in document order."""
        return [
            el
            for el in root.find_all(True)
            if is_selectable(el.name, el.get("class") or []) and not self._excluded(el)
        ]

    def element_id(self, element: Tag, ordinal: int) -> str:
        existing = element.get(ID_ATTR)
        if existing:
            return existing
        class_name = " ".join(element.get("class") or [])
        return compose_element_id(element.name, class_name, element.get_text(), ordinal)

    def assign(self, root: BeautifulSoup) -> List[Tuple[str, Tag]]:
        """Assign ids to every selectable element and return them in scan order."""
        allocator = IdAllocator()
        assigned: List[Tuple[str, Tag]] = []
        for ordinal, element in enumerate(self.selectables(root)):
            element_id = allocator.claim(self.element_id(element, ordinal))
            element[ID_ATTR] = element_id
            assigned.append((element_id, element))
        self.logger.debug("Element ids assigned", count=len(assigned))
        return assigned

    def find(self, root: BeautifulSoup, element_id: str) -> Optional[Tag]:
        return root.find(attrs={ID_ATTR: element_id})


class MarkupIdentityResolver:
    """Identity resolution over raw markup by pattern scanning."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(resolver="markup")

    def selectables(self, markup: str) -> List[MarkupElement]:
        found: List[MarkupElement] = []
        excluded_until = -1
        for element in iter_elements(markup):
            if element.start < excluded_until:
                continue
            if INJECTED_ATTR in element.attrs:
                excluded_until = element.end
                continue
            if is_selectable(element.tag, element.classes):
                found.append(element)
        return found

    def resolve(self, markup: str) -> List[Tuple[str, MarkupElement]]:
        """Ids for every selectable element, in scan order."""
        allocator = IdAllocator()
        resolved: List[Tuple[str, MarkupElement]] = []
        for ordinal, element in enumerate(self.selectables(markup)):
            base = element.attrs.get(ID_ATTR) or compose_element_id(
                element.tag, " ".join(element.classes), element.text(markup), ordinal
            )
            resolved.append((allocator.claim(base), element))
        return resolved

    def annotate(self, markup: str) -> str:
        """Write the resolved ids into the markup as id attributes."""
        resolved = self.resolve(markup)
        # Edit from the end so earlier offsets stay valid
        for element_id, element in reversed(resolved):
            if element.attrs.get(ID_ATTR) == element_id:
                continue
            open_tag = markup[element.start : element.open_end]
            cut = len(open_tag) - (2 if open_tag.endswith("/>") else 1)
            head = open_tag[:cut].rstrip()
            if ID_ATTR in element.attrs:
                head = re.sub(rf'\s{ID_ATTR}\s*=\s*("[^"]*"|\'[^\']*\'|[^\s>]+)', "", head)
            new_tag = f'{head} {ID_ATTR}="{element_id}"{open_tag[cut:]}'
            markup = markup[: element.start] + new_tag + markup[element.open_end :]
        self.logger.debug("Markup annotated with element ids", count=len(resolved))
        return markup
