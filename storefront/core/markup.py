"""
Markup Utilities
================

Text-level helpers for working on raw HTML without building a document tree.
The static renderer and the markup side of the identity resolver locate
elements with these helpers; positions always refer to the original string.

Comments and the bodies of script/style elements are masked out before any
scan so that markup appearing inside them is never matched.
"""

import html
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
)

OPEN_TAG_RE = re.compile(
    r"<([a-zA-Z][a-zA-Z0-9-]*)"
    r"((?:\s+[^\s\"'>/=]+(?:\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s\"'=<>`]+))?)*)"
    r"\s*(/?)>"
)
ATTR_RE = re.compile(r"([^\s\"'>/=]+)(?:\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|([^\s\"'=<>`]+)))?")
_INERT_RE = re.compile(r"<!--.*?-->|(<(script|style)\b[^>]*>)(.*?)(</\2\s*>)", re.S | re.I)
_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")


@dataclass
class MarkupElement:
    """Location of one element in a markup string."""

    tag: str
    attrs: Dict[str, str]
    start: int
    open_end: int
    content_end: int
    end: int
    self_closing: bool = False
    classes: List[str] = field(default_factory=list)

    @property
    def has_content(self) -> bool:
        return self.content_end > self.open_end

    def inner(self, markup: str) -> str:
        return markup[self.open_end : self.content_end]

    def outer(self, markup: str) -> str:
        return markup[self.start : self.end]

    def text(self, markup: str) -> str:
        """Visible text of the element, entities decoded."""
        return strip_tags(self.inner(markup))

    def has_class(self, *tokens: str) -> bool:
        return any(t in self.classes for t in tokens)


def mask_inert(markup: str) -> str:
    """Blank out comments and script/style bodies, preserving string length."""

    def blank(m: "re.Match[str]") -> str:
        if m.group(1) is None:
            return " " * len(m.group(0))
        return m.group(1) + " " * len(m.group(3)) + m.group(4)

    return _INERT_RE.sub(blank, markup)


def parse_attrs(attr_text: str) -> Dict[str, str]:
    """Parse an open tag's attribute text; names are lowercased, values unescaped."""
    attrs: Dict[str, str] = {}
    for m in ATTR_RE.finditer(attr_text or ""):
        value = next((g for g in m.groups()[1:] if g is not None), "")
        attrs[m.group(1).lower()] = html.unescape(value)
    return attrs


def build_open_tag(tag: str, attrs: Dict[str, str], self_closing: bool = False) -> str:
    parts = [tag]
    for name, value in attrs.items():
        parts.append(f'{name}="{html.escape(value, quote=True)}"')
    return "<" + " ".join(parts) + (" />" if self_closing else ">")


def find_close(masked: str, tag: str, pos: int) -> Optional[Tuple[int, int]]:
    """Find the balanced closing tag for ``tag`` starting the search at ``pos``."""
    pattern = re.compile(rf"<(/?){re.escape(tag)}(?=[\s/>])[^>]*>", re.I)
    depth = 1
    for m in pattern.finditer(masked, pos):
        if m.group(1):
            depth -= 1
            if depth == 0:
                return m.start(), m.end()
        elif not m.group(0).endswith("/>"):
            depth += 1
    return None


def _element_at(markup: str, masked: str, m: "re.Match[str]") -> MarkupElement:
    tag = m.group(1).lower()
    attrs = parse_attrs(m.group(2))
    self_closing = bool(m.group(3)) or tag in VOID_ELEMENTS
    content_end = end = m.end()
    if not self_closing:
        close = find_close(masked, tag, m.end())
        # An unclosed element is treated as empty
        if close is not None:
            content_end, end = close
    return MarkupElement(
        tag=tag,
        attrs=attrs,
        start=m.start(),
        open_end=m.end(),
        content_end=content_end,
        end=end,
        self_closing=self_closing,
        classes=attrs.get("class", "").split(),
    )


def iter_elements(markup: str, start: int = 0, end: Optional[int] = None) -> Iterator[MarkupElement]:
    """Yield every element in document order, skipping masked regions."""
    masked = mask_inert(markup)
    limit = len(markup) if end is None else end
    for m in OPEN_TAG_RE.finditer(masked, start, limit):
        yield _element_at(markup, masked, m)


def find_first(markup: str, predicate, start: int = 0, end: Optional[int] = None) -> Optional[MarkupElement]:
    for element in iter_elements(markup, start, end):
        if predicate(element):
            return element
    return None


def element_at(markup: str, pos: int) -> Optional[MarkupElement]:
    """The element whose open tag begins exactly at ``pos``."""
    masked = mask_inert(markup)
    m = OPEN_TAG_RE.match(masked, pos)
    return _element_at(markup, masked, m) if m else None


def strip_tags(fragment: str) -> str:
    """Remove comments, script/style blocks and tags, then decode entities."""
    without_blocks = _INERT_RE.sub("", fragment)
    return html.unescape(_TAG_RE.sub("", without_blocks))


def strip_scripts(fragment: str) -> str:
    return re.sub(r"<(script|style)\b[^>]*>.*?</\1\s*>", "", fragment, flags=re.S | re.I)


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def escape_text(text: str) -> str:
    return html.escape(text, quote=False)


def replace_span(markup: str, start: int, end: int, replacement: str) -> str:
    return markup[:start] + replacement + markup[end:]


def insert_before_close(markup: str, tag: str, fragment: str) -> str:
    """Insert before the last ``</tag>``; append when the document has none."""
    masked = mask_inert(markup)
    matches = list(re.finditer(rf"</{tag}\s*>", masked, re.I))
    if not matches:
        return markup + fragment
    pos = matches[-1].start()
    return markup[:pos] + fragment + markup[pos:]


def parse_style(style: str) -> Dict[str, str]:
    """Parse an inline style attribute into an ordered property map."""
    props: Dict[str, str] = {}
    for decl in (style or "").split(";"):
        if ":" not in decl:
            continue
        name, _, value = decl.partition(":")
        name = name.strip().lower()
        if name:
            props[name] = value.strip()
    return props


def format_style(props: Dict[str, str]) -> str:
    return "; ".join(f"{k}: {v}" for k, v in props.items() if v != "")
