"""
Markup Rules
============

Named text-level rewriting passes used by the static renderer. Each rule takes
the current markup and a render context and returns new markup. Rules never
build a document tree; they locate elements with the helpers in
``storefront.core.markup`` and ``storefront.core.rendering.regions``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional
import re

from storefront.config.settings import Settings
from storefront.core.identity.resolver import MarkupIdentityResolver
from storefront.core.markup import (
    MarkupElement,
    escape_text,
    insert_before_close,
    iter_elements,
    mask_inert,
    replace_span,
    strip_scripts,
)
from storefront.core.rendering.products import ProductInjector
from storefront.core.rendering.regions import (
    markup_hero_button,
    markup_hero_subtitle,
    markup_hero_title,
)
from storefront.core.rendering.render_model import MarkupRenderBackend, RenderModel
from storefront.core.rendering.snippets import render_snippet
from storefront.core.rendering.styles import render_style_block
from storefront.models.schemas import ContentDocument, Product, StoreRecord, TemplateDocument

_WRAPPING_P = re.compile(r"^\s*<p\b[^>]*>(.*)</p>\s*$", re.S | re.I)
_EVENT_ATTR = re.compile(r"\s+on[a-z]+\s*=\s*(\"[^\"]*\"|'[^']*'|[^\s>]+)", re.I)
_TEXT_RUN = re.compile(r"(?:^|>)([^<]+)")


@dataclass
class RenderContext:
    """Inputs shared by every rule of one render."""

    template: TemplateDocument
    content: ContentDocument
    products: List[Product]
    store: StoreRecord
    settings: Settings
    injector: ProductInjector
    warnings: List[str] = field(default_factory=list)

    @property
    def display_domain(self) -> str:
        return (self.store.domain_name or self.store.store_name or "").strip().upper()

    @property
    def copyright_text(self) -> str:
        return f"© {self.settings.copyright_year} {self.display_domain} - {self.settings.copyright_suffix}"


class MarkupRule(ABC):
    """One named rewriting pass."""

    name: str = "rule"

    @abstractmethod
    def apply(self, markup: str, ctx: RenderContext) -> str:
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


def _replace_inner(markup: str, element: Optional[MarkupElement], inner: str) -> str:
    if element is None or element.self_closing:
        return markup
    return replace_span(markup, element.open_end, element.content_end, inner)


def clean_rich_text(value: str) -> str:
    """Rich subtitle text without a wrapping paragraph or scripts."""
    value = _EVENT_ATTR.sub("", strip_scripts(value or "")).strip()
    m = _WRAPPING_P.match(value)
    if m and "<p" not in m.group(1).lower():
        value = m.group(1).strip()
    return value


def hero_title_text(ctx_content: ContentDocument, store: StoreRecord) -> str:
    return ctx_content.hero.title.strip() or store.store_name.strip() or "Store"


def hero_subtitle_markup(ctx_content: ContentDocument, store: StoreRecord) -> str:
    subtitle = clean_rich_text(ctx_content.hero.subtitle)
    if subtitle:
        return subtitle
    return escape_text(store.description.strip()) if store.description else ""


class ElementIdRule(MarkupRule):
    """Write element ids into the untouched template markup."""

    name = "element-ids"

    def __init__(self) -> None:
        self.resolver = MarkupIdentityResolver()

    def apply(self, markup: str, ctx: RenderContext) -> str:
        return self.resolver.annotate(markup)


class HeroTitleRule(MarkupRule):
    name = "hero-title"

    def apply(self, markup: str, ctx: RenderContext) -> str:
        text = hero_title_text(ctx.content, ctx.store)
        return _replace_inner(markup, markup_hero_title(markup), escape_text(text))


class HeroSubtitleRule(MarkupRule):
    name = "hero-subtitle"

    def apply(self, markup: str, ctx: RenderContext) -> str:
        subtitle = hero_subtitle_markup(ctx.content, ctx.store)
        if not subtitle:
            return markup
        return _replace_inner(markup, markup_hero_subtitle(markup), subtitle)


class HeroButtonRule(MarkupRule):
    name = "hero-button"

    def apply(self, markup: str, ctx: RenderContext) -> str:
        text = ctx.content.hero.button_text.strip()
        if not text:
            return markup
        return _replace_inner(markup, markup_hero_button(markup), escape_text(text))


class BrandRule(MarkupRule):
    """Replace the template's placeholder brand with the store's domain name."""

    def __init__(self, name: str, predicate: Callable[[MarkupElement], bool]) -> None:
        self.name = name
        self.predicate = predicate

    def apply(self, markup: str, ctx: RenderContext) -> str:
        brand = ctx.template.brand_text
        target = ctx.display_domain
        if not brand or not target:
            return markup
        pattern = re.compile(rf"\b{re.escape(brand)}\b", re.I)
        edits = []
        for el in iter_elements(markup):
            if self.predicate(el) and el.has_content:
                inner = el.inner(markup)
                replaced = _replace_text_nodes(inner, pattern, target)
                if replaced != inner:
                    edits.append((el.open_end, el.content_end, replaced))
        for start, end, replaced in reversed(_outermost(edits)):
            markup = replace_span(markup, start, end, replaced)
        return markup


class BrandTextNodeRule(MarkupRule):
    """Replace text nodes consisting of exactly the placeholder brand."""

    name = "brand-text-node"

    def apply(self, markup: str, ctx: RenderContext) -> str:
        brand = ctx.template.brand_text
        target = escape_text(ctx.display_domain)
        if not brand or not target:
            return markup
        pattern = re.compile(rf">\s*{re.escape(brand)}\s*<", re.I)
        return _sub_unmasked(markup, pattern, lambda m: f">{target}<")


class BrandCatchAllRule(MarkupRule):
    """Replace the brand in any remaining text node, except ahead of a copyright sign."""

    name = "brand-catch-all"

    def apply(self, markup: str, ctx: RenderContext) -> str:
        brand = ctx.template.brand_text
        target = ctx.display_domain
        if not brand or not target:
            return markup
        pattern = re.compile(rf"\b{re.escape(brand)}\b(?!\s*©)", re.I)
        return _replace_text_nodes(markup, pattern, target)


class StyleBlockRule(MarkupRule):
    """Background and hero typography style block before ``</head>``."""

    name = "custom-styles"

    def apply(self, markup: str, ctx: RenderContext) -> str:
        return insert_before_close(markup, "head", render_style_block(ctx.template, ctx.content))


class ProductsRule(MarkupRule):
    name = "products"

    def apply(self, markup: str, ctx: RenderContext) -> str:
        return ctx.injector.inject_markup(markup, ctx.products)


class ContactSectionRule(MarkupRule):
    name = "contact-section"

    def apply(self, markup: str, ctx: RenderContext) -> str:
        store = ctx.store
        if not (store.contact_email or store.phone or store.address):
            return markup
        section = render_snippet(
            "contact_section.html",
            email=store.contact_email,
            phone=store.phone,
            address=store.address,
        )
        return insert_before_close(markup, "body", section + "\n")


class CopyrightRule(MarkupRule):
    """
    One pass of the copyright cascade.

    A pass runs only while the standardized notice is absent, so later, more
    permissive passes never touch a page an earlier pass already fixed.
    """

    def __init__(self, name: str, rewrite: Callable[[str, str, RenderContext], str]) -> None:
        self.name = name
        self.rewrite = rewrite

    def apply(self, markup: str, ctx: RenderContext) -> str:
        notice = escape_text(ctx.copyright_text)
        if notice in markup:
            return markup
        return self.rewrite(markup, notice, ctx)


def _legacy_brand_copyright(markup: str, notice: str, ctx: RenderContext) -> str:
    names = [re.escape(n) for n in (ctx.template.brand_text, ctx.display_domain) if n]
    if not names:
        return markup
    alternatives = "|".join(names)
    pattern = re.compile(
        rf"(?:\b(?:{alternatives})\b\s*©\s*\d{{4}}|©\s*\d{{4}}\s*(?:{alternatives})\b)[^<]*",
        re.I,
    )
    return _sub_unmasked(markup, pattern, lambda m: notice)


def _paragraph_copyright(markup: str, notice: str, ctx: RenderContext) -> str:
    pattern = re.compile(r"(<p\b[^>]*>)([^<]*©\s*\d{4}[^<]*)(</p>)", re.I)
    return _sub_unmasked(markup, pattern, lambda m: m.group(1) + notice + m.group(3))


def _footer_copyright(markup: str, notice: str, ctx: RenderContext) -> str:
    footer = next((el for el in iter_elements(markup) if el.tag == "footer" or el.has_class("footer")), None)
    if footer is None:
        return markup
    inner = footer.inner(markup)
    replaced = re.sub(r"©\s*\d{4}[^<]*", lambda m: notice, inner, count=1)
    return replace_span(markup, footer.open_end, footer.content_end, replaced)


def _general_copyright(markup: str, notice: str, ctx: RenderContext) -> str:
    pattern = re.compile(r"©\s*\d{4}[^<]*")
    return _sub_unmasked(markup, pattern, lambda m: notice)


class InquiryScriptRule(MarkupRule):
    name = "inquiry-script"

    def apply(self, markup: str, ctx: RenderContext) -> str:
        store = ctx.store
        contact = store.contact_email or store.phone or "the provided contact information"
        return insert_before_close(markup, "body", render_snippet("inquiry_script.html", contact=contact) + "\n")


class ElementStateRule(MarkupRule):
    """Replay saved deleted/hidden/moved states onto id-annotated markup."""

    name = "element-states"

    def __init__(self) -> None:
        self.backend = MarkupRenderBackend()

    def apply(self, markup: str, ctx: RenderContext) -> str:
        return self.backend.apply(markup, RenderModel.from_content(ctx.content))


def _sub_unmasked(markup: str, pattern: "re.Pattern[str]", repl: Callable[["re.Match[str]"], str]) -> str:
    """``re.sub`` that ignores matches inside comments and script/style bodies."""
    masked = mask_inert(markup)
    pieces = []
    last = 0
    for m in pattern.finditer(masked):
        pieces.append(markup[last : m.start()])
        pieces.append(repl(pattern.match(markup, m.start(), m.end()) or m))
        last = m.end()
    pieces.append(markup[last:])
    return "".join(pieces)


def _replace_text_nodes(markup: str, pattern: "re.Pattern[str]", target: str) -> str:
    """
    Apply a text pattern to text between tags only, never inside tags.

    Matches overlapping an occurrence of the target itself are left alone, so
    a target that contains the pattern (brand "Truvara", domain
    "TRUVARA-SHOP") is never rewritten a second time.
    """
    masked = mask_inert(markup)
    replacement = escape_text(target)
    existing = re.compile(re.escape(replacement), re.I)
    pieces = []
    last = 0
    for run in _TEXT_RUN.finditer(masked):
        # Masked regions are blank, so matches only land on visible text
        kept = [(t.start(), t.end()) for t in existing.finditer(masked, run.start(1), run.end(1))]
        for m in pattern.finditer(masked, run.start(1), run.end(1)):
            if any(m.start() < end and start < m.end() for start, end in kept):
                continue
            pieces.append(markup[last : m.start()])
            pieces.append(replacement)
            last = m.end()
    pieces.append(markup[last:])
    return "".join(pieces)


def _outermost(edits):
    """Drop edits nested inside an earlier edit."""
    kept = []
    covered_until = -1
    for start, end, replaced in sorted(edits):
        if start >= covered_until:
            kept.append((start, end, replaced))
            covered_until = end
    return kept


def _has_class_fragment(*fragments: str) -> Callable[[MarkupElement], bool]:
    return lambda el: any(f in c for c in el.classes for f in fragments)


def default_rules(settings: Settings) -> List[MarkupRule]:
    """The static rendering pipeline, in application order."""
    rules: List[MarkupRule] = []
    if settings.replay_element_states:
        rules.append(ElementIdRule())
    rules.extend(
        [
            HeroTitleRule(),
            HeroSubtitleRule(),
            HeroButtonRule(),
            BrandRule("brand-nav-logo", _has_class_fragment("logo")),
            BrandTextNodeRule(),
            BrandRule("brand-footer-logo", _has_class_fragment("footer-logo")),
            BrandCatchAllRule(),
            StyleBlockRule(),
            ProductsRule(),
            ContactSectionRule(),
            CopyrightRule("copyright-legacy-brand", _legacy_brand_copyright),
            CopyrightRule("copyright-paragraph", _paragraph_copyright),
            CopyrightRule("copyright-footer", _footer_copyright),
            CopyrightRule("copyright-general", _general_copyright),
            InquiryScriptRule(),
        ]
    )
    if settings.replay_element_states:
        rules.append(ElementStateRule())
    return rules
