"""
Custom Page Styles
==================

Builds the style block carrying the store's background and hero typography.
The live engine and the static renderer insert the same block, so both show
the same colours and fonts.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from storefront.config.logging import get_logger
from storefront.core.errors import AssetLoadError
from storefront.core.rendering.assets import css_url, resolve_asset_url
from storefront.core.rendering.snippets import render_snippet
from storefront.models.schemas import (
    BackgroundSettings,
    BackgroundType,
    ContentDocument,
    HeroContent,
    PresetKind,
    TemplateDocument,
    TextStyle,
    default_button_style,
    default_subtitle_style,
    default_title_style,
)

logger = get_logger(__name__)

STYLE_BLOCK_ID = "store-custom-styles"

HERO_SELECTORS = {
    PresetKind.TITLE: ".hero h1",
    PresetKind.SUBTITLE: ".hero .hero-subtitle, .hero .subtitle, .hero p:first-of-type",
    PresetKind.BUTTON: ".hero .cta-button, .hero button",
}

_DEFAULT_STYLES = {
    PresetKind.TITLE: default_title_style,
    PresetKind.SUBTITLE: default_subtitle_style,
    PresetKind.BUTTON: default_button_style,
}

_COLOR_RE = re.compile(
    r"^(#[0-9a-fA-F]{3,8}|(?:rgb|rgba|hsl|hsla)\(\s*[0-9.,%\s/]+\)|[a-zA-Z]{3,30})$"
)
_UNSAFE_CSS = re.compile(r"[;{}<>\\]|/\*|\*/|expression\s*\(|url\s*\(", re.I)
_KEYWORD_RE = re.compile(r"^[a-zA-Z0-9 %.,-]+$")

Declaration = Tuple[str, str]


@dataclass
class CssRule:
    selector: str
    declarations: List[Declaration]


def sanitize_color(value: Optional[str], fallback: str) -> str:
    candidate = (value or "").strip()
    return candidate if _COLOR_RE.match(candidate) else fallback


def sanitize_css_value(value: Optional[str]) -> Optional[str]:
    """Return the value if it cannot break out of a declaration, else None."""
    if value is None:
        return None
    candidate = str(value).strip()
    if not candidate or _UNSAFE_CSS.search(candidate):
        return None
    return candidate


def _keyword(value: str, fallback: str) -> str:
    value = (value or "").strip()
    return value if _KEYWORD_RE.match(value) else fallback


def background_declarations(
    background: Optional[BackgroundSettings], default_color: str
) -> List[Declaration]:
    """Declarations applied to both html and body."""
    if background is None:
        return [("background-color", sanitize_color(default_color, "#ffffff"))]

    color = sanitize_color(background.color, sanitize_color(default_color, "#ffffff"))
    declarations: List[Declaration] = [("background-color", color)]
    if background.type == BackgroundType.IMAGE and background.image:
        try:
            url = resolve_asset_url(background.image)
        except AssetLoadError as e:
            logger.warning("Background image unresolvable", image=background.image, error=str(e))
            return declarations
        declarations.extend(
            [
                ("background-image", css_url(url)),
                ("background-repeat", _keyword(background.repeat, "no-repeat")),
                ("background-size", _keyword(background.size, "cover")),
                ("background-position", _keyword(background.position, "center")),
            ]
        )
    return declarations


def text_style_declarations(style: TextStyle) -> List[Declaration]:
    pairs = [
        ("font-family", style.font_family),
        ("font-size", style.font_size),
        ("font-weight", style.font_weight),
        ("font-style", style.font_style),
        ("text-decoration", style.text_decoration),
        ("margin-top", style.margin_top),
        ("margin-bottom", style.margin_bottom),
        ("padding", style.padding),
    ]
    declarations: List[Declaration] = []
    color = sanitize_color(style.color, "")
    if color:
        declarations.append(("color", color))
    if style.background_color:
        background = sanitize_color(style.background_color, "")
        if background:
            declarations.append(("background-color", background))
    for prop, value in pairs:
        clean = sanitize_css_value(value)
        if clean is not None:
            declarations.append((prop, clean))
    if style.center:
        declarations.append(("text-align", "center"))
    return declarations


def hero_rules(hero: HeroContent) -> List[CssRule]:
    """Typography rules for every hero slot the owner customized."""
    rules: List[CssRule] = []
    for kind, selector in HERO_SELECTORS.items():
        style = hero.style_for(kind)
        if style == _DEFAULT_STYLES[kind]():
            continue
        rules.append(CssRule(selector=selector, declarations=text_style_declarations(style)))
    return rules


def render_style_css(template: TemplateDocument, content: ContentDocument) -> str:
    background = background_declarations(content.background, template.default_background)
    return render_snippet(
        "custom_styles.css",
        background=background,
        # The template's hero overlay would darken an image background
        disable_overlay=any(prop == "background-image" for prop, _ in background),
        hero_rules=hero_rules(content.hero),
    )


def render_style_block(template: TemplateDocument, content: ContentDocument) -> str:
    """The complete ``<style>`` element inserted before ``</head>``."""
    return f'<style id="{STYLE_BLOCK_ID}">\n{render_style_css(template, content)}\n</style>\n'
