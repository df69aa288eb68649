"""
Page Regions
============

Locates the hero slots and the product region of a template. Each lookup has
a tree form (BeautifulSoup) and a markup form (text scan) that follow the same
rules, so the live engine and the static renderer edit the same elements.
"""

from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from storefront.core.markup import MarkupElement, iter_elements

HERO_CLASS = "hero"
SUBTITLE_CLASSES = ("hero-subtitle", "subtitle")
BUTTON_CLASSES = ("cta-button",)
GRID_CLASSES = ("products-grid", "product-grid")
CARD_CLASS = "product-card"


def _is_products_region(tag: str, classes: List[str]) -> bool:
    return tag == "section" and any("products" in c for c in classes)


# Tree lookups
def _class_selector(classes) -> str:
    return ", ".join(f".{c}" for c in classes)


def tree_hero(soup: BeautifulSoup) -> Optional[Tag]:
    return soup.select_one(f".{HERO_CLASS}")


def tree_hero_title(soup: BeautifulSoup) -> Optional[Tag]:
    hero = tree_hero(soup)
    return (hero.find("h1") if hero else None) or soup.find("h1")


def tree_hero_subtitle(soup: BeautifulSoup) -> Optional[Tag]:
    hero = tree_hero(soup)
    if hero is None:
        return None
    return hero.select_one(_class_selector(SUBTITLE_CLASSES)) or hero.find("p")


def tree_hero_button(soup: BeautifulSoup) -> Optional[Tag]:
    hero = tree_hero(soup)
    if hero is None:
        return None
    return hero.select_one(_class_selector(BUTTON_CLASSES)) or hero.find("button")


def tree_products_container(soup: BeautifulSoup) -> Optional[Tag]:
    region = next(
        (s for s in soup.find_all("section") if _is_products_region("section", s.get("class") or [])),
        None,
    )
    if region is None:
        return None
    return region.select_one(_class_selector(GRID_CLASSES)) or region


# Markup lookups
def markup_hero(markup: str) -> Optional[MarkupElement]:
    for el in iter_elements(markup):
        if HERO_CLASS in el.classes:
            return el
    return None


def _first_within(markup: str, parent: MarkupElement, predicate) -> Optional[MarkupElement]:
    for el in iter_elements(markup, parent.open_end, parent.content_end):
        if predicate(el):
            return el
    return None


def markup_hero_title(markup: str) -> Optional[MarkupElement]:
    hero = markup_hero(markup)
    if hero is not None:
        found = _first_within(markup, hero, lambda el: el.tag == "h1")
        if found is not None:
            return found
    return next((el for el in iter_elements(markup) if el.tag == "h1"), None)


def markup_hero_subtitle(markup: str) -> Optional[MarkupElement]:
    hero = markup_hero(markup)
    if hero is None:
        return None
    return _first_within(markup, hero, lambda el: el.has_class(*SUBTITLE_CLASSES)) or _first_within(
        markup, hero, lambda el: el.tag == "p"
    )


def markup_hero_button(markup: str) -> Optional[MarkupElement]:
    hero = markup_hero(markup)
    if hero is None:
        return None
    return _first_within(markup, hero, lambda el: el.has_class(*BUTTON_CLASSES)) or _first_within(
        markup, hero, lambda el: el.tag == "button"
    )


def markup_products_region(markup: str) -> Optional[MarkupElement]:
    for el in iter_elements(markup):
        if _is_products_region(el.tag, el.classes):
            return el
    return None


def markup_products_container(markup: str) -> Optional[MarkupElement]:
    region = markup_products_region(markup)
    if region is None:
        return None
    return _first_within(markup, region, lambda el: el.has_class(*GRID_CLASSES)) or region
