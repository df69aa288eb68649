"""
Product Injector
================

Renders the active product list into a template's product region. Both
engines call the same card template; the static renderer splices the cards
into raw markup and the live engine parses them into its tree.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from bs4 import BeautifulSoup

from storefront.config.logging import get_logger
from storefront.config.settings import Settings, get_settings
from storefront.core.markup import insert_before_close, iter_elements, strip_tags
from storefront.core.rendering.assets import product_image_url
from storefront.core.rendering.regions import (
    CARD_CLASS,
    markup_products_container,
    tree_products_container,
)
from storefront.core.rendering.snippets import SnippetRenderer, get_snippet_renderer
from storefront.models.schemas import Product

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProductCardView:
    """Display values for one product card."""

    id: str
    name: str
    price_value: str
    price_text: str
    description: str
    image_url: str


class ProductInjector:
    """Builds product cards and places them in a page."""

    action_label = "Inquire"
    fallback_heading = "Our Products"

    def __init__(
        self, settings: Optional[Settings] = None, snippets: Optional[SnippetRenderer] = None
    ) -> None:
        self.settings = settings or get_settings()
        self.snippets = snippets or get_snippet_renderer()
        self.logger: Any = logger.bind(component="product_injector")

    def active(self, products: Iterable[Product]) -> List[Product]:
        return [p for p in products if p.is_active]

    def card_view(self, product: Product) -> ProductCardView:
        description = strip_tags(product.description or "").strip()
        return ProductCardView(
            id=product.id,
            name=product.name or "Product",
            price_value=f"{product.price:.2f}",
            price_text=f"{self.settings.currency_symbol}{product.price:.2f}",
            description=description[: self.settings.description_preview_length],
            image_url=product_image_url(product.image, self.settings.placeholder_image),
        )

    def render_cards(self, products: Iterable[Product]) -> str:
        """Card markup for every active product, in input order."""
        return "\n".join(
            self.snippets.render("product_card.html", card=self.card_view(p), action_label=self.action_label)
            for p in self.active(products)
        )

    def render_fallback_section(self, cards: str) -> str:
        return self.snippets.render("products_section.html", heading=self.fallback_heading, cards=cards)

    def inject_markup(self, markup: str, products: Iterable[Product]) -> str:
        """Replace the template's sample cards with the store's products."""
        cards = self.render_cards(products)
        container = markup_products_container(markup)
        if container is None:
            if not cards:
                return markup
            self.logger.debug("No product region, appending fallback section")
            return insert_before_close(markup, "body", self.render_fallback_section(cards) + "\n")

        samples = []
        covered_until = -1
        for el in iter_elements(markup, container.open_end, container.content_end):
            if el.start >= covered_until and CARD_CLASS in el.classes:
                samples.append(el)
                covered_until = el.end
        for el in reversed(samples):
            markup = markup[: el.start] + markup[el.end :]

        container = markup_products_container(markup)
        if container is None or not cards:
            return markup
        pos = container.content_end
        return markup[:pos] + "\n" + cards + "\n" + markup[pos:]

    def inject_tree(self, soup: BeautifulSoup, products: Iterable[Product]) -> None:
        """Tree counterpart of ``inject_markup``."""
        cards = self.render_cards(products)
        container = tree_products_container(soup)
        if container is None:
            if not cards:
                return
            target = soup.body or soup
            fragment = BeautifulSoup(self.render_fallback_section(cards), "html.parser")
            for node in list(fragment.contents):
                target.append(node)
            return

        for card in container.find_all(class_=CARD_CLASS):
            if not card.decomposed:
                card.decompose()
        if not cards:
            return
        fragment = BeautifulSoup("\n" + cards + "\n", "html.parser")
        for node in list(fragment.contents):
            container.append(node)
