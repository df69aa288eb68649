"""
Static Rendering Engine
=======================

Produces the publicly served page for a store from the raw template markup,
the content document, the product list and the store profile. The engine is a
pure function of its inputs: an ordered list of markup rules applied one after
another, with no script execution and no document tree.

A rule that raises is logged and skipped; ``render`` never propagates an
exception raised by a rule.
"""

from typing import Any, Iterable, List, Optional, Sequence
import time

from storefront.config.logging import get_logger
from storefront.config.settings import Settings, get_settings
from storefront.core.rendering.products import ProductInjector
from storefront.core.rendering.rules import MarkupRule, RenderContext, default_rules
from storefront.core.rendering.snippets import render_snippet
from storefront.models.schemas import ContentDocument, Product, StoreRecord, TemplateDocument

logger = get_logger(__name__)


class StaticRenderer:
    """Ordered markup rule pipeline."""

    def __init__(
        self,
        rules: Optional[Sequence[MarkupRule]] = None,
        settings: Optional[Settings] = None,
        replay_element_states: Optional[bool] = None,
        injector: Optional[ProductInjector] = None,
    ) -> None:
        self.settings = settings or get_settings()
        if replay_element_states is not None:
            self.settings = self.settings.model_copy(update={"replay_element_states": replay_element_states})
        self.rules: List[MarkupRule] = list(rules) if rules is not None else default_rules(self.settings)
        self.injector = injector or ProductInjector(self.settings)
        self.logger: Any = logger.bind(engine="static")

    @property
    def rule_names(self) -> List[str]:
        return [rule.name for rule in self.rules]

    def render(
        self,
        template: TemplateDocument,
        content: ContentDocument,
        products: Iterable[Product],
        store: StoreRecord,
    ) -> str:
        """
        Render a store page.

        Args:
            template: Template whose raw markup is rewritten
            content: The store's content document
            products: Products in catalog order; inactive ones are skipped
            store: Store profile supplying names and contact details

        Returns:
            Final page markup
        """
        start_time = time.time()
        ctx = RenderContext(
            template=template,
            content=content,
            products=list(products),
            store=store,
            settings=self.settings,
            injector=self.injector,
        )

        markup = template.raw_markup
        for rule in self.rules:
            try:
                markup = rule.apply(markup, ctx)
            except Exception as e:
                ctx.warnings.append(f"{rule.name}: {e}")
                self.logger.error(
                    "Markup rule failed, keeping previous markup",
                    rule=rule.name,
                    template=template.template_key,
                    error=str(e),
                )

        self.logger.info(
            "Static page rendered",
            template=template.template_key,
            store_id=store.id,
            products=len(ctx.products),
            failed_rules=len(ctx.warnings),
            render_time=round(time.time() - start_time, 4),
        )
        return markup


def render_not_found_page(domain: str) -> str:
    return render_snippet("not_found.html", domain=domain)


def render_error_page(request_id: Optional[str] = None) -> str:
    return render_snippet("server_error.html", request_id=request_id)


_renderer: Optional[StaticRenderer] = None


def get_static_renderer() -> StaticRenderer:
    """Get the global static renderer."""
    global _renderer
    if _renderer is None:
        _renderer = StaticRenderer()
    return _renderer


def reset_static_renderer() -> None:
    global _renderer
    _renderer = None
