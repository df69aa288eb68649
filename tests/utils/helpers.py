"""
Test Helpers
============

Helper functions for common testing operations.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from bs4 import BeautifulSoup, Tag

from storefront.core.editor.dom import DomEvent
from storefront.core.editor.engine import LiveMutationEngine
from storefront.core.identity.resolver import ID_ATTR
from storefront.models.schemas import Product, StoreRecord


def write_store_file(
    root: Path,
    store: StoreRecord,
    products: List[Product],
    content: Union[str, Dict[str, Any], None],
) -> Path:
    """Write a store in the JSON file repository layout."""
    path = root / f"{store.id}.json"
    data = {
        "store": store.model_dump(by_alias=True, mode="json"),
        "products": [p.model_dump(by_alias=True) for p in products],
        "content": content,
    }
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return path


def parse_page(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def find_by_element_id(markup: str, element_id: str) -> Optional[Tag]:
    return parse_page(markup).find(attrs={ID_ATTR: element_id})


def product_cards(markup: str) -> List[Tag]:
    return parse_page(markup).select(".product-card")


def fire(engine: LiveMutationEngine, event_type: str, element_id: Optional[str] = None, **kwargs: Any) -> DomEvent:
    """Dispatch an event whose target is the element with ``element_id``."""
    target = engine.document.by_id(element_id) if element_id else None
    event = DomEvent(type=event_type, target=target, **kwargs)
    engine.dispatch(event)
    return event


def drag(
    engine: LiveMutationEngine,
    element_id: str,
    start: tuple,
    end: tuple,
    steps: int = 3,
) -> None:
    """Press on an element, move to ``end`` in even steps and release."""
    fire(engine, "mousedown", element_id, client_x=start[0], client_y=start[1])
    for i in range(1, steps + 1):
        x = start[0] + (end[0] - start[0]) * i / steps
        y = start[1] + (end[1] - start[1]) * i / steps
        fire(engine, "mousemove", element_id, client_x=x, client_y=y)
    fire(engine, "mouseup", element_id, client_x=end[0], client_y=end[1])
