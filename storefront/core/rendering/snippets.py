"""
Snippet Templates
=================

Jinja2 environment for the markup fragments both engines insert into pages:
product cards, the fallback products section, the contact section, the custom
style block, the inquiry script and the public error pages.
"""

from pathlib import Path
from typing import Any, Optional

import jinja2

from storefront.config.logging import get_logger

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


class SnippetRenderer:
    """Renders named snippet templates."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR) -> None:
        self.logger: Any = logger.bind(component="snippets")
        self._setup_jinja2_environment(template_dir)

    def _setup_jinja2_environment(self, template_dir: Path) -> None:
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            autoescape=jinja2.select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
        )

    def render(self, name: str, **context: Any) -> str:
        template = self.env.get_template(name)
        return template.render(**context)


_renderer: Optional[SnippetRenderer] = None


def get_snippet_renderer() -> SnippetRenderer:
    global _renderer
    if _renderer is None:
        _renderer = SnippetRenderer()
    return _renderer


def render_snippet(name: str, **context: Any) -> str:
    return get_snippet_renderer().render(name, **context)
