import html
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

RENDER_ERROR_NOTICE = '<p class="render-error">Markdown could not be rendered.</p>'


def render_preview(text: str, renderer: Callable[[str], str]) -> str:
    """Render the draft with an external markdown renderer; a renderer failure degrades to a notice."""
    try:
        return renderer(text)
    except Exception as exc:
        logger.warning("Markdown renderer failed: %s", exc)
        return RENDER_ERROR_NOTICE


def plain_text_renderer(text: str) -> str:
    return f"<pre>{html.escape(text)}</pre>"
