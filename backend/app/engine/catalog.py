from collections.abc import Sequence
from enum import Enum

from app.engine.artifacts import FunctionalModule


class LayoutType(str, Enum):
    LEFT_MID_RIGHT = "left_mid_right"
    TOP_BOTTOM = "top_bottom"
    LEFT_RIGHT = "left_right"
    SIDEBAR_CONTENT = "sidebar_content"


LAYOUT_TEMPLATES: dict[LayoutType, str] = {
    LayoutType.LEFT_MID_RIGHT: (
        "Implement a three-column layout. The left column holds navigation, the middle column is the "
        "main content area and the right column hosts auxiliary widgets and details. Use responsive "
        "widths (for example 20%/60%/20%)."
    ),
    LayoutType.TOP_BOTTOM: (
        "Implement a vertically stacked layout. The top is a fixed or sticky header/navigation bar, the "
        "middle is scrollable body content and the bottom is a fully featured footer."
    ),
    LayoutType.LEFT_RIGHT: (
        "Implement a modern two-pane interface. The left pane contains controls and inputs, the right "
        "pane shows a live preview or the output. Use a 40/60 split."
    ),
    LayoutType.SIDEBAR_CONTENT: (
        "Implement a classic admin layout with a collapsible sidebar on the left and a spacious "
        "dashboard content area on the right. Sidebar toggling must transition smoothly."
    ),
}


# Catalog order drives compiled output order, not selection order.
DEFAULT_MODULES: tuple[FunctionalModule, ...] = (
    FunctionalModule(
        id="md_io",
        name="Markdown Import/Export",
        prompt="Support importing and exporting Markdown files with syntax highlighting.",
    ),
    FunctionalModule(
        id="multi_model",
        name="Multi-Model Configuration",
        prompt="Provide a provider configuration that switches between AI models (e.g. Gemini, Qwen).",
    ),
    FunctionalModule(
        id="preview",
        name="Live Preview",
        prompt="Render generated content in real time inside a side preview pane.",
    ),
    FunctionalModule(
        id="pdf_import",
        name="PDF Import",
        prompt="Integrate PDF parsing and extract the text content for further processing.",
    ),
    FunctionalModule(
        id="pdf_export",
        name="PDF Export",
        prompt="Generate high-quality PDF output for analysis reports and summaries.",
    ),
    FunctionalModule(
        id="analysis",
        name="Analysis Reports",
        prompt="Add a module that uses AI reasoning to produce structured analysis reports from input data.",
    ),
    FunctionalModule(
        id="crawler",
        name="Web Crawler",
        prompt="Accept website URLs and crawl them to fetch live information for analysis.",
    ),
    FunctionalModule(
        id="cors_fix",
        name="CORS Handling",
        prompt="Implement a server-side proxy so frontend calls are not blocked by cross-origin (CORS) rules.",
    ),
    FunctionalModule(
        id="loading_win",
        name="Loading Progress Window",
        prompt="Show a detailed progress bar and loading dialog for long-running AI operations.",
    ),
)


def get_module(module_id: str, catalog: Sequence[FunctionalModule] = DEFAULT_MODULES) -> FunctionalModule | None:
    return next((module for module in catalog if module.id == module_id), None)
