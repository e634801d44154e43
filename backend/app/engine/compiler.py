"""Deterministic compilation of a PromptConfig into canonical markdown."""

from collections.abc import Sequence

from app.engine.artifacts import FunctionalModule, PromptConfig
from app.engine.catalog import DEFAULT_MODULES

HEADER = "# System Role: AI Software Architect"
PROJECT_PLACEHOLDER = "No project definition has been provided yet."
LAYOUT_PLACEHOLDER = "Standard flexible layout."
AI_PLACEHOLDER = "[to be completed by AI]"
DEFAULT_STEP_TITLE = "Step"

DEFAULT_STEPS = (
    "1. Analyze the requirements\n"
    "2. Build the core architecture\n"
    "3. Implement the functional modules\n"
    "4. Optimize and test"
)

GENERAL_INSTRUCTIONS = (
    "## General Instructions\n"
    "1. Strictly follow the architecture defined above.\n"
    "2. Implement every functional module with high-quality code.\n"
    "3. Keep the UI responsive and use Tailwind CSS for a polished look.\n"
    "4. Provide a clear and maintainable file structure."
)


def _module_block(title: str, business_logic: str) -> str:
    return (
        f"## {title}\n"
        f"- Business logic: {business_logic}\n"
        f"- Rendering optimization: {AI_PLACEHOLDER}\n"
        f"- Style optimization: {AI_PLACEHOLDER}\n"
        f"- Performance optimization: {AI_PLACEHOLDER}"
    )


def compile_prompt(config: PromptConfig, catalog: Sequence[FunctionalModule] = DEFAULT_MODULES) -> str:
    """
    Build the system prompt for `config`.
    Total and side-effect free: equal configs always produce identical text, and
    module ids missing from the catalog are skipped.
    """
    selected = set(config.selected_modules)
    sections: list[str] = [
        HEADER,
        f"## Project Definition\n{config.project_definition.strip() or PROJECT_PLACEHOLDER}",
        f"## Information Architecture & Layout\n{config.ia_prompt.strip() or LAYOUT_PLACEHOLDER}",
    ]

    sections.extend(_module_block(module.name, module.prompt) for module in catalog if module.id in selected)
    sections.extend(
        _module_block(entry.title, entry.content)
        for entry in config.custom_entries
        if entry.type == "module"
    )

    steps = [entry for entry in config.custom_entries if entry.type == "step"]
    step_lines = "\n".join(
        f"{index}. **{entry.title or DEFAULT_STEP_TITLE}**: {entry.content}"
        for index, entry in enumerate(steps, start=1)
    )
    sections.append(f"## Execution Steps\n{step_lines or DEFAULT_STEPS}")
    sections.append(GENERAL_INSTRUCTIONS)

    return "\n\n".join(section for section in sections if section.strip()).strip()
