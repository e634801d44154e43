import uuid
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class FunctionalModule(BaseModel):
    """Reusable prompt fragment offered by the catalog."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Stable identifier, e.g. 'md_io'")
    name: str = Field(description="Display name used as the module heading")
    prompt: str = Field(description="Business-logic line emitted for the module")


class CustomEntry(BaseModel):
    """User-authored module or execution step. Replaced, never mutated in place."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: Literal["module", "step"]
    title: str = ""
    content: str


class PromptConfig(BaseModel):
    """Structural source of truth that the compiler turns into prompt text."""
    project_definition: str = ""
    ia_prompt: str = ""
    selected_modules: list[str] = Field(default_factory=list)
    custom_entries: list[CustomEntry] = Field(default_factory=list)


class AISuggestion(BaseModel):
    category: str = Field(description="Area of the prompt the suggestion targets")
    improvement: str = Field(description="Concrete change to make")
    reason: str = Field(description="Why the change improves the prompt")


class CritiqueResponse(BaseModel):
    """Envelope requested from providers that support native JSON-schema output."""
    suggestions: list[AISuggestion] = Field(
        description="Improvement suggestions ordered from most to least relevant"
    )
