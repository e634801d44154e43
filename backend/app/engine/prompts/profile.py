from pydantic import BaseModel, ConfigDict

from app.core.config import settings
from app.engine.prompts.critique import CRITIQUE_SYSTEM_PROMPT
from app.engine.prompts.refine import REFINE_SYSTEM_PROMPT

PROFILE_VERSION = "2024-refine-v1"


class InstructionProfile(BaseModel):
    """Versioned system instructions shared by every backend variant."""
    model_config = ConfigDict(frozen=True)

    version: str
    language: str
    refine_instruction: str
    critique_instruction: str


def build_instruction_profile(language: str | None = None) -> InstructionProfile:
    resolved_language = language or settings.OUTPUT_LANGUAGE
    return InstructionProfile(
        version=PROFILE_VERSION,
        language=resolved_language,
        refine_instruction=REFINE_SYSTEM_PROMPT.strip().format(language=resolved_language),
        critique_instruction=CRITIQUE_SYSTEM_PROMPT.strip().format(language=resolved_language),
    )
