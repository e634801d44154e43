import json
import logging
import re
from abc import ABC, abstractmethod
from enum import Enum

from pydantic import TypeAdapter, ValidationError

from app.core.config import settings
from app.engine.artifacts import AISuggestion, CritiqueResponse
from app.engine.errors import ParseError
from app.engine.llm_client import LLMClient
from app.engine.prompts.critique import CRITIQUE_ARRAY_FORMAT
from app.engine.prompts.profile import InstructionProfile

logger = logging.getLogger(__name__)

_suggestion_list = TypeAdapter(list[AISuggestion])


class AIProvider(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


def _critique_user_prompt(text: str) -> str:
    return f"System prompt to analyze:\n{text}"


class AIBackend(ABC):
    """Capability shared by every provider variant: refine a prompt, critique a prompt."""

    provider: AIProvider

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def refine(self, text: str, profile: InstructionProfile) -> str:
        """Return the enriched version of `text`. Raises BackendError on any failure."""
        return await self.llm.generate_text(
            system_prompt=profile.refine_instruction,
            user_prompt=text,
        )

    @abstractmethod
    async def critique(self, text: str, profile: InstructionProfile) -> list[AISuggestion]:
        """
        Return improvement suggestions in the provider's relevance order.
        Responses that do not match the suggestion shape raise ParseError; nothing
        partially parsed is ever returned.
        """
        pass


class PrimaryBackend(AIBackend):
    """Gemini via its OpenAI-compatible endpoint, using native JSON-schema output for critiques."""

    provider = AIProvider.PRIMARY

    def __init__(self, llm: LLMClient | None = None):
        super().__init__(
            llm
            or LLMClient(
                model_name=settings.PRIMARY_MODEL,
                base_url=settings.PRIMARY_BASE_URL,
                api_key=settings.primary_api_key,
            )
        )

    async def critique(self, text: str, profile: InstructionProfile) -> list[AISuggestion]:
        raw = await self.llm.complete(
            system_prompt=profile.critique_instruction,
            user_prompt=_critique_user_prompt(text),
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": "critique_response",
                    "schema": CritiqueResponse.model_json_schema(),
                },
            },
        )
        try:
            return CritiqueResponse.model_validate_json(raw).suggestions
        except ValidationError as e:
            logger.warning("Critique from %s did not match the schema: %s", self.llm.model_name, e)
            raise ParseError(f"{self.llm.model_name} returned malformed suggestions.") from e


class SecondaryBackend(AIBackend):
    """Qwen via DashScope compatible mode; JSON output is enforced through the prompt."""

    provider = AIProvider.SECONDARY

    def __init__(self, llm: LLMClient | None = None):
        super().__init__(
            llm
            or LLMClient(
                model_name=settings.SECONDARY_MODEL,
                base_url=settings.SECONDARY_BASE_URL,
                api_key=settings.secondary_api_key,
            )
        )

    @staticmethod
    def parse_suggestions(raw: str) -> list[AISuggestion]:
        """
        Parse a JSON array of suggestions. The only fallback is extracting the
        outermost `[...]` span when the model wraps the array in prose or fences.
        """
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            match = re.search(r"\[.*\]", raw, re.DOTALL)
            if not match:
                raise ParseError("Response does not contain a JSON array of suggestions.")
            try:
                data = json.loads(match.group(0))
            except json.JSONDecodeError as e:
                raise ParseError(f"Extracted suggestion array is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise ParseError("Expected a JSON array of suggestions.")
        try:
            return _suggestion_list.validate_python(data)
        except ValidationError as e:
            raise ParseError(f"Suggestion objects are missing required fields: {e}") from e

    async def critique(self, text: str, profile: InstructionProfile) -> list[AISuggestion]:
        raw = await self.llm.complete(
            system_prompt=f"{profile.critique_instruction}\n\n{CRITIQUE_ARRAY_FORMAT.strip()}",
            user_prompt=_critique_user_prompt(text),
        )
        try:
            return self.parse_suggestions(raw)
        except ParseError as e:
            logger.warning("Critique from %s could not be parsed: %s", self.llm.model_name, e)
            raise


_backends: dict[AIProvider, AIBackend] = {}


def get_backend(provider: AIProvider | str | None = None) -> AIBackend:
    """Return the shared backend for `provider`; each provider keeps one client and connection pool."""
    resolved = AIProvider(provider or settings.DEFAULT_PROVIDER)
    backend = _backends.get(resolved)
    if backend is None:
        backend = PrimaryBackend() if resolved is AIProvider.PRIMARY else SecondaryBackend()
        _backends[resolved] = backend
    return backend


async def close_backends() -> None:
    while _backends:
        _, backend = _backends.popitem()
        await backend.llm.close()
