import logging
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Literal

from app.engine.artifacts import CustomEntry, FunctionalModule, PromptConfig
from app.engine.backends import AIBackend
from app.engine.catalog import DEFAULT_MODULES, LAYOUT_TEMPLATES, LayoutType, get_module
from app.engine.compiler import compile_prompt
from app.engine.draft import DraftState
from app.engine.orchestrator import OptimizationReport, RefinementOrchestrator
from app.engine.prompts.profile import InstructionProfile, build_instruction_profile
from app.engine.suggestions import SuggestionSet

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_TITLES = {"module": "Untitled module", "step": "Step"}


class SessionNotFoundError(KeyError):
    pass


class PromptSession:
    """
    One user's editing context: structural config, the draft document, its
    suggestions and the refinement state machine. Nothing here is shared
    between sessions.

    Structural edits recompile synchronously inside the editing call, and direct
    text edits always win: once the draft is dirty only `reset` brings the
    compiled template back.
    """

    def __init__(
        self,
        config: PromptConfig | None = None,
        *,
        session_id: str | None = None,
        catalog: Sequence[FunctionalModule] = DEFAULT_MODULES,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.created_at = datetime.now(timezone.utc)
        self.catalog = tuple(catalog)
        self.config = config or PromptConfig()
        self.draft = DraftState(self.compiled_text())
        self.suggestions = SuggestionSet()
        self.orchestrator = RefinementOrchestrator(self.draft, self.suggestions)

    @classmethod
    def from_saved(
        cls,
        session_id: str,
        config: PromptConfig,
        draft_text: str | None,
        *,
        catalog: Sequence[FunctionalModule] = DEFAULT_MODULES,
    ) -> "PromptSession":
        session = cls(config, session_id=session_id, catalog=catalog)
        # A saved draft that the config cannot reproduce was edited by hand or by AI.
        if draft_text and draft_text != session.draft.current_text:
            session.draft.load(draft_text)
        return session

    def compiled_text(self) -> str:
        return compile_prompt(self.config, self.catalog)

    @property
    def current_text(self) -> str:
        return self.draft.current_text

    # -- structural editing -------------------------------------------------

    def _update_config(self, **changes) -> None:
        self.config = self.config.model_copy(update=changes)
        self.sync()

    def sync(self) -> bool:
        """Push the compiled template into the draft unless it is dirty or being refined."""
        if self.orchestrator.is_refining:
            return False
        return self.draft.sync(self.compiled_text())

    def set_project_definition(self, text: str) -> None:
        self._update_config(project_definition=text)

    def set_ia_prompt(self, text: str) -> None:
        self._update_config(ia_prompt=text)

    def apply_layout(self, layout: LayoutType) -> None:
        self.set_ia_prompt(LAYOUT_TEMPLATES[LayoutType(layout)])

    def toggle_module(self, module_id: str) -> bool:
        """Flip selection of a catalog module. Returns True when it ends up selected."""
        if get_module(module_id, self.catalog) is None:
            raise ValueError(f"Unknown module: {module_id}")
        selected = list(self.config.selected_modules)
        if module_id in selected:
            selected = [m for m in selected if m != module_id]
        else:
            selected.append(module_id)
        self._update_config(selected_modules=selected)
        return module_id in selected

    def add_entry(self, entry_type: Literal["module", "step"], title: str, content: str) -> CustomEntry:
        if not content.strip():
            raise ValueError("Entry content must not be empty.")
        entry = CustomEntry(
            type=entry_type,
            title=title.strip() or DEFAULT_ENTRY_TITLES[entry_type],
            content=content,
        )
        self._update_config(custom_entries=[*self.config.custom_entries, entry])
        return entry

    def replace_entry(self, entry_id: str, title: str, content: str) -> CustomEntry:
        if not content.strip():
            raise ValueError("Entry content must not be empty.")
        entries = list(self.config.custom_entries)
        for index, existing in enumerate(entries):
            if existing.id == entry_id:
                replacement = CustomEntry(
                    id=entry_id,
                    type=existing.type,
                    title=title.strip() or DEFAULT_ENTRY_TITLES[existing.type],
                    content=content,
                )
                entries[index] = replacement
                self._update_config(custom_entries=entries)
                return replacement
        raise KeyError(entry_id)

    def remove_entry(self, entry_id: str) -> bool:
        entries = [entry for entry in self.config.custom_entries if entry.id != entry_id]
        if len(entries) == len(self.config.custom_entries):
            return False
        self._update_config(custom_entries=entries)
        return True

    # -- document lifecycle -------------------------------------------------

    def edit_text(self, text: str) -> None:
        self.draft.edit(text)

    def reset(self) -> None:
        """Regenerate the draft from config, dropping edits, refinements and suggestions."""
        self.orchestrator.invalidate()
        self.suggestions.clear()
        self.draft.force_reset(self.compiled_text())

    def load_text(self, text: str) -> None:
        self.orchestrator.invalidate()
        self.suggestions.clear()
        self.draft.load(text)

    async def optimize(self, backend: AIBackend, profile: InstructionProfile | None = None) -> OptimizationReport:
        return await self.orchestrator.optimize(backend, profile or build_instruction_profile())

    async def critique(self, backend: AIBackend, profile: InstructionProfile | None = None) -> int:
        """Critique the current text. Suggestions are replaced only when the call succeeds."""
        revision = self.draft.revision
        suggestions = await backend.critique(self.draft.current_text, profile or build_instruction_profile())
        if revision != self.draft.revision:
            logger.info("Discarding critique for session %s: draft changed while waiting.", self.id)
            return 0
        self.suggestions.replace(suggestions)
        return len(suggestions)

    def restore(self) -> bool:
        return self.orchestrator.restore_original()


class SessionRegistry:
    """Owns live sessions: created on session start, dropped on session end."""

    def __init__(self, catalog: Sequence[FunctionalModule] = DEFAULT_MODULES):
        self.catalog = tuple(catalog)
        self._sessions: dict[str, PromptSession] = {}

    def create(self, config: PromptConfig | None = None) -> PromptSession:
        session = PromptSession(config, catalog=self.catalog)
        self._sessions[session.id] = session
        logger.info("Created prompt session %s", session.id)
        return session

    def add(self, session: PromptSession) -> PromptSession:
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> PromptSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def close(self, session_id: str) -> PromptSession:
        session = self.get(session_id)
        session.orchestrator.invalidate()
        del self._sessions[session_id]
        logger.info("Closed prompt session %s", session_id)
        return session

    def __iter__(self):
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)
