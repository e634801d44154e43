import logging
from dataclasses import dataclass
from enum import Enum

from app.engine.backends import AIBackend
from app.engine.draft import DraftState
from app.engine.errors import BackendError, RefinementInProgressError
from app.engine.prompts.profile import InstructionProfile
from app.engine.suggestions import SuggestionSet

logger = logging.getLogger(__name__)


class RefinementState(str, Enum):
    IDLE = "idle"
    REFINING = "refining"
    REFINED = "refined"
    FAILED = "failed"


@dataclass
class OptimizationReport:
    state: RefinementState
    discarded: bool = False
    suggestions_count: int = 0
    critique_error: BackendError | None = None


class RefinementOrchestrator:
    """
    Runs the optimize sequence (snapshot, refine, apply, critique) against a draft.

    Each optimize call takes a generation number and remembers the draft revision
    it started from. A response is written back only if neither changed in the
    meantime; restore, a user edit or a reset while waiting makes it stale.
    """

    def __init__(self, draft: DraftState, suggestions: SuggestionSet):
        self.draft = draft
        self.suggestions = suggestions
        self.state = RefinementState.IDLE
        self.last_error: BackendError | None = None
        self._generation = 0

    @property
    def is_refining(self) -> bool:
        return self.state is RefinementState.REFINING

    def _is_stale(self, generation: int, revision: int) -> bool:
        return generation != self._generation or revision != self.draft.revision

    async def optimize(self, backend: AIBackend, profile: InstructionProfile) -> OptimizationReport:
        if self.is_refining:
            raise RefinementInProgressError("An optimization is already running for this session.")

        self._generation += 1
        generation = self._generation
        self.state = RefinementState.REFINING
        self.last_error = None
        self.draft.begin_refinement()

        logger.info("Refining draft with %s backend (profile %s).", backend.provider.value, profile.version)
        try:
            return await self._refine_and_critique(backend, profile, generation, self.draft.revision)
        except BaseException:
            # Cancellation or an unexpected provider payload must not leave the session locked.
            if generation == self._generation and self.is_refining:
                self.state = RefinementState.FAILED
            raise

    async def _refine_and_critique(
        self, backend: AIBackend, profile: InstructionProfile, generation: int, started_revision: int
    ) -> OptimizationReport:
        try:
            refined = await backend.refine(self.draft.current_text, profile)
        except BackendError as e:
            if generation == self._generation:
                self.state = RefinementState.FAILED
                self.last_error = e
            logger.warning("Refinement failed (%s): %s", e.kind, e)
            raise

        if self._is_stale(generation, started_revision):
            logger.info("Discarding stale refinement response (generation %s).", generation)
            if generation == self._generation:
                self.state = RefinementState.IDLE
            return OptimizationReport(state=self.state, discarded=True)

        self.draft.apply_refined_text(refined)
        self.suggestions.clear()
        refined_revision = self.draft.revision

        try:
            critique = await backend.critique(refined, profile)
        except BackendError as e:
            # A failed critique never rolls back a successful refine.
            logger.warning("Critique failed after refinement (%s): %s", e.kind, e)
            if generation == self._generation:
                self.state = RefinementState.REFINED
            return OptimizationReport(state=RefinementState.REFINED, critique_error=e)

        if self._is_stale(generation, refined_revision):
            logger.info("Discarding stale critique response (generation %s).", generation)
            if generation == self._generation:
                self.state = RefinementState.REFINED
            return OptimizationReport(state=RefinementState.REFINED, discarded=True)

        self.suggestions.replace(critique)
        self.state = RefinementState.REFINED
        return OptimizationReport(state=self.state, suggestions_count=len(critique))

    def restore_original(self) -> bool:
        """Return to the pre-AI text and drop suggestions. Any in-flight optimize becomes stale."""
        self._generation += 1
        restored = self.draft.restore()
        self.suggestions.clear()
        self.state = RefinementState.IDLE
        self.last_error = None
        return restored

    def invalidate(self) -> None:
        """Make any in-flight optimize stale without touching the draft (reset, load, session end)."""
        self._generation += 1
        self.state = RefinementState.IDLE
