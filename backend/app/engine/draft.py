import logging

logger = logging.getLogger(__name__)


class DraftState:
    """
    The editable prompt document and its raw -> AI-refined lifecycle.

    `dirty` means the text has diverged from what structural recompilation would
    produce (manual edit, refinement or load) and must not be overwritten by `sync`.
    `pre_refinement_snapshot` is captured by the first refinement only, even when the
    draft is empty, so restoring always returns to the pre-AI baseline. `revision` is
    bumped on every change of `current_text` and lets callers detect edits made while
    they were waiting.
    """

    def __init__(self, initial_text: str = ""):
        self.current_text = initial_text
        self.pre_refinement_snapshot = ""
        self.has_snapshot = False
        self.dirty = False
        self.revision = 0

    def _set_text(self, text: str) -> None:
        self.revision += 1
        self.current_text = text

    def sync(self, compiled_text: str) -> bool:
        """Adopt freshly compiled text unless the draft is dirty. Returns whether it applied."""
        if self.dirty:
            return False
        if compiled_text != self.current_text:
            self._set_text(compiled_text)
        return True

    def force_reset(self, compiled_text: str) -> None:
        self._set_text(compiled_text)
        self.dirty = False
        self.pre_refinement_snapshot = ""
        self.has_snapshot = False

    def mark_dirty(self) -> None:
        self.dirty = True

    def edit(self, text: str) -> None:
        self._set_text(text)
        self.mark_dirty()

    def load(self, text: str) -> None:
        self._set_text(text)
        self.mark_dirty()

    def begin_refinement(self) -> None:
        if not self.has_snapshot:
            self.pre_refinement_snapshot = self.current_text
            self.has_snapshot = True
            logger.debug("Captured pre-refinement snapshot (%s chars).", len(self.current_text))

    def apply_refined_text(self, text: str) -> None:
        self._set_text(text)
        self.mark_dirty()

    def restore(self) -> bool:
        if not self.has_snapshot:
            return False
        self._set_text(self.pre_refinement_snapshot)
        return True
