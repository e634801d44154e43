class PromptEngineError(Exception):
    """Base class for every failure surfaced by the prompt engine."""

    kind = "engine"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message or str(self)}


class CompileError(PromptEngineError):
    """Reserved. The prompt compiler is total and never raises it."""

    kind = "compile"


class BackendError(PromptEngineError):
    """An AI backend failed during refine or critique."""

    kind = "backend"


class BackendConnectionError(BackendError):
    """Transport-level failure: unreachable provider, timeout or HTTP error status."""

    kind = "connectivity"


class ParseError(BackendError):
    """The provider answered, but the payload is empty or has the wrong shape."""

    kind = "malformed_response"


class StoreError(PromptEngineError):
    kind = "store_unavailable"


class StoredPromptNotFoundError(StoreError):
    kind = "not_found"


class RefinementInProgressError(PromptEngineError):
    kind = "refinement_in_progress"
