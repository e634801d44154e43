from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from app.core.db import engine
from app.engine.autosave import KeyValueStore
from app.engine.backends import AIBackend, AIProvider, get_backend
from app.engine.errors import PromptEngineError
from app.engine.preview import plain_text_renderer
from app.engine.session import PromptSession, SessionNotFoundError, SessionRegistry
from app.engine.store import PromptStore


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_draft_store(request: Request) -> KeyValueStore:
    return request.app.state.draft_store


def get_prompt_store() -> PromptStore:
    return PromptStore(engine)


def get_backend_factory() -> Callable[[AIProvider | None], AIBackend]:
    return get_backend


def get_renderer() -> Callable[[str], str]:
    return plain_text_renderer


RegistryDep = Annotated[SessionRegistry, Depends(get_registry)]
StoreDep = Annotated[PromptStore, Depends(get_prompt_store)]
DraftStoreDep = Annotated[KeyValueStore, Depends(get_draft_store)]
BackendFactoryDep = Annotated[Callable[[AIProvider | None], AIBackend], Depends(get_backend_factory)]
RendererDep = Annotated[Callable[[str], str], Depends(get_renderer)]


def get_prompt_session(session_id: str, registry: RegistryDep) -> PromptSession:
    try:
        return registry.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


CurrentSession = Annotated[PromptSession, Depends(get_prompt_session)]


_STATUS_BY_KIND = {
    "connectivity": 502,
    "malformed_response": 502,
    "backend": 502,
    "store_unavailable": 503,
    "not_found": 404,
    "refinement_in_progress": 409,
}


def engine_http_error(exc: PromptEngineError) -> HTTPException:
    """Map an engine failure to an HTTP error whose detail names the failure kind."""
    return HTTPException(status_code=_STATUS_BY_KIND.get(exc.kind, 500), detail=exc.to_detail())
