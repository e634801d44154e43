import asyncio
import logging
from typing import Any, Literal

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from app.api.deps import (
    BackendFactoryDep,
    CurrentSession,
    DraftStoreDep,
    RegistryDep,
    RendererDep,
    StoreDep,
    engine_http_error,
)
from app.engine.artifacts import AISuggestion, CustomEntry, PromptConfig
from app.engine.autosave import forget_session, load_session
from app.engine.backends import AIProvider
from app.engine.catalog import LayoutType
from app.engine.errors import BackendError, PromptEngineError
from app.engine.orchestrator import RefinementState
from app.engine.preview import render_preview
from app.engine.session import PromptSession, SessionNotFoundError
from app.models import Message

router = APIRouter()
logger = logging.getLogger(__name__)

# Routes that touch live session state are async so they run on the event loop,
# serialized with in-flight optimize and critique calls.


class SessionPublic(BaseModel):
    id: str
    config: PromptConfig
    current_text: str
    dirty: bool
    has_snapshot: bool
    state: RefinementState
    suggestions: list[AISuggestion] = Field(default_factory=list)
    last_error: dict[str, str] | None = None


class ConfigUpdate(BaseModel):
    project_definition: str | None = None
    ia_prompt: str | None = None


class LayoutRequest(BaseModel):
    layout: LayoutType


class EntryCreate(BaseModel):
    type: Literal["module", "step"] = "module"
    title: str = ""
    content: str


class EntryUpdate(BaseModel):
    title: str = ""
    content: str


class TextEdit(BaseModel):
    text: str


class OptimizeResult(BaseModel):
    session: SessionPublic
    discarded: bool = False
    critique_error: dict[str, str] | None = None


class SaveRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)


class SaveResult(BaseModel):
    id: int


def _to_public(session: PromptSession) -> SessionPublic:
    last_error = session.orchestrator.last_error
    return SessionPublic(
        id=session.id,
        config=session.config,
        current_text=session.current_text,
        dirty=session.draft.dirty,
        has_snapshot=session.draft.has_snapshot,
        state=session.orchestrator.state,
        suggestions=session.suggestions.items,
        last_error=last_error.to_detail() if last_error else None,
    )


@router.post("/", response_model=SessionPublic)
async def create_session(registry: RegistryDep, config: PromptConfig | None = None) -> Any:
    return _to_public(registry.create(config))


@router.post("/resume/{session_id}", response_model=SessionPublic)
def resume_session(session_id: str, registry: RegistryDep, draft_store: DraftStoreDep) -> Any:
    try:
        return _to_public(registry.get(session_id))
    except SessionNotFoundError:
        pass
    session = load_session(draft_store, session_id, registry)
    if session is None:
        raise HTTPException(status_code=404, detail="No saved session with this id")
    return _to_public(session)


@router.get("/{session_id}", response_model=SessionPublic)
async def read_session(session: CurrentSession) -> Any:
    return _to_public(session)


@router.delete("/{session_id}", response_model=Message)
async def close_session(session: CurrentSession, registry: RegistryDep, draft_store: DraftStoreDep) -> Any:
    registry.close(session.id)
    await asyncio.to_thread(forget_session, draft_store, session.id)
    return Message(message="Session closed")


@router.get("/{session_id}/preview", response_class=HTMLResponse)
async def preview_session(session: CurrentSession, renderer: RendererDep) -> Any:
    return render_preview(session.current_text, renderer)


@router.patch("/{session_id}/config", response_model=SessionPublic)
async def update_config(session: CurrentSession, config_in: ConfigUpdate) -> Any:
    if config_in.project_definition is not None:
        session.set_project_definition(config_in.project_definition)
    if config_in.ia_prompt is not None:
        session.set_ia_prompt(config_in.ia_prompt)
    return _to_public(session)


@router.post("/{session_id}/layout", response_model=SessionPublic)
async def apply_layout(session: CurrentSession, layout_in: LayoutRequest) -> Any:
    session.apply_layout(layout_in.layout)
    return _to_public(session)


@router.post("/{session_id}/modules/{module_id}/toggle", response_model=SessionPublic)
async def toggle_module(session: CurrentSession, module_id: str) -> Any:
    try:
        session.toggle_module(module_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _to_public(session)


@router.post("/{session_id}/entries", response_model=CustomEntry)
async def add_entry(session: CurrentSession, entry_in: EntryCreate) -> Any:
    try:
        return session.add_entry(entry_in.type, entry_in.title, entry_in.content)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.put("/{session_id}/entries/{entry_id}", response_model=CustomEntry)
async def replace_entry(session: CurrentSession, entry_id: str, entry_in: EntryUpdate) -> Any:
    try:
        return session.replace_entry(entry_id, entry_in.title, entry_in.content)
    except KeyError:
        raise HTTPException(status_code=404, detail="Entry not found")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("/{session_id}/entries/{entry_id}", response_model=SessionPublic)
async def remove_entry(session: CurrentSession, entry_id: str) -> Any:
    if not session.remove_entry(entry_id):
        raise HTTPException(status_code=404, detail="Entry not found")
    return _to_public(session)


@router.put("/{session_id}/text", response_model=SessionPublic)
async def edit_text(session: CurrentSession, edit_in: TextEdit) -> Any:
    session.edit_text(edit_in.text)
    return _to_public(session)


@router.post("/{session_id}/reset", response_model=SessionPublic)
async def reset_session(session: CurrentSession) -> Any:
    session.reset()
    return _to_public(session)


@router.post("/{session_id}/optimize", response_model=OptimizeResult)
async def optimize_session(
    session: CurrentSession,
    backend_factory: BackendFactoryDep,
    provider: AIProvider | None = None,
) -> Any:
    try:
        report = await session.optimize(backend_factory(provider))
    except PromptEngineError as e:
        raise engine_http_error(e)
    return OptimizeResult(
        session=_to_public(session),
        discarded=report.discarded,
        critique_error=report.critique_error.to_detail() if report.critique_error else None,
    )


@router.post("/{session_id}/critique", response_model=SessionPublic)
async def critique_session(
    session: CurrentSession,
    backend_factory: BackendFactoryDep,
    provider: AIProvider | None = None,
) -> Any:
    try:
        await session.critique(backend_factory(provider))
    except BackendError as e:
        raise engine_http_error(e)
    return _to_public(session)


@router.post("/{session_id}/restore", response_model=SessionPublic)
async def restore_session(session: CurrentSession) -> Any:
    session.restore()
    return _to_public(session)


@router.post("/{session_id}/save", response_model=SaveResult)
def save_session(session: CurrentSession, store: StoreDep, save_in: SaveRequest | None = None) -> Any:
    try:
        prompt_id = store.save(save_in.name if save_in else None, session.current_text)
    except PromptEngineError as e:
        raise engine_http_error(e)
    return SaveResult(id=prompt_id)


@router.post("/{session_id}/load/{prompt_id}", response_model=SessionPublic)
async def load_into_session(session: CurrentSession, store: StoreDep, prompt_id: int) -> Any:
    try:
        stored = await asyncio.to_thread(store.get_by_id, prompt_id)
    except PromptEngineError as e:
        raise engine_http_error(e)
    session.load_text(stored.content)
    logger.info("Loaded stored prompt %r into session %s", stored.name, session.id)
    return _to_public(session)
