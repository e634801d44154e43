from typing import Any

from fastapi import APIRouter

from app.api.deps import StoreDep, engine_http_error
from app.engine.errors import StoreError
from app.models import StoredPromptPublic, StoredPromptsPublic

router = APIRouter()


@router.get("/", response_model=StoredPromptsPublic)
def read_stored_prompts(store: StoreDep) -> Any:
    try:
        prompts = store.list()
    except StoreError as e:
        raise engine_http_error(e)
    return StoredPromptsPublic(data=prompts, count=len(prompts))


@router.get("/{prompt_id}", response_model=StoredPromptPublic)
def read_stored_prompt(prompt_id: int, store: StoreDep) -> Any:
    try:
        return store.get_by_id(prompt_id)
    except StoreError as e:
        raise engine_http_error(e)
