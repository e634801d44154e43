from fastapi import APIRouter

from app.api.deps import StoreDep
from app.models import Message

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/health-check/")
async def health_check() -> bool:
    return True


@router.get("/store-check/", response_model=Message)
def store_check(store: StoreDep) -> Message:
    if store.ping():
        return Message(message="Prompt store is ready")
    return Message(message="Prompt store is unreachable; working offline")
