from fastapi import APIRouter

from app.api.routes import catalog, prompts, sessions, utils

api_router = APIRouter()
api_router.include_router(utils.router, tags=["utils"])
api_router.include_router(catalog.router, prefix="/catalog", tags=["catalog"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
api_router.include_router(prompts.router, prefix="/prompts", tags=["prompts"])
