import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.main import api_router
from app.core.config import settings
from app.core.db import init_db
from app.engine.autosave import AutosaveTask, JsonFileKeyValueStore
from app.engine.backends import close_backends
from app.engine.session import SessionRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()
    app.state.sessions = SessionRegistry()
    app.state.draft_store = JsonFileKeyValueStore(settings.DRAFT_STORE_PATH)
    autosave = AutosaveTask(
        app.state.sessions,
        app.state.draft_store,
        interval=settings.AUTOSAVE_INTERVAL_SECONDS,
    )
    stop = asyncio.Event()
    autosave_task = asyncio.create_task(autosave.run(stop))
    logger.info("%s started (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)
    try:
        yield
    finally:
        stop.set()
        await autosave_task
        await close_backends()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)
app.include_router(api_router, prefix=settings.API_V1_STR)
