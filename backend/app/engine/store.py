import logging
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.crud import create_stored_prompt, get_stored_prompt, list_stored_prompts
from app.engine.errors import StoredPromptNotFoundError, StoreError
from app.models import StoredPromptCreate, StoredPromptPublic, StoredPromptSummary

logger = logging.getLogger(__name__)


def default_prompt_name(now: datetime | None = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return f"Prompt_{moment.strftime('%H:%M:%S')}"


class PromptStore:
    """Remote store for finished prompts. Every database failure surfaces as StoreError, with no retry."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def ping(self) -> bool:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.warning("Prompt store is unreachable: %s", exc)
            return False

    def save(self, name: str | None, content: str) -> int:
        prompt_in = StoredPromptCreate(name=(name or "").strip() or default_prompt_name(), content=content)
        try:
            with Session(self.engine) as session:
                db_prompt = create_stored_prompt(session=session, prompt_in=prompt_in)
                prompt_id = db_prompt.id
        except SQLAlchemyError as exc:
            logger.error("Failed to save prompt %r: %s", prompt_in.name, exc)
            raise StoreError(f"Could not save prompt: {exc}") from exc
        logger.info("Saved prompt %r as #%s", prompt_in.name, prompt_id)
        return prompt_id  # type: ignore[return-value]

    def list(self) -> list[StoredPromptSummary]:
        try:
            with Session(self.engine) as session:
                return [StoredPromptSummary.model_validate(p) for p in list_stored_prompts(session=session)]
        except SQLAlchemyError as exc:
            logger.error("Failed to list prompts: %s", exc)
            raise StoreError(f"Could not list prompts: {exc}") from exc

    def get_by_id(self, prompt_id: int) -> StoredPromptPublic:
        try:
            with Session(self.engine) as session:
                db_prompt = get_stored_prompt(session=session, prompt_id=prompt_id)
                if db_prompt is None:
                    raise StoredPromptNotFoundError(f"Prompt #{prompt_id} does not exist.")
                return StoredPromptPublic.model_validate(db_prompt)
        except SQLAlchemyError as exc:
            logger.error("Failed to load prompt #%s: %s", prompt_id, exc)
            raise StoreError(f"Could not load prompt #{prompt_id}: {exc}") from exc
