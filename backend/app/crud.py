from sqlmodel import Session, select

from app.models import StoredPrompt, StoredPromptCreate


def create_stored_prompt(*, session: Session, prompt_in: StoredPromptCreate) -> StoredPrompt:
    db_prompt = StoredPrompt.model_validate(prompt_in)
    session.add(db_prompt)
    session.commit()
    session.refresh(db_prompt)
    return db_prompt


def list_stored_prompts(*, session: Session) -> list[StoredPrompt]:
    statement = select(StoredPrompt).order_by(StoredPrompt.created_at.desc(), StoredPrompt.id.desc())  # type: ignore[union-attr]
    return list(session.exec(statement).all())


def get_stored_prompt(*, session: Session, prompt_id: int) -> StoredPrompt | None:
    return session.get(StoredPrompt, prompt_id)
