from datetime import datetime, timezone

from sqlalchemy import DateTime, Text
from sqlmodel import Field, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


# Generic message
class Message(SQLModel):
    message: str


# Shared properties
class StoredPromptBase(SQLModel):
    name: str = Field(min_length=1, max_length=255)


# Properties to receive on save
class StoredPromptCreate(StoredPromptBase):
    content: str


# Database model, database table inferred from class name
class StoredPrompt(StoredPromptBase, table=True):
    id: int | None = Field(default=None, primary_key=True)
    content: str = Field(sa_type=Text)  # type: ignore
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


# Listing entry, content is left out
class StoredPromptSummary(StoredPromptBase):
    id: int
    created_at: datetime | None = None


class StoredPromptPublic(StoredPromptSummary):
    content: str


class StoredPromptsPublic(SQLModel):
    data: list[StoredPromptSummary]
    count: int
