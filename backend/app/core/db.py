from sqlmodel import SQLModel, create_engine

from app.core.config import settings

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)


def init_db(db_engine=engine) -> None:
    # Tables should be created with Alembic migrations in production.
    # Importing the models registers them on SQLModel.metadata.
    from app import models  # noqa: F401

    SQLModel.metadata.create_all(db_engine)
