from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./backend/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Prompt Architect"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./prompt_architect.db"

    # Primary provider: Gemini through its OpenAI-compatible endpoint.
    PRIMARY_MODEL: str = "gemini-2.5-flash"
    PRIMARY_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    PRIMARY_API_KEY: str | None = None
    GEMINI_API_KEY: str | None = None

    # Secondary provider: Qwen through DashScope compatible mode.
    SECONDARY_MODEL: str = "qwen-plus"
    SECONDARY_BASE_URL: str = "https://dashscope.aliyuncs.com/compatible-mode/v1"
    SECONDARY_API_KEY: str | None = None
    QWEN_API_KEY: str | None = None

    DEFAULT_PROVIDER: Literal["primary", "secondary"] = "primary"
    LLM_TEMPERATURE: float = 0.7
    LLM_TIMEOUT_SECONDS: float = 120.0
    OUTPUT_LANGUAGE: str = "English"

    AUTOSAVE_INTERVAL_SECONDS: float = 30.0
    DRAFT_STORE_PATH: str = ".prompt_drafts.json"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def primary_api_key(self) -> str:
        # Fall back to GEMINI_API_KEY when no PRIMARY_API_KEY is configured
        return self.PRIMARY_API_KEY or self.GEMINI_API_KEY or ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def secondary_api_key(self) -> str:
        return self.SECONDARY_API_KEY or self.QWEN_API_KEY or ""


settings = Settings()  # type: ignore
