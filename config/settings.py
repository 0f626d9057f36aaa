"""
Centralized configuration for the lead qualification bot.

All settings are loaded from environment variables via .env file.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

DEFAULT_PROFILES_PATH = Path(__file__).parent / "business_profiles.json"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Business script
    industry: str = Field(default="realEstate")
    business_profiles_path: str = Field(default=str(DEFAULT_PROFILES_PATH))

    # Session store: memory | json | database
    session_store: str = Field(default="json")
    data_directory: str = Field(default="./data")
    database_url: Optional[str] = Field(default=None)

    # LLM provider selection (assisted classification only)
    llm_provider: str = Field(default="openai")  # openai | bedrock
    openai_api_key: Optional[str] = Field(default=None)
    openai_llm_model: str = Field(default="gpt-4o-mini")
    aws_region: str = Field(default="us-east-1")
    bedrock_llm_model_id: str = Field(
        default="us.anthropic.claude-sonnet-4-20250514-v1:0"
    )
    max_tokens: int = Field(default=256)
    temperature: float = Field(default=0.0)

    # Qualification
    assisted_classification: bool = Field(default=False)
    classification_timeout_seconds: float = Field(default=15.0)
    max_invalid_replies: int = Field(default=3)

    # API
    api_title: str = Field(default="Lead Qualification Bot API")
    api_version: str = Field(default="1.0.0")
    cors_origins: str = Field(default="*")

    # Logging
    log_level: str = Field(default="INFO")

    @property
    def is_bedrock(self) -> bool:
        return self.llm_provider.lower() == "bedrock"

    @property
    def llm_model_id(self) -> str:
        if self.is_bedrock:
            return self.bedrock_llm_model_id
        return self.openai_llm_model

    @property
    def resolved_database_url(self) -> str:
        """Configured database URL, or a SQLite file in the data directory."""
        if self.database_url:
            return self.database_url
        Path(self.data_directory).mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{Path(self.data_directory) / 'leads.db'}"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
