"""
Application settings, read once from the environment (and an optional .env file)
and handed to every component that needs them.
"""
from functools import lru_cache
from typing import Dict, List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"
AI_PIPE_BASE_URL = "https://aipipe.org/openai/v1"


def resolve_endpoint(explicit: Optional[str], legacy_alias: Optional[str], default: Optional[str]) -> Optional[str]:
    """
    Pick the first non-empty value among an explicit setting, its legacy alias and a default.

    Example:
        >>> resolve_endpoint(None, "https://aipipe.org/openai/v1", OPENAI_DEFAULT_BASE_URL)
        'https://aipipe.org/openai/v1'
    """
    for value in (explicit, legacy_alias, default):
        if value and value.strip():
            return value.strip()
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    PORT: int = 3000
    SHARED_SECRET: Optional[str] = None

    # GitHub
    GITHUB_PAT: Optional[str] = None
    GITHUB_USERNAME: Optional[str] = None
    GITHUB_API_URL: str = "https://api.github.com"
    DEFAULT_BRANCH: str = "main"
    PAGES_SETTLE_SECONDS: float = 5.0

    # LLM, the AI_PIPE_* keys are legacy aliases
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = None
    AI_PIPE_TOKEN: Optional[str] = None
    AI_PIPE_KEY: Optional[str] = None
    AI_PIPE_ENDPOINT: Optional[str] = None
    AI_MODEL: str = "gpt-4o-mini"
    MAX_OUTPUT_TOKENS: int = 2000
    LLM_TIMEOUT: float = 120.0

    # Evaluation callback
    NOTIFY_MAX_ATTEMPTS: int = 5
    NOTIFY_INITIAL_DELAY: float = 1.0
    NOTIFY_TIMEOUT: float = 30.0

    @property
    def llm_api_key(self) -> Optional[str]:
        return resolve_endpoint(self.OPENAI_API_KEY, self.AI_PIPE_TOKEN or self.AI_PIPE_KEY, None)

    @property
    def llm_base_url(self) -> str:
        legacy = self.AI_PIPE_ENDPOINT or (AI_PIPE_BASE_URL if self.AI_PIPE_TOKEN else None)
        return resolve_endpoint(self.OPENAI_BASE_URL, legacy, OPENAI_DEFAULT_BASE_URL).rstrip("/")

    def presence(self) -> Dict[str, bool]:
        """Booleans only, safe to log."""
        return {
            "SHARED_SECRET": bool(self.SHARED_SECRET),
            "GITHUB_PAT": bool(self.GITHUB_PAT),
            "GITHUB_USERNAME": bool(self.GITHUB_USERNAME),
            "LLM_API_KEY": bool(self.llm_api_key),
        }

    def missing(self) -> List[str]:
        return [key for key, present in self.presence().items() if not present]


@lru_cache
def get_settings() -> Settings:
    return Settings()
