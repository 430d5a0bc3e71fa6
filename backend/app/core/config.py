from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_name: str = "Pebble Track"
    debug: bool = False
    log_level: str = "INFO"

    # Supabase (leave empty to run against the in-memory store)
    supabase_url: str = ""
    supabase_service_key: str = ""

    # OpenAI (kept for fallback)
    openai_api_key: str = ""

    # Gemini
    gemini_api_key: str = ""
    llm_provider: str = "gemini"

    # CORS
    frontend_url: str = "http://localhost:5173"

    # Curriculum import
    default_parent_id: str = "demo-parent"
    max_parse_chars: int = 8000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
