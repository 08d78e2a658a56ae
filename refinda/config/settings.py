"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _load_env_file(path: str = ".env") -> None:
    """Populate os.environ from the provided .env file if it exists."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class Settings:
    """Centralised project settings based on OS environment variables."""

    environment: str = "dev"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./data/refinda.db"
    internal_token: str = ""

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4.1-mini"
    openai_embed_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    request_timeout: float = 60.0
    use_ai: bool = False

    taste_default_decay: float = 0.985
    taste_default_clamp_min: float = -30.0
    taste_default_clamp_max: float = 30.0
    taste_snapshot_interval_hours: int = 24
    taste_update_max_attempts: int = 3

    anchor_match_count: int = 20
    anchor_prompt_count: int = 6
    min_recommendations: int = 7
    max_recommendations: int = 10


def _build_settings() -> Settings:
    _load_env_file()

    return Settings(
        environment=os.getenv("ENVIRONMENT", "dev"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        database_url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/refinda.db"),
        internal_token=os.getenv("INTERNAL_TOKEN", ""),
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4.1-mini"),
        openai_embed_model=os.getenv("OPENAI_EMBED_MODEL", "text-embedding-3-small"),
        embedding_dimensions=int(os.getenv("EMBEDDING_DIMENSIONS", "1536")),
        request_timeout=float(os.getenv("OPENAI_TIMEOUT", "60")),
        use_ai=_env_bool("USE_AI"),
        taste_default_decay=float(os.getenv("TASTE_DEFAULT_DECAY", "0.985")),
        taste_default_clamp_min=float(os.getenv("TASTE_DEFAULT_CLAMP_MIN", "-30")),
        taste_default_clamp_max=float(os.getenv("TASTE_DEFAULT_CLAMP_MAX", "30")),
        taste_snapshot_interval_hours=int(os.getenv("TASTE_SNAPSHOT_INTERVAL_HOURS", "24")),
        taste_update_max_attempts=int(os.getenv("TASTE_UPDATE_MAX_ATTEMPTS", "3")),
        anchor_match_count=int(os.getenv("ANCHOR_MATCH_COUNT", "20")),
        anchor_prompt_count=int(os.getenv("ANCHOR_PROMPT_COUNT", "6")),
        min_recommendations=int(os.getenv("MIN_RECOMMENDATIONS", "7")),
        max_recommendations=int(os.getenv("MAX_RECOMMENDATIONS", "10")),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading configuration."""

    return _build_settings()
