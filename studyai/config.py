from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_NAME: str = "StudyAI"
    DEBUG: bool = False

    # Remote enrichment (unset key means local pipeline only)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    ENRICHMENT_ENABLED: bool = True
    ENRICHMENT_TIMEOUT_SECONDS: float = 30.0
    ENRICHMENT_MAX_CHARS: int = 8000

    # Text analysis
    SUMMARY_POSITION_STRATEGY: str = "decay"  # decay | emphasis
    TOPIC_GROUPING_STRATEGY: str = "prefix"  # prefix | similarity
    DEFAULT_SUMMARY_SENTENCES: int = 3
    DEFAULT_KEYWORD_COUNT: int = 15
    MAX_TOPICS: int = 8

    # Quiz
    PASSING_SCORE_PERCENT: int = 60
    MINUTES_PER_QUESTION: int = 2

    # oldest quizzes are evicted past this many
    MAX_QUIZZES: int = 500

    # Upload
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024  # 10MB

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()
