from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import Optional

# Get the project root directory (parent of the study_engine package)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Engine configuration loaded from environment variables"""
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'study_engine.db'}"
    store_timeout_seconds: float = 10.0

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    # Review selection
    min_batch: int = 1

    # Concepts per SMART session, by intensity
    warm_up_batch_size: int = 5
    progress_batch_size: int = 10
    rocket_batch_size: int = 20

    quiz_max_questions: int = 10
    quiz_time_limit_seconds: int = 600
    free_study_min_seconds: int = 60  # shorter free sessions are not scored

    # Post-session mini quiz (score out of 10)
    validation_pass_score: float = 8
    default_max_quiz_score: float = 10

    streak_min_concepts: int = 5

    model_config = SettingsConfigDict(
        env_prefix="STUDY_ENGINE_",
        env_file=str(PROJECT_ROOT / ".env"),
        extra="ignore"
    )

settings = Settings()
