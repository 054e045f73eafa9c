from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".estudos" / "data"
    sqlite_filename: str = "estudos.db"
    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Review rewards
    review_points_per_rating: int = 2  # rating 3-5 earns rating * this
    failed_review_points: int = 1
    binary_review_points: int = 2
    points_per_level: int = Field(default=100, gt=0)

    # Scheduling
    max_interval_days: int = Field(default=36500, gt=6)
    due_default_limit: int = 20

    model_config = {"env_prefix": "ESTUDOS_"}


settings = Settings()
