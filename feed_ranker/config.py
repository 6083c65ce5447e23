# feed_ranker/config.py
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Feed Ranker"
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Preference weighting
    WEIGHT_LIKED: float = 3.0
    WEIGHT_INTERESTED: float = 2.0
    WEIGHT_NOT_INTERESTED: float = -4.0
    WEIGHT_COMMENTED: float = 1.5
    DEFAULT_DURATION_MS: float = 10000.0

    # Interest selection
    MIN_INTERACTIONS: int = 10
    MIN_WEIGHT: float = 0.1
    MAX_SELECTED: int = 5
    AVG_SHARE: float = 0.6
    TOTAL_SHARE: float = 0.4
    SPLIT_SCAN_LIMIT: int = 10

    # Engagement labels
    NEGATIVE_CUTOFF: float = -1.5
    POSITIVE_CUTOFF: float = 1.5

    # Classifier
    TRAIN_WINDOW: int = 100
    EPOCHS: int = 25
    BATCH_SIZE: int = 8
    LEARNING_RATE: float = 0.001
    L2_PENALTY: float = 0.001
    MIN_HIDDEN_UNITS: int = 16
    SECOND_HIDDEN_UNITS: int = 8
    RANDOM_STATE: Optional[int] = None

    # Retrain triggers
    IDLE_SECONDS: float = 10.0

    # Content serving
    DEFAULT_LIMIT: int = 10
    NOISE_FRACTION: float = 0.3
    RELEVANT_MULTIPLIER: int = 2
    CONTENT_FILE: Optional[str] = None
    POOL_SIZE: int = 200
    POOL_SEED: int = 7

    class Config:
        env_prefix = "FEED_RANKER_"
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()
