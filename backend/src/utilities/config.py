"""Runtime configuration loaded from LIVESCORE_* environment variables.

Defaults come from utilities.constants so the module stays importable
without any environment set up.
"""

from typing import List, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utilities.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DROP_OLDEST,
    HEARTBEAT_INTERVAL,
    SCORE_PROBABILITY,
    SUBSCRIBER_QUEUE_SIZE,
    TICK_INTERVAL,
)


class Settings(BaseSettings):
    """All service configuration. Set via LIVESCORE_* env vars."""

    # Server
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: Literal["critical", "error", "warning", "info", "debug"] = "info"

    # Producer
    tick_interval: float = TICK_INTERVAL
    score_probability: float = SCORE_PROBABILITY

    # Fan-out
    queue_size: int = SUBSCRIBER_QUEUE_SIZE
    overflow_policy: Literal["drop_oldest", "drop_newest"] = DROP_OLDEST
    heartbeat_interval: float = HEARTBEAT_INTERVAL  # 0 disables heartbeats

    # CORS
    cors_origins: List[str] = ["*"]
    cors_methods: List[str] = ["GET", "POST"]
    cors_headers: List[str] = ["Authorization", "Accept"]

    model_config = SettingsConfigDict(env_prefix="LIVESCORE_")

    @field_validator("queue_size")
    @classmethod
    def _queue_size_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("queue_size must be at least 1")
        return v

    @field_validator("tick_interval")
    @classmethod
    def _tick_interval_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("tick_interval must be positive")
        return v

    @field_validator("heartbeat_interval")
    @classmethod
    def _heartbeat_not_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("heartbeat_interval must be >= 0")
        return v

    @field_validator("score_probability")
    @classmethod
    def _probability_in_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("score_probability must be between 0 and 1")
        return v
