from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = Field("Smart Ambulance", env="APP_NAME")
    app_version: str = Field("0.1.0", env="APP_VERSION")

    database_url: str = Field("sqlite:///./data/smart_ambulance.db", env="DATABASE_URL")
    log_level: str = Field("INFO", env="LOG_LEVEL")

    # explicit: telemetry needs a started service; implicit: first report opens one
    session_policy: Literal["explicit", "implicit"] = Field("explicit", env="SESSION_POLICY")
    poll_interval_seconds: int = Field(default=10, env="POLL_INTERVAL_SECONDS")
    token_ttl_seconds: int = Field(default=12 * 3600, env="TOKEN_TTL_SECONDS")

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
