# scorekeeper/config.py
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str
    env: Literal["dev", "stage", "prod"] = "dev"
    debug: bool = False
    log_level: str = "INFO"
    access_log: bool = True
    sql_echo: bool = False
    auto_init_db: bool = True

    # Season defaults used when a create request leaves them out
    default_initial_score: int = 1200
    default_k_factor: int = 32

    # Page size for match listings
    latest_matches_limit: int = 30

    @property
    def is_dev(self) -> bool:
        return self.env == "dev" or self.debug is True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
