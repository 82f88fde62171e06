from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    service_name: str = "business-review-service"
    env: str = "dev"

    # Database
    database_url: str = "sqlite:///./business_review.db"

    # Logging
    log_level: str = "INFO"

    # Request handling
    request_timeout_s: float = 5.0  # store deadline applied to every unit of work

    # CORS
    cors_allow_origins: str = "*"

    # Review queue
    default_reviewer_name: str = "Admin"
    pending_page_default: int = 50
    pending_page_max: int = 100

    # Promotions: 0 disables the in-process sweep
    promotion_sweep_interval_s: int = 0

    @property
    def cors_origins(self) -> list:
        raw = self.cors_allow_origins.strip()
        if not raw or raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
