from decimal import Decimal
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


PRICE_ALERT_POLICIES = ("threshold", "drop_only")


class Settings(BaseSettings):
    env: str = "dev"
    database_url: str = "sqlite:///./fare_watch.db"

    scheduler_enabled: bool = True
    price_check_hour: int = 12
    price_check_minute: int = 0

    amadeus_client_id: str = ""
    amadeus_client_secret: str = ""
    amadeus_base_url: str = "https://test.api.amadeus.com"
    amadeus_non_stop: bool = True

    price_alert_policy: str = "threshold"
    price_change_threshold: Decimal = Decimal("5.00")
    price_check_delay_seconds: float = 1.0

    ntfy_url: str = "http://localhost:8080"
    ntfy_topic: str = ""
    base_url: str = "http://localhost:8000"

    @field_validator("price_alert_policy")
    @classmethod
    def _known_policy(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in PRICE_ALERT_POLICIES:
            raise ValueError(
                f"PRICE_ALERT_POLICY must be one of {', '.join(PRICE_ALERT_POLICIES)}"
            )
        return v

    def model_post_init(self, __context):
        if self.env == "prod" and self.database_url.startswith("sqlite"):
            raise ValueError(
                "Production requires explicit DATABASE_URL (not SQLite)"
            )

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
