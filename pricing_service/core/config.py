from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from pricing_service.core.enums import PricingProfile


class Settings(BaseSettings):
    # Global pricing posture, passed explicitly into the engine by handlers
    PRICING_PROFILE: str = PricingProfile.COMPETITIVE.value
    ENABLE_VAT: bool = False
    PRICING_DEBUG: bool = False

    REDIS_URL: Optional[str] = None
    PRICE_CACHE_TTL: int = 60   # 60 seconds

    WEBHOOK_URL: Optional[str] = None
    WEBHOOK_TIMEOUT: int = 10
    WEBHOOK_RETRIES: int = 3

    API_TITLE: str = "Removals Pricing Service"
    API_DESCRIPTION: str = "Deterministic price estimates, recalculation and repricing for removal jobs"
    API_VERSION: str = "1.0.0"

    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
