from __future__ import annotations

from typing import cast

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="", case_sensitive=False)

    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    HYPIXEL_BASE: AnyHttpUrl = Field(default=cast(AnyHttpUrl, "https://api.hypixel.net/v2/skyblock"))
    GEMINI_BASE: AnyHttpUrl = Field(
        default=cast(AnyHttpUrl, "https://generativelanguage.googleapis.com/v1beta")
    )
    GEMINI_MODEL: str = Field(default="gemini-2.5-flash")
    GEMINI_API_KEY: str | None = None

    CACHE_TTL_LONG: int = Field(default=43200, ge=0)

    USER_AGENT: str = Field(default="Skyblock-Flipper/1.0")
    RETRY_MAX: int = Field(default=3, ge=1)

    LOG_LEVEL: str = Field(default="INFO")

    # Auction house paging
    AUCTION_MAX_PAGES: int = Field(default=35, ge=1)
    AUCTION_PAGE_CHUNK: int = Field(default=5, ge=1)
    ANALYSIS_MAX_PAGES: int = Field(default=10, ge=1)

    # Auction flips (coins)
    AUCTION_MIN_PROFIT: float = Field(default=50_000, ge=0)
    AUCTION_MIN_PRICE: int = Field(default=1, ge=0)
    WALL_GAP_PCT: float = Field(default=0.08, gt=0.0)
    IQR_MULTIPLIER: float = Field(default=2.0, ge=0.0)

    # Bazaar flips
    BAZAAR_MIN_PROFIT: float = Field(default=100, ge=0)
    BAZAAR_MIN_VOLUME: int = Field(default=100, ge=0)

    # Oracle-driven passes
    CRAFT_MIN_PROFIT: float = Field(default=100_000, ge=0)
    TREND_MIN_PROFIT: float = Field(default=10_000, ge=0)
    ANALYSIS_MAX_ITEMS: int = Field(default=15, ge=1)
    ANALYSIS_MIN_PRICE: int = Field(default=250_000, ge=0)
    ANALYSIS_MIN_LORE: int = Field(default=50, ge=0)
    ORACLE_CONCURRENCY: int = Field(default=5, ge=1)


settings = Settings()
