"""Business settings for the marketplace, read from the environment or ``.env``.

Infrastructure settings (databases, event store) live in ``domain.toml`` and
are owned by Protean; this module only holds the knobs the checkout and
discovery logic needs.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- Checkout ---
    DELIVERY_FEE: float = 50.0
    TAX_RATE: float = 0.05
    DELIVERY_WINDOW_MINUTES: int = 45
    ORDER_NUMBER_ATTEMPTS: int = 5

    # --- Discovery ---
    SEARCH_RADIUS_KM: float = 10.0
    CUISINE_RADIUS_KM: float = 15.0
    TRENDING_RADIUS_KM: float = 15.0
    RECOMMENDATION_RADIUS_KM: float = 10.0
    FAST_DELIVERY_MINUTES: int = 30
    TRENDING_WINDOW_DAYS: int = 7
    RECOMMENDATION_HISTORY: int = 50

    # --- Auth collaborator ---
    JWT_SECRET: str = "devsecret"
    JWT_ALGORITHM: str = "HS256"

    model_config = SettingsConfigDict(
        env_prefix="BITELINE_",
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
