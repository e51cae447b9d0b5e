from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./storefront.db"
    APP_NAME: str = "storefront-estimator"
    LOG_LEVEL: str = "INFO"
    DEFAULT_CURRENCY: str = "EUR"

    # Estimation constants, metres unless noted
    HEADER_ALLOWANCE_M: float = 0.15
    HEM_ALLOWANCE_M: float = 0.15
    BASE_MAKING_COST: float = 50.0
    LABOR_RATE_PER_METER: float = 5.0
    DEFAULT_FABRIC_WIDTH_CM: float = 140.0
    DEFAULT_FULLNESS_RATIO: float = 2.0
    FABRIC_INCREMENT_M: float = 0.1  # suppliers sell in 10cm steps

    # Storefront request limits
    MAX_DIMENSION_MM: float = 100000.0
    MAX_QUANTITY: int = 10000

    class Config:
        env_file = ".env"


settings = Settings()
