from pydantic_settings import BaseSettings

class Settings(BaseSettings):

    DATABASE_URL: str = "sqlite+aiosqlite:///./gamekeys.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 10
    AUTO_CREATE_TABLES: bool = True
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGO: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    CLAIM_MAX_ATTEMPTS: int = 5
    IDEMPOTENCY_TTL_HOURS: int = 24
    CATALOG_MAX_PAGE_SIZE: int = 100
    CHECKOUT_MAX_LINE_QUANTITY: int = 20

    class Config:
        env_file = ".env"
        extra="ignore"

config_settings = Settings()
