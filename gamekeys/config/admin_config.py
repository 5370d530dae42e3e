from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "dev"                # "dev" / "staging" / "prod"
    ENABLE_ADMIN: bool = True
    SERVICE_NAME: str = "gamekeys"
    BOOTSTRAP_ADMIN_ID: Optional[str] = None    # user id granted admin by seed_scripts/seed_admin.py

    class Config:
        env_file = ".env"
        extra="ignore"

admin_config = Settings()
