from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Gateway configuration loaded from environment variables."""

    api_base_url: str = Field("http://localhost:5000", alias="API_BASE_URL")
    api_timeout_seconds: float = Field(30.0, alias="API_TIMEOUT_SECONDS")

    session_secret_key: str = Field(..., alias="SESSION_SECRET_KEY")
    session_algorithm: str = Field("HS256", alias="SESSION_ALGORITHM")
    session_expire_minutes: int = Field(60 * 24, alias="SESSION_EXPIRE_MINUTES")

    superadmin_username: Optional[str] = Field(None, alias="SUPERADMIN_USERNAME")
    superadmin_password: Optional[str] = Field(None, alias="SUPERADMIN_PASSWORD")
    superadmin_email: Optional[str] = Field(None, alias="SUPERADMIN_EMAIL")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
