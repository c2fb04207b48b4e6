from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    SECRET_KEY: str
    REFRESH_SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    INVITATION_EXPIRE_HOURS: int = 24
    BCRYPT_ROUNDS: int = 12

    # Attempts per window on /register and /login, per client IP and per email; 0 disables
    AUTH_RATE_LIMIT: int = 5
    AUTH_RATE_LIMIT_WINDOW_SECONDS: int = 60
    REDIS_URL: Optional[str] = None

    ENVIRONMENT: str = "development"  # "development" or "production"
    FRONTEND_URL: str = "http://localhost:3000"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    MAIL_FROM_EMAIL: Optional[str] = None
    MAIL_FROM_NAME: str = "Tenantcore"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def invitation_link(self, token: str) -> str:
        return f"{self.FRONTEND_URL.rstrip('/')}/accept-invitation?token={token}"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
