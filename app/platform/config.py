from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "LineTime"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = True
    API_PREFIX: str = "/api"

    # ── Database ────────────────────────────────
    DATABASE_URL: str

    # ── Redis ───────────────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"

    # ── Object storage (MinIO / S3 compatible) ──
    S3_ENDPOINT: str = "localhost:9000"
    S3_ACCESS_KEY: str = "minioadmin"
    S3_SECRET_KEY: str = "minioadmin"
    S3_BUCKET: str = "linetime"
    S3_REGION: str = "us-east-1"
    S3_USE_SSL: bool = False
    S3_PUBLIC_URL: Optional[str] = None

    # ── Upload ──────────────────────────────────
    MAX_FILE_SIZE: int = 10 * 1024 * 1024
    MAX_FILES_PER_UPLOAD: int = 9
    ALLOWED_FILE_TYPES: str = "jpg,jpeg,png,gif,webp"
    THUMBNAIL_WIDTH: int = 400

    # ── Email Configuration ─────────────────────
    MAIL_HOST: str = "smtp.qq.com"
    MAIL_PORT: int = 587
    MAIL_USERNAME: str = "your-email-id"
    MAIL_PASSWORD: str = "your-password"
    MAIL_ENCRYPTION: str = "tls"
    MAIL_FROM_ADDRESS: str = "example@localhost"
    MAIL_FROM_NAME: str = "LineTime"

    GOOGLE_CLIENT_ID: Optional[str] = None

    # ── JWT / Auth ──────────────────────────────
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120
    REFRESH_TOKEN_EXPIRE_HOURS: int = 168

    INVITE_LINK_BASE: str = "https://linetime.app/invite"

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def allowed_file_types(self) -> List[str]:
        return [t.strip().lower() for t in self.ALLOWED_FILE_TYPES.split(",") if t.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
