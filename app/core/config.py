from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
import secrets


class Settings(BaseSettings):
    """
    Everything configurable comes from the environment (or .env).
    DATABASE_URL is the only required value.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -------------------------
    # Database
    # -------------------------
    DATABASE_URL: str

    SQLALCHEMY_ECHO: bool = False
    DB_POOL_MIN_SIZE: Optional[int] = None
    DB_POOL_MAX_SIZE: Optional[int] = None

    # -------------------------
    # Sessions
    # -------------------------
    SESSION_SECRET: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    SESSION_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "qna.sid"
    SESSION_TTL_HOURS: int = Field(default=24, ge=1)
    SESSION_COOKIE_SECURE: bool = False
    SESSION_COOKIE_SAMESITE: str = "lax"

    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=16)

    # -------------------------
    # Administrator (fixed credential pair, unset disables admin login)
    # -------------------------
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    # -------------------------
    # Application
    # -------------------------
    PROJECT_NAME: str = "QnA Education API"
    API_PREFIX: str = "/api"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )

    # -------------------------
    # Redis (session store)
    # -------------------------
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the session store"
    )

    # -------------------------
    # File Storage
    # -------------------------
    STORAGE_BACKEND: str = Field(
        default="local",
        description="Storage backend: 'local' or 'cloudinary'"
    )
    UPLOAD_DIR: str = Field(
        default="storage/uploads",
        description="Root directory for local uploads, served under /uploads"
    )
    PUBLIC_BASE_URL: str = Field(
        default="http://localhost:8000",
        description="Base URL used to build references for locally stored files"
    )

    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None
    CLOUDINARY_FOLDER_PREFIX: str = "qna-education"

    MAX_FILE_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Per-file upload limit in megabytes"
    )
    MAX_FILES_PER_POST: int = Field(default=5, ge=1)

    @property
    def MAX_FILE_SIZE_BYTES(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024

    @property
    def SESSION_TTL_SECONDS(self) -> int:
        return self.SESSION_TTL_HOURS * 60 * 60

    ALLOWED_UPLOAD_MIME_TYPES: List[str] = Field(
        default_factory=lambda: [
            "image/jpeg",
            "image/png",
            "image/gif",
            "image/webp",
            "application/pdf",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "text/plain",
        ],
        description="MIME types (detected from content) accepted for uploads"
    )

    @property
    def admin_configured(self) -> bool:
        return bool(self.ADMIN_EMAIL and self.ADMIN_PASSWORD)

    @field_validator("STORAGE_BACKEND")
    def normalize_storage_backend(cls, v):
        backend = (v or "").strip().lower()
        if backend not in ("local", "cloudinary"):
            raise ValueError(f"STORAGE_BACKEND must be local or cloudinary, got {v!r}")
        return backend


settings = Settings()
