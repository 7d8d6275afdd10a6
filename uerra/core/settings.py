"""
Core settings and environment variables for UERRA.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "UERRA Emergency Reporting"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Dashboard URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,https://uerra.vercel.app"

    # Firebase (Authentication, Firestore, Cloud Storage)
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    FIREBASE_STORAGE_BUCKET: Optional[str] = None

    # In-memory backend for local development without Firebase credentials
    USE_MOCK_DB: bool = False

    # Report photo attachments
    MAX_ATTACHMENT_BYTES: int = 5 * 1024 * 1024
    ALLOWED_ATTACHMENT_TYPES: str = "image/jpeg,image/jpg,image/png,image/webp"
    ATTACHMENT_PREFIX: str = "reports"
    # Delete an uploaded photo when the report insert that follows it fails
    CLEANUP_ORPHANED_ATTACHMENTS: bool = True

    # Service-area bounding box for report locations
    GEO_MIN_LAT: float = 4.0
    GEO_MAX_LAT: float = 21.0
    GEO_MIN_LNG: float = 116.0
    GEO_MAX_LNG: float = 127.0
    SERVICE_AREA_NAME: str = "the Philippines"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins(self) -> list:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def allowed_attachment_types(self) -> list:
        return [t.strip().lower() for t in self.ALLOWED_ATTACHMENT_TYPES.split(",") if t.strip()]


# Global settings instance
settings = Settings()
