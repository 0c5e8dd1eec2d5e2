"""Application settings, loaded from the environment and ``.env``."""
from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="INKPAD_",
        case_sensitive=True,
        extra="ignore",
    )

    # Server-side ingestion
    UPLOAD_DIR: Path = Path("public") / "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_BYTES: int = Field(5 * MIB, gt=0)
    WEBP_QUALITY: int = Field(80, ge=1, le=100)
    ALLOWED_FORMATS: tuple[str, ...] = ("jpeg", "png", "webp", "gif", "tiff")

    # Default upload slot used by the CLI host
    CLIENT_MAX_SIZE: int = Field(5 * MIB, gt=0)
    CLIENT_LIMIT: int = Field(1, ge=1)
    CLIENT_ACCEPT: str = "image/*"
    API_BASE_URL: str = "http://127.0.0.1:8000"

    LOG_LEVEL: str = "INFO"

    @property
    def upload_dir(self) -> Path:
        """Absolute destination directory for transcoded images."""
        return self.UPLOAD_DIR.expanduser().resolve()

    @property
    def url_prefix(self) -> str:
        return "/" + self.UPLOAD_URL_PREFIX.strip("/")


settings = Settings()
