"""Object storage settings (any S3-compatible backend)."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    S3_ENDPOINT: str | None = None
    S3_REGION: str = "us-east-1"
    S3_ACCESS_KEY: str = ""
    S3_SECRET_KEY: SecretStr = SecretStr("")
    S3_BUCKET: str = "plantscan-images"

    UPLOAD_PART_SIZE: int = 1024 * 1024  # 1MB
    UPLOAD_MAX_RETRIES: int = 3
    SIGNED_URL_EXPIRY_SECONDS: int = 24 * 60 * 60
