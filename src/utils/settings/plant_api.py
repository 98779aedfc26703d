"""Plant recognition service settings."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class PlantApiSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    PLANT_API_URL: str = "https://plant.id/api/v3"
    PLANT_API_KEY: SecretStr = SecretStr("")
    PLANT_API_KEY_HEADER: str = "Api-Key"
    PLANT_API_TIMEOUT: float = 30.0

    # Recognition calls: at most MAX_RETRIES + 1 attempts
    PLANT_API_MAX_RETRIES: int = 3
    PLANT_API_RETRY_BASE_DELAY: float = 1.0
