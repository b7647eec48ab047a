from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.tripo3d.ai/v2/openapi/"


class Settings(BaseSettings):
    """
    Read from the environment (and .env if present) each time a client is
    built without an explicit Settings instance.
    """

    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False

    # Service
    TRIPO_API_KEY: Optional[SecretStr] = Field(default=None, validation_alias="TRIPO_API_KEY")
    TRIPO_BASE_URL: str = Field(default=DEFAULT_BASE_URL, validation_alias="TRIPO_BASE_URL")

    # Transport
    HTTP_TIMEOUT: float = 60.0  # seconds
    POLLING_INTERVAL: float = 2.0  # seconds

    # Object storage (only used by the S3 upload strategy)
    S3_ENDPOINT_URL: Optional[str] = Field(default=None, validation_alias="S3_ENDPOINT_URL")
    S3_REGION: Optional[str] = Field(default=None, validation_alias="S3_REGION")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
