# oauthkit/settings.py
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import ParameterSources

logger = logging.getLogger(__name__)

# This file is at <project>/oauthkit/settings.py
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
DOTENV_PATH = PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings with environment variable support (prefix ``OAUTHKIT_``)."""

    app_name: str = "oauthkit"
    debug_mode: bool = False
    log_level: str = "INFO"

    # Service provider
    realm: str = Field(default="oauthkit", description="Realm advertised in WWW-Authenticate headers.")
    parameter_sources: str = Field(
        default="authorization_header,post_body,query_string",
        description="Comma separated wire locations inbound parameters are read from."
    )
    timestamp_window_seconds: int = Field(default=600, gt=0)
    allow_out_of_band_callback: bool = True
    allow_consumer_requests: bool = False
    consumer_request_roles: List[str] = Field(default_factory=list)
    plaintext_requires_secure_connection: bool = True
    max_token_generation_attempts: int = Field(default=16, gt=0)

    # Storage
    token_store_backend: str = "memory"
    sqlite_db_path: str = "./oauthkit_data.sqlite3"
    nonce_store_backend: str = "memory"

    # Redis configuration
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None
    redis_ssl: bool = False
    redis_key_prefix: str = "oauthkit:nonce:"

    model_config = SettingsConfigDict(
        env_prefix="OAUTHKIT_",
        env_file=DOTENV_PATH if DOTENV_PATH.exists() else None,
        extra="ignore",
        env_file_encoding='utf-8'
    )

    @property
    def parameter_source_flags(self) -> ParameterSources:
        return ParameterSources.from_names(self.parameter_sources)


def get_settings() -> Settings:
    """Load settings from the environment and the project ``.env`` file."""
    if DOTENV_PATH.exists():
        logger.info(f"Loading settings with .env file at: {DOTENV_PATH}")
    else:
        logger.info(f".env file not found at {DOTENV_PATH}; using OS env vars or defaults.")
    settings = Settings()
    logger.info(
        f"Settings loaded: token_store_backend='{settings.token_store_backend}', "
        f"nonce_store_backend='{settings.nonce_store_backend}', realm='{settings.realm}'"
    )
    return settings
