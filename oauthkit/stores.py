# oauthkit/stores.py
"""Construct the configured token store, consumer store and request-id validator."""
import logging
from typing import Tuple

from .nonces import AbstractRequestIdValidator, InMemoryRequestIdValidator, RedisRequestIdValidator
from .settings import Settings
from .tokens import (
    AbstractConsumerStore,
    AbstractTokenStore,
    InMemoryConsumerStore,
    InMemoryTokenStore,
    SQLiteConsumerStore,
    SQLiteTokenStore,
)

logger = logging.getLogger(__name__)


def create_token_stores(settings: Settings) -> Tuple[AbstractTokenStore, AbstractConsumerStore]:
    if settings.token_store_backend == "sqlite":
        logger.info(f"Using SQLite token and consumer stores at '{settings.sqlite_db_path}'.")
        return SQLiteTokenStore(settings.sqlite_db_path), SQLiteConsumerStore(settings.sqlite_db_path)
    if settings.token_store_backend == "memory":
        logger.info("Using in-memory token and consumer stores.")
        return InMemoryTokenStore(), InMemoryConsumerStore()
    raise ValueError(f"Unsupported token_store_backend: {settings.token_store_backend}")


def create_request_id_validator(settings: Settings) -> AbstractRequestIdValidator:
    if settings.nonce_store_backend == "redis":
        logger.info("Using Redis request-id validator.")
        validator = RedisRequestIdValidator(
            window_seconds=settings.timestamp_window_seconds,
            key_prefix=settings.redis_key_prefix,
        )
        validator.initialize(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,
            ssl=settings.redis_ssl,
        )
        return validator
    if settings.nonce_store_backend == "memory":
        logger.info("Using in-memory request-id validator.")
        return InMemoryRequestIdValidator(window_seconds=settings.timestamp_window_seconds)
    raise ValueError(f"Unsupported nonce_store_backend: {settings.nonce_store_backend}")
