# oauthkit/tokens/__init__.py

# Models
from .models import (
    AccessToken,
    Consumer,
    ConsumerStatus,
    RequestToken,
    Token,
    TokenStatus,
)

# Stores
from .storage_interfaces import AbstractConsumerStore, AbstractTokenStore
from .memory_store import InMemoryConsumerStore, InMemoryTokenStore
from .sqlite_store import SQLiteConsumerStore, SQLiteTokenStore

from .generators import TokenGenerator

__all__ = [
    "AccessToken",
    "Consumer",
    "ConsumerStatus",
    "RequestToken",
    "Token",
    "TokenStatus",
    "AbstractConsumerStore",
    "AbstractTokenStore",
    "InMemoryConsumerStore",
    "InMemoryTokenStore",
    "SQLiteConsumerStore",
    "SQLiteTokenStore",
    "TokenGenerator",
]
