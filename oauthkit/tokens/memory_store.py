# oauthkit/tokens/memory_store.py
import logging
import threading
from typing import Dict, List, Optional, Union

from .models import AccessToken, Consumer, RequestToken, TokenStatus
from .storage_interfaces import AbstractConsumerStore, AbstractTokenStore, AnyToken

logger = logging.getLogger(__name__)


class InMemoryTokenStore(AbstractTokenStore):
    """Token store guarded by a single lock around every read and write."""

    def __init__(self):
        self._lock = threading.Lock()
        self._request_tokens: Dict[str, RequestToken] = {}
        self._access_tokens: Dict[str, AccessToken] = {}

    def _collection(self, token: AnyToken) -> Dict[str, AnyToken]:
        return self._request_tokens if isinstance(token, RequestToken) else self._access_tokens

    def add(self, token: AnyToken) -> bool:
        with self._lock:
            if token.token in self._request_tokens or token.token in self._access_tokens:
                return False
            self._collection(token)[token.token] = token
        logger.debug(f"Stored {token.token_type} token for consumer '{token.consumer_key}'")
        return True

    def contains(self, token: str) -> bool:
        with self._lock:
            return token in self._request_tokens or token in self._access_tokens

    def contains_request_token(self, token: str) -> bool:
        with self._lock:
            return token in self._request_tokens

    def contains_access_token(self, token: str) -> bool:
        with self._lock:
            return token in self._access_tokens

    def get_request_token(self, token: str) -> Optional[RequestToken]:
        with self._lock:
            return self._request_tokens.get(token)

    def get_access_token(self, token: str) -> Optional[AccessToken]:
        with self._lock:
            return self._access_tokens.get(token)

    def update(self, token: AnyToken) -> bool:
        with self._lock:
            collection = self._collection(token)
            if token.token not in collection:
                return False
            collection[token.token] = token
        return True

    def compare_and_update(self, token: AnyToken, expected_status: TokenStatus) -> bool:
        with self._lock:
            collection = self._collection(token)
            current = collection.get(token.token)
            if current is None or current.status != expected_status:
                return False
            collection[token.token] = token
        return True

    def remove(self, token: Union[AnyToken, str]) -> bool:
        key = token if isinstance(token, str) else token.token
        with self._lock:
            if self._request_tokens.pop(key, None) is not None:
                return True
            return self._access_tokens.pop(key, None) is not None

    def _all(self) -> List[AnyToken]:
        return list(self._request_tokens.values()) + list(self._access_tokens.values())

    def get_tokens_by_user(self, user: str, consumer_key: Optional[str] = None) -> List[AnyToken]:
        with self._lock:
            return [
                t for t in self._all()
                if t.authenticated_user == user and (consumer_key is None or t.consumer_key == consumer_key)
            ]

    def get_tokens_by_consumer(self, consumer_key: str) -> List[AnyToken]:
        with self._lock:
            return [t for t in self._all() if t.consumer_key == consumer_key]


class InMemoryConsumerStore(AbstractConsumerStore):

    def __init__(self, consumers: Optional[List[Consumer]] = None):
        self._lock = threading.Lock()
        self._consumers: Dict[str, Consumer] = {}
        for consumer in consumers or []:
            self.add_consumer(consumer)

    def add_consumer(self, consumer: Consumer) -> bool:
        with self._lock:
            if consumer.key in self._consumers:
                return False
            self._consumers[consumer.key] = consumer
            return True

    def update_consumer(self, consumer: Consumer) -> bool:
        with self._lock:
            if consumer.key not in self._consumers:
                return False
            self._consumers[consumer.key] = consumer
            return True

    def remove_consumer(self, consumer_key: str) -> bool:
        with self._lock:
            return self._consumers.pop(consumer_key, None) is not None

    def get_consumer(self, consumer_key: str) -> Optional[Consumer]:
        with self._lock:
            return self._consumers.get(consumer_key)
