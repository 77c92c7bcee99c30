# oauthkit/consumer/state.py
import threading
from abc import ABC, abstractmethod
from typing import Dict, NamedTuple, Optional

from pydantic import BaseModel

from .models import OAuthToken


class RequestStateKey(NamedTuple):
    """Identifies one end user's tokens for one service and consumer."""
    service_realm: str
    consumer_key: str
    end_user_id: Optional[str] = None


class RequestState(BaseModel):
    request_token: Optional[OAuthToken] = None
    access_token: Optional[OAuthToken] = None


class AbstractRequestStateStore(ABC):
    """Keeps consumer tokens between the authorization redirect and the callback."""

    @abstractmethod
    def get(self, key: RequestStateKey) -> Optional[RequestState]:
        pass

    @abstractmethod
    def store(self, key: RequestStateKey, state: RequestState) -> None:
        pass

    @abstractmethod
    def delete(self, key: RequestStateKey) -> None:
        pass


class InMemoryRequestStateStore(AbstractRequestStateStore):

    def __init__(self):
        self._lock = threading.Lock()
        self._states: Dict[RequestStateKey, RequestState] = {}

    def get(self, key: RequestStateKey) -> Optional[RequestState]:
        with self._lock:
            state = self._states.get(key)
            return state.model_copy() if state is not None else None

    def store(self, key: RequestStateKey, state: RequestState) -> None:
        with self._lock:
            self._states[key] = state.model_copy()

    def delete(self, key: RequestStateKey) -> None:
        with self._lock:
            self._states.pop(key, None)
