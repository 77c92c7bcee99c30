# oauthkit/tokens/storage_interfaces.py
from abc import ABC, abstractmethod
from typing import List, Optional, Union

from .models import AccessToken, Consumer, RequestToken, TokenStatus

AnyToken = Union[RequestToken, AccessToken]


class AbstractTokenStore(ABC):
    """
    Store of request and access tokens. Implementations must be safe for
    concurrent callers and never split a check-then-act sequence.
    """

    @abstractmethod
    def add(self, token: AnyToken) -> bool:
        """Store the token unless its token string already exists in either collection."""
        pass

    @abstractmethod
    def contains(self, token: str) -> bool:
        pass

    @abstractmethod
    def contains_request_token(self, token: str) -> bool:
        pass

    @abstractmethod
    def contains_access_token(self, token: str) -> bool:
        pass

    @abstractmethod
    def get_request_token(self, token: str) -> Optional[RequestToken]:
        pass

    @abstractmethod
    def get_access_token(self, token: str) -> Optional[AccessToken]:
        pass

    @abstractmethod
    def update(self, token: AnyToken) -> bool:
        """Replace an existing entry; returns False if it is absent."""
        pass

    @abstractmethod
    def compare_and_update(self, token: AnyToken, expected_status: TokenStatus) -> bool:
        """
        Replace an existing entry only while its stored status is still
        ``expected_status``, as one indivisible step.

        Returns False if the entry is absent or its status has moved on.
        """
        pass

    @abstractmethod
    def remove(self, token: Union[AnyToken, str]) -> bool:
        """Remove a token; returns False if it was not present."""
        pass

    @abstractmethod
    def get_tokens_by_user(self, user: str, consumer_key: Optional[str] = None) -> List[AnyToken]:
        """Tokens authorized by ``user``, optionally only those of one consumer. O(n)."""
        pass

    @abstractmethod
    def get_tokens_by_consumer(self, consumer_key: str) -> List[AnyToken]:
        """Tokens issued to a consumer. O(n)."""
        pass


class AbstractConsumerStore(ABC):
    """Registry of known consumers."""

    @abstractmethod
    def add_consumer(self, consumer: Consumer) -> bool:
        pass

    @abstractmethod
    def update_consumer(self, consumer: Consumer) -> bool:
        pass

    @abstractmethod
    def remove_consumer(self, consumer_key: str) -> bool:
        pass

    @abstractmethod
    def get_consumer(self, consumer_key: str) -> Optional[Consumer]:
        pass
