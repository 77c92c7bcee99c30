# oauthkit/signing/base.py
import hmac
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..problems import ProblemReport


class SigningProvider(ABC):
    """A signature method: computes and verifies signatures over a signature base string."""

    @property
    @abstractmethod
    def signature_method(self) -> str:
        """Wire name of the signature method, e.g. 'HMAC-SHA1'."""
        pass

    @abstractmethod
    def compute_signature(self, base_string: str, consumer_secret: str, token_secret: Optional[str] = None) -> str:
        """Compute the signature for a base string."""
        pass

    def check_request(self, request: Any) -> Optional[ProblemReport]:
        """Refuse a request before signature verification; ``None`` lets it through."""
        return None

    def verify_signature(
        self, base_string: str, signature: str, consumer_secret: str, token_secret: Optional[str] = None
    ) -> bool:
        expected = self.compute_signature(base_string, consumer_secret, token_secret)
        return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
