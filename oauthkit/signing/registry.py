# oauthkit/signing/registry.py
import logging
from typing import Dict, Iterable, List, Optional

from ..problems import ProblemType, simple
from ..result import Err, Ok, Result
from .base import SigningProvider
from .hmac_sha1 import HmacSha1SigningProvider
from .plaintext import PlaintextSigningProvider

logger = logging.getLogger(__name__)


class SigningProviderRegistry:
    """Signing providers keyed by signature method name."""

    def __init__(self, providers: Iterable[SigningProvider] = ()):
        self._providers: Dict[str, SigningProvider] = {}
        for provider in providers:
            self.register(provider)

    @classmethod
    def default(cls, plaintext_requires_secure_connection: bool = True) -> "SigningProviderRegistry":
        return cls([
            HmacSha1SigningProvider(),
            PlaintextSigningProvider(require_secure_connection=plaintext_requires_secure_connection),
        ])

    def register(self, provider: SigningProvider) -> None:
        self._providers[provider.signature_method] = provider
        logger.debug(f"Registered signing provider '{provider.signature_method}'")

    def get(self, signature_method: Optional[str]) -> Optional[SigningProvider]:
        if not signature_method:
            return None
        return self._providers.get(signature_method)

    def resolve(self, signature_method: Optional[str]) -> Result[SigningProvider]:
        """The provider for ``signature_method``, or signature_method_rejected."""
        provider = self.get(signature_method)
        if provider is None or provider.signature_method != signature_method:
            logger.warning(f"Signature method '{signature_method}' is not supported")
            return Err(simple(ProblemType.SIGNATURE_METHOD_REJECTED))
        return Ok(provider)

    @property
    def signature_methods(self) -> List[str]:
        return sorted(self._providers)

    def __contains__(self, signature_method: str) -> bool:
        return signature_method in self._providers
