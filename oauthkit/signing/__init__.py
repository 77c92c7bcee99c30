# oauthkit/signing/__init__.py
from .base import SigningProvider
from .hmac_sha1 import HmacSha1SigningProvider
from .plaintext import PlaintextSigningProvider
from .rsa_sha1 import RsaSha1SigningProvider
from .registry import SigningProviderRegistry
from .signature_base import build_base_string, normalize_url

__all__ = [
    "SigningProvider",
    "HmacSha1SigningProvider",
    "PlaintextSigningProvider",
    "RsaSha1SigningProvider",
    "SigningProviderRegistry",
    "build_base_string",
    "normalize_url",
]
