# oauthkit/signing/hmac_sha1.py
import base64
import hashlib
import hmac
from typing import Optional

from .. import rfc3986
from ..constants import SignatureMethods
from .base import SigningProvider


def signing_key(consumer_secret: str, token_secret: Optional[str]) -> str:
    return f"{rfc3986.encode(consumer_secret)}&{rfc3986.encode(token_secret)}"


class HmacSha1SigningProvider(SigningProvider):
    signature_method = SignatureMethods.HMAC_SHA1

    def compute_signature(self, base_string: str, consumer_secret: str, token_secret: Optional[str] = None) -> str:
        key = signing_key(consumer_secret, token_secret).encode("utf-8")
        digest = hmac.new(key, base_string.encode("utf-8"), hashlib.sha1).digest()
        return base64.b64encode(digest).decode("ascii")
