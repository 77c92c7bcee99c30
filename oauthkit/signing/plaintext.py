# oauthkit/signing/plaintext.py
import logging
from typing import Any, Optional

from .. import problems
from ..constants import SignatureMethods
from ..problems import ProblemReport, ProblemType
from .base import SigningProvider
from .hmac_sha1 import signing_key

logger = logging.getLogger(__name__)


class PlaintextSigningProvider(SigningProvider):
    """PLAINTEXT: the signature is the signing key itself, so it is only safe over TLS."""
    signature_method = SignatureMethods.PLAINTEXT

    def __init__(self, require_secure_connection: bool = True):
        self.require_secure_connection = require_secure_connection

    def compute_signature(self, base_string: str, consumer_secret: str, token_secret: Optional[str] = None) -> str:
        return signing_key(consumer_secret, token_secret)

    def check_request(self, request: Any) -> Optional[ProblemReport]:
        if self.require_secure_connection and not getattr(request, "is_secure", False):
            logger.warning("PLAINTEXT signature refused on an insecure connection")
            return problems.simple(ProblemType.SIGNATURE_METHOD_REJECTED)
        return None
