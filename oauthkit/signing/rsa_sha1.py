# oauthkit/signing/rsa_sha1.py
import base64
import binascii
import logging
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..constants import SignatureMethods
from .base import SigningProvider

logger = logging.getLogger(__name__)


class RsaSha1SigningProvider(SigningProvider):
    """
    RSA-SHA1 (RSASSA-PKCS1-v1_5 over SHA-1). The consumer and token secrets
    are not used; consumers sign with their private key and the provider
    verifies with the consumer's public key.

    Args:
        private_key_pem: PEM private key, required for signing.
        public_key_pem: PEM public key or certificate key, used for verification.
            Derived from the private key when omitted.
        password: Optional passphrase for the private key.
    """
    signature_method = SignatureMethods.RSA_SHA1

    def __init__(
        self,
        private_key_pem: Optional[bytes] = None,
        public_key_pem: Optional[bytes] = None,
        password: Optional[bytes] = None,
    ):
        if private_key_pem is None and public_key_pem is None:
            raise ValueError("RSA-SHA1 requires a private key, a public key, or both")
        self._private_key: Optional[rsa.RSAPrivateKey] = None
        self._public_key: Optional[rsa.RSAPublicKey] = None
        if private_key_pem is not None:
            self._private_key = serialization.load_pem_private_key(private_key_pem, password=password)
        if public_key_pem is not None:
            self._public_key = serialization.load_pem_public_key(public_key_pem)
        elif self._private_key is not None:
            self._public_key = self._private_key.public_key()

    def compute_signature(self, base_string: str, consumer_secret: str, token_secret: Optional[str] = None) -> str:
        if self._private_key is None:
            raise ValueError("RSA-SHA1 signing requires a private key")
        signature = self._private_key.sign(base_string.encode("utf-8"), padding.PKCS1v15(), hashes.SHA1())
        return base64.b64encode(signature).decode("ascii")

    def verify_signature(
        self, base_string: str, signature: str, consumer_secret: str, token_secret: Optional[str] = None
    ) -> bool:
        try:
            raw = base64.b64decode(signature, validate=True)
        except (binascii.Error, ValueError):
            logger.warning("RSA-SHA1 signature is not valid base64")
            return False
        try:
            self._public_key.verify(raw, base_string.encode("utf-8"), padding.PKCS1v15(), hashes.SHA1())
        except InvalidSignature:
            return False
        return True
