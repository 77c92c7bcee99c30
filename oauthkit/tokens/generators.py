# oauthkit/tokens/generators.py
import secrets


class TokenGenerator:
    """Random token, secret and verifier strings."""

    def __init__(self, token_bytes: int = 32, secret_bytes: int = 32, verifier_bytes: int = 16):
        self.token_bytes = token_bytes
        self.secret_bytes = secret_bytes
        self.verifier_bytes = verifier_bytes

    def generate_token(self) -> str:
        return secrets.token_urlsafe(self.token_bytes)

    def generate_secret(self) -> str:
        return secrets.token_urlsafe(self.secret_bytes)

    def generate_verifier(self) -> str:
        return secrets.token_urlsafe(self.verifier_bytes)
