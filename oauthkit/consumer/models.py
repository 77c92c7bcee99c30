# oauthkit/consumer/models.py
from typing import Dict, List, Literal, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict, Field

from ..constants import OAUTH_VERSION_1_0, Parameters, SignatureMethods


class OAuthToken(BaseModel):
    """A token held by the consumer: string, secret and the consumer it belongs to."""
    model_config = ConfigDict(frozen=True)

    token_type: Literal["request", "access"]
    token: str = Field(description="Empty only for consumer requests.")
    secret: str = ""
    consumer_key: str = Field(min_length=1)

    @classmethod
    def empty(cls, consumer_key: str) -> "OAuthToken":
        """The zero-length token used to sign a request as the consumer alone."""
        return cls(token_type="access", token="", secret="", consumer_key=consumer_key)

    @property
    def is_empty(self) -> bool:
        return self.token == ""


class OAuthService(BaseModel):
    """
    A service provider as seen by a consumer: its three endpoints and the
    consumer credentials and signing options used against it.
    """
    model_config = ConfigDict(frozen=True)

    request_token_url: str
    authorization_url: str
    access_token_url: str
    consumer_key: str = Field(min_length=1)
    consumer_secret: str = ""
    signature_method: str = SignatureMethods.HMAC_SHA1
    realm: Optional[str] = None
    version: Optional[str] = OAUTH_VERSION_1_0
    token_http_method: Literal["GET", "POST"] = "POST"
    use_authorization_header: bool = Field(
        default=True,
        description="Send protocol parameters in the Authorization header rather than the query or body."
    )

    def build_authorization_url(
        self,
        token: OAuthToken,
        callback_url: Optional[str] = None,
        additional_parameters: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        The URL the end user visits to authorize ``token``.

        Raises:
            ValueError: If ``token`` is not a request token.
        """
        if token.token_type != "request":
            raise ValueError("Only request tokens can be authorized")
        parts = urlsplit(self.authorization_url)
        query: List[Tuple[str, str]] = parse_qsl(parts.query, keep_blank_values=True)
        query.append((Parameters.OAUTH_TOKEN, token.token))
        if callback_url:
            query.append((Parameters.OAUTH_CALLBACK, callback_url))
        for name, value in (additional_parameters or {}).items():
            query.append((name, value))
        return urlunsplit(parts._replace(query=urlencode(query)))
