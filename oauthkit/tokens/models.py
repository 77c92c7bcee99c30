# oauthkit/tokens/models.py
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Dict, FrozenSet, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from ..parameters import OAuthParameters


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConsumerStatus(str, Enum):
    UNKNOWN = "unknown"
    VALID = "valid"
    TEMPORARILY_DISABLED = "temporarily_disabled"
    PERMANENTLY_DISABLED = "permanently_disabled"


class TokenStatus(str, Enum):
    UNKNOWN = "unknown"
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"
    USED = "used"
    EXPIRED = "expired"
    REVOKED = "revoked"


TERMINAL_STATUSES: FrozenSet[TokenStatus] = frozenset({TokenStatus.USED, TokenStatus.EXPIRED, TokenStatus.REVOKED})

ALLOWED_TRANSITIONS: Dict[TokenStatus, FrozenSet[TokenStatus]] = {
    TokenStatus.UNKNOWN: frozenset({TokenStatus.UNAUTHORIZED, TokenStatus.AUTHORIZED}),
    TokenStatus.UNAUTHORIZED: frozenset({TokenStatus.AUTHORIZED, TokenStatus.EXPIRED, TokenStatus.REVOKED}),
    TokenStatus.AUTHORIZED: frozenset({TokenStatus.USED, TokenStatus.EXPIRED, TokenStatus.REVOKED}),
    TokenStatus.USED: frozenset(),
    TokenStatus.EXPIRED: frozenset(),
    TokenStatus.REVOKED: frozenset(),
}


class Consumer(BaseModel):
    """A registered client application."""
    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1, description="Consumer key issued to the client application.")
    secret: str = Field(description="Shared secret used to sign requests.")
    status: ConsumerStatus = Field(default=ConsumerStatus.VALID)
    name: Optional[str] = Field(default=None, description="Display name of the application.")


class TokenBase(BaseModel):
    """Fields shared by request and access tokens. Instances are immutable."""
    model_config = ConfigDict(frozen=True)

    token: str = Field(min_length=1, description="Token string, unique across the store.")
    secret: str = Field(description="Secret paired with the token for signing.")
    consumer_key: str = Field(min_length=1, description="Key of the consumer the token was issued to.")
    status: TokenStatus = Field(default=TokenStatus.UNKNOWN)
    issued_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def with_status(self, status: TokenStatus):
        """
        A copy of this token in ``status``.

        Raises:
            ValueError: If the status machine does not allow the transition.
        """
        if status not in ALLOWED_TRANSITIONS[self.status]:
            raise ValueError(f"Token cannot move from '{self.status.value}' to '{status.value}'")
        return self.model_copy(update={"status": status})


class RequestToken(TokenBase):
    token_type: Literal["request"] = "request"
    parameter_pairs: Tuple[Tuple[str, str], ...] = Field(
        default=(),
        description="Parameters received on the request that minted this token, as name/value pairs."
    )
    callback: Optional[str] = Field(default=None, description="Callback URL or 'oob'.")
    verifier: Optional[str] = Field(default=None, description="Verifier issued once the end user authorizes.")
    authenticated_user: Optional[str] = None
    roles: Tuple[str, ...] = ()

    @property
    def parameters(self) -> OAuthParameters:
        """A fresh copy of the minting request's parameters; edits never reach the stored token."""
        return OAuthParameters.from_pairs(self.parameter_pairs)

    def authorize(self, user: str, roles: Tuple[str, ...] = (), verifier: Optional[str] = None) -> "RequestToken":
        token = self.with_status(TokenStatus.AUTHORIZED)
        return token.model_copy(update={"authenticated_user": user, "roles": tuple(roles), "verifier": verifier})


class AccessToken(TokenBase):
    token_type: Literal["access"] = "access"
    request_token: RequestToken = Field(description="The request token this access token was exchanged for.")

    @property
    def authenticated_user(self) -> Optional[str]:
        return self.request_token.authenticated_user

    @property
    def roles(self) -> Tuple[str, ...]:
        return self.request_token.roles


Token = Annotated[Union[RequestToken, AccessToken], Field(discriminator="token_type")]
token_adapter: TypeAdapter = TypeAdapter(Token)
