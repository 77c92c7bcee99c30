# oauthkit/provider/models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from .. import rfc3986
from ..constants import FORM_CONTENT_TYPE
from ..parameters import OAuthParameters, PairSource
from ..problems import ProblemReport
from ..signing import SigningProvider
from ..tokens import AccessToken, Consumer, RequestToken

if TYPE_CHECKING:
    from .service_provider import ServiceProvider


class Endpoint(str, Enum):
    REQUEST_TOKEN = "request_token"
    ACCESS_TOKEN = "access_token"
    PROTECTED_RESOURCE = "protected_resource"


class TokenGenerationError(RuntimeError):
    """No collision-free token string was produced within the allowed attempts."""


@dataclass
class InboundRequest:
    """
    What the host HTTP layer hands to the provider.

    ``url`` is the absolute request URL including its query string. ``form``
    is the decoded form body, present only for form-encoded requests.
    """
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    form: PairSource = None
    is_secure: Optional[bool] = None

    def __post_init__(self):
        if self.is_secure is None:
            self.is_secure = urlsplit(self.url).scheme.lower() == "https"

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def query(self) -> str:
        return urlsplit(self.url).query


@dataclass
class ProviderResponse:
    """Status, headers and body for the host HTTP layer to send."""
    status_code: int
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def form(cls, pairs: List[Tuple[str, str]], status_code: int = 200,
             headers: Optional[Dict[str, str]] = None) -> "ProviderResponse":
        body = "&".join(f"{rfc3986.encode(name)}={rfc3986.encode(value)}" for name, value in pairs)
        all_headers = {"Content-Type": FORM_CONTENT_TYPE}
        all_headers.update(headers or {})
        return cls(status_code=status_code, body=body, headers=all_headers)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass
class RequestContext:
    """Working state of one inbound request as it moves through a pipeline."""
    provider: "ServiceProvider"
    request: InboundRequest
    endpoint: Endpoint
    parameters: Optional[OAuthParameters] = None
    signing_provider: Optional[SigningProvider] = None
    consumer: Optional[Consumer] = None
    request_token: Optional[RequestToken] = None
    access_token: Optional[AccessToken] = None
    is_consumer_request: bool = False
    is_signature_valid: bool = False
    problems: List[ProblemReport] = field(default_factory=list)
    response_parameters: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def token_secret(self) -> Optional[str]:
        if self.endpoint == Endpoint.ACCESS_TOKEN and self.request_token is not None:
            return self.request_token.secret
        if self.endpoint == Endpoint.PROTECTED_RESOURCE:
            return self.access_token.secret if self.access_token is not None else ""
        return None


@dataclass(frozen=True)
class AuthenticatedRequest:
    """The principal behind a validated protected-resource request."""
    consumer: Consumer
    parameters: OAuthParameters
    access_token: Optional[AccessToken] = None
    user: Optional[str] = None
    roles: Tuple[str, ...] = ()
    is_consumer_request: bool = False


@dataclass(frozen=True)
class AuthorizationGrant:
    """Result of the end user authorizing a request token."""
    request_token: RequestToken
    verifier: str
    callback_url: Optional[str] = None
