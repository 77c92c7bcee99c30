# oauthkit/consumer/__init__.py
from .authorization import (
    AuthorizationAction,
    AuthorizationHandler,
    AuthorizationOutcome,
    OutOfBandAuthorizationHandler,
    redirect_handler,
)
from .errors import OAuthProtocolError
from .models import OAuthService, OAuthToken
from .request import OAuthRequest, OAuthResponse, RequestStatus
from .state import (
    AbstractRequestStateStore,
    InMemoryRequestStateStore,
    RequestState,
    RequestStateKey,
)

__all__ = [
    "AuthorizationAction",
    "AuthorizationHandler",
    "AuthorizationOutcome",
    "OutOfBandAuthorizationHandler",
    "redirect_handler",
    "OAuthProtocolError",
    "OAuthService",
    "OAuthToken",
    "OAuthRequest",
    "OAuthResponse",
    "RequestStatus",
    "AbstractRequestStateStore",
    "InMemoryRequestStateStore",
    "RequestState",
    "RequestStateKey",
]
