# oauthkit/provider/__init__.py
from .models import (
    AuthenticatedRequest,
    AuthorizationGrant,
    Endpoint,
    InboundRequest,
    ProviderResponse,
    RequestContext,
    TokenGenerationError,
)
from .pipeline import Pipeline, Stage
from .service_provider import ServiceProvider

__all__ = [
    "AuthenticatedRequest",
    "AuthorizationGrant",
    "Endpoint",
    "InboundRequest",
    "ProviderResponse",
    "RequestContext",
    "Pipeline",
    "Stage",
    "ServiceProvider",
    "TokenGenerationError",
]
