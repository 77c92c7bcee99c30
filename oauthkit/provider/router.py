# oauthkit/provider/router.py
import logging
from typing import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from starlette.concurrency import run_in_threadpool

from ..constants import FORM_CONTENT_TYPE
from ..result import Err
from .errors import OAuthProblemHTTPException, ServerError
from .models import AuthenticatedRequest, InboundRequest, ProviderResponse, TokenGenerationError
from .service_provider import ServiceProvider

logger = logging.getLogger(__name__)


async def to_inbound_request(request: Request) -> InboundRequest:
    """Adapt a Starlette request; the body counts as parameters only when form-encoded."""
    form = None
    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() == FORM_CONTENT_TYPE:
        # undecodable bytes become U+FFFD and then fail signature verification
        form = (await request.body()).decode("utf-8", errors="replace")
    return InboundRequest(
        method=request.method,
        url=str(request.url),
        headers=dict(request.headers),
        form=form,
        is_secure=request.url.scheme == "https",
    )


def to_response(provider_response: ProviderResponse) -> Response:
    return Response(
        content=provider_response.body,
        status_code=provider_response.status_code,
        headers=provider_response.headers,
    )


def create_oauth_router(service_provider: ServiceProvider, prefix: str = "/oauth") -> APIRouter:
    """Request-token and access-token endpoints backed by ``service_provider``."""
    router = APIRouter(prefix=prefix, tags=["OAuth 1.0a"])

    async def _dispatch(handler: Callable[[InboundRequest], ProviderResponse], request: Request) -> Response:
        inbound = await to_inbound_request(request)
        try:
            provider_response = await run_in_threadpool(handler, inbound)
        except TokenGenerationError as e:
            logger.error(f"Token issuance failed: {e}", exc_info=True)
            raise ServerError()
        return to_response(provider_response)

    @router.api_route("/request_token", methods=["GET", "POST"])
    async def request_token(request: Request) -> Response:
        return await _dispatch(service_provider.handle_request_token, request)

    @router.api_route("/access_token", methods=["GET", "POST"])
    async def access_token(request: Request) -> Response:
        return await _dispatch(service_provider.handle_access_token, request)

    return router


def oauth_protected(service_provider: ServiceProvider) -> Callable[[Request], Awaitable[AuthenticatedRequest]]:
    """
    FastAPI dependency factory authenticating a signed protected-resource request.

    Usage::

        @app.get("/photos")
        async def photos(principal: AuthenticatedRequest = Depends(oauth_protected(provider))): ...
    """
    async def dependency(request: Request) -> AuthenticatedRequest:
        inbound = await to_inbound_request(request)
        result = await run_in_threadpool(service_provider.authenticate, inbound)
        if isinstance(result, Err):
            raise OAuthProblemHTTPException(service_provider.advise(result.problem), service_provider.realm)
        return result.value

    return dependency
