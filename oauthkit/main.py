# oauthkit/main.py
import logging
from contextlib import asynccontextmanager
from typing import Iterable, Optional

from fastapi import Depends, FastAPI

from .provider import AuthenticatedRequest, ServiceProvider
from .provider.router import create_oauth_router, oauth_protected
from .settings import Settings, get_settings
from .storage.sqlite_base import close_sqlite_db_connection
from .stores import create_request_id_validator, create_token_stores
from .tokens import Consumer

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, consumers: Iterable[Consumer] = ()) -> FastAPI:
    """
    Build a FastAPI application hosting a ServiceProvider with the configured
    stores, the token endpoints under ``/oauth`` and a sample protected route.
    """
    settings = settings or get_settings()
    token_store, consumer_store = create_token_stores(settings)
    request_id_validator = create_request_id_validator(settings)
    for consumer in consumers:
        if not consumer_store.add_consumer(consumer):
            logger.info(f"Consumer '{consumer.key}' already registered.")

    service_provider = ServiceProvider.from_settings(settings, token_store, consumer_store, request_id_validator)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{settings.app_name} starting up.")
        yield
        if settings.token_store_backend == "sqlite":
            close_sqlite_db_connection(settings.sqlite_db_path)
        teardown = getattr(request_id_validator, "teardown", None)
        if teardown:
            teardown()
        logger.info(f"{settings.app_name} shut down.")

    app = FastAPI(title=settings.app_name, debug=settings.debug_mode, lifespan=lifespan)
    app.state.settings = settings
    app.state.service_provider = service_provider
    app.include_router(create_oauth_router(service_provider))

    @app.api_route("/whoami", methods=["GET", "POST"], tags=["Protected"])
    async def whoami(principal: AuthenticatedRequest = Depends(oauth_protected(service_provider))):
        return {
            "consumer_key": principal.consumer.key,
            "user": principal.user,
            "roles": list(principal.roles),
            "consumer_request": principal.is_consumer_request,
        }

    return app
