# oauthkit/provider/service_provider.py
import logging
from typing import Callable, Iterable, List, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .. import problems
from ..advisers import DefaultProblemReportingAdviser, ProblemReportingAdviserBase
from ..constants import OUT_OF_BAND_CALLBACK, ParameterSources, Parameters
from ..nonces import AbstractRequestIdValidator
from ..parameters import PairSource, parse_form
from ..problems import ProblemReport, ProblemType
from ..result import Err, Ok, Result
from ..settings import Settings
from ..signing import SigningProviderRegistry
from ..tokens import (
    AbstractConsumerStore,
    AbstractTokenStore,
    AccessToken,
    RequestToken,
    TokenGenerator,
    TokenStatus,
)
from . import stages
from .models import (
    AuthenticatedRequest,
    AuthorizationGrant,
    Endpoint,
    InboundRequest,
    ProviderResponse,
    RequestContext,
    TokenGenerationError,
)
from .pipeline import Pipeline

logger = logging.getLogger(__name__)

AnyToken = Union[RequestToken, AccessToken]


def _allow_all(context: RequestContext) -> bool:
    return True


def _no_response_parameters(context: RequestContext) -> PairSource:
    return None


class ServiceProvider:
    """
    OAuth 1.0a service provider: validates signed requests through staged
    pipelines and issues request and access tokens.

    Collaborators are injected; each endpoint's pipeline is exposed as an
    attribute so a host can splice, replace or remove stages.

    Args:
        token_store: Store owning request and access tokens.
        consumer_store: Registry of known consumers.
        request_id_validator: Replay detection for (consumer, nonce, timestamp).
        signing_providers: Supported signature methods. Defaults to HMAC-SHA1 and PLAINTEXT.
        allow_request: Application hook deciding whether a validated request
            may be granted; returning False yields permission_denied.
        response_parameters: Application hook contributing extra response
            parameters on token issuance. ``oauth_``-prefixed names are dropped.
    """

    def __init__(
        self,
        token_store: AbstractTokenStore,
        consumer_store: AbstractConsumerStore,
        request_id_validator: AbstractRequestIdValidator,
        signing_providers: Optional[SigningProviderRegistry] = None,
        token_generator: Optional[TokenGenerator] = None,
        adviser: Optional[ProblemReportingAdviserBase] = None,
        realm: Optional[str] = None,
        parameter_sources: ParameterSources = ParameterSources.SERVICE_PROVIDER_DEFAULT,
        allow_out_of_band_callback: bool = True,
        allow_consumer_requests: bool = False,
        consumer_request_roles: Iterable[str] = (),
        max_token_generation_attempts: int = 16,
        allow_request: Callable[[RequestContext], bool] = _allow_all,
        response_parameters: Callable[[RequestContext], PairSource] = _no_response_parameters,
    ):
        if max_token_generation_attempts < 1:
            raise ValueError("max_token_generation_attempts must be at least 1")
        self.token_store = token_store
        self.consumer_store = consumer_store
        self.request_id_validator = request_id_validator
        self.signing_providers = signing_providers or SigningProviderRegistry.default()
        self.token_generator = token_generator or TokenGenerator()
        self.adviser = adviser or DefaultProblemReportingAdviser()
        self.realm = realm
        self.parameter_sources = parameter_sources
        self.allow_out_of_band_callback = allow_out_of_band_callback
        self.allow_consumer_requests = allow_consumer_requests
        self.consumer_request_roles = tuple(consumer_request_roles)
        self.max_token_generation_attempts = max_token_generation_attempts
        self.allow_request = allow_request
        self.response_parameters = response_parameters

        self.request_token_pipeline = Pipeline([
            ("parse_parameters", stages.parse_parameters(stages.REQUEST_TOKEN_REQUIRED)),
            ("check_callback", stages.check_callback),
            ("resolve_signing_provider", stages.resolve_signing_provider),
            ("resolve_consumer", stages.resolve_consumer),
            ("assign_request_id", stages.assign_request_id),
            ("verify_signature", stages.verify_signature),
            ("application_hook", stages.application_hook),
            ("issue_token", stages.issue_request_token),
        ])
        self.access_token_pipeline = Pipeline([
            ("parse_parameters", stages.parse_parameters(stages.ACCESS_TOKEN_REQUIRED)),
            ("resolve_signing_provider", stages.resolve_signing_provider),
            ("resolve_consumer", stages.resolve_consumer),
            ("assign_request_id", stages.assign_request_id),
            ("resolve_token", stages.resolve_request_token),
            ("verify_signature", stages.verify_signature),
            ("check_verifier", stages.check_verifier),
            ("application_hook", stages.application_hook),
            ("issue_token", stages.issue_access_token),
        ])
        self.resource_pipeline = Pipeline([
            ("parse_parameters", stages.parse_parameters(stages.PROTECTED_RESOURCE_REQUIRED)),
            ("resolve_signing_provider", stages.resolve_signing_provider),
            ("resolve_consumer", stages.resolve_consumer),
            ("assign_request_id", stages.assign_request_id),
            ("resolve_token", stages.resolve_access_token),
            ("verify_signature", stages.verify_signature),
        ])
        logger.info(
            f"ServiceProvider initialized. Signature methods: {self.signing_providers.signature_methods}, "
            f"consumer requests {'enabled' if allow_consumer_requests else 'disabled'}."
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        token_store: AbstractTokenStore,
        consumer_store: AbstractConsumerStore,
        request_id_validator: AbstractRequestIdValidator,
        **kwargs,
    ) -> "ServiceProvider":
        kwargs.setdefault("signing_providers", SigningProviderRegistry.default(
            plaintext_requires_secure_connection=settings.plaintext_requires_secure_connection
        ))
        return cls(
            token_store,
            consumer_store,
            request_id_validator,
            realm=settings.realm,
            parameter_sources=settings.parameter_source_flags,
            allow_out_of_band_callback=settings.allow_out_of_band_callback,
            allow_consumer_requests=settings.allow_consumer_requests,
            consumer_request_roles=settings.consumer_request_roles,
            max_token_generation_attempts=settings.max_token_generation_attempts,
            **kwargs,
        )

    # Endpoints

    def handle_request_token(self, request: InboundRequest) -> ProviderResponse:
        """Validate a request-token request and issue an unauthorized request token."""
        return self._handle(self.request_token_pipeline, request, Endpoint.REQUEST_TOKEN)

    def handle_access_token(self, request: InboundRequest) -> ProviderResponse:
        """Exchange an authorized request token and its verifier for an access token."""
        return self._handle(self.access_token_pipeline, request, Endpoint.ACCESS_TOKEN)

    def _handle(self, pipeline: Pipeline, request: InboundRequest, endpoint: Endpoint) -> ProviderResponse:
        context = RequestContext(provider=self, request=request, endpoint=endpoint)
        result = pipeline.run(context)
        if isinstance(result, Err):
            return self.problem_response(result.problem)
        logger.info(f"{endpoint.value}: issued token to consumer '{context.consumer.key}'")
        return ProviderResponse.form(context.response_parameters)

    def authenticate(self, request: InboundRequest) -> Result[AuthenticatedRequest]:
        """Validate a signed protected-resource request and return its principal."""
        context = RequestContext(provider=self, request=request, endpoint=Endpoint.PROTECTED_RESOURCE)
        result = self.resource_pipeline.run(context)
        if isinstance(result, Err):
            return result
        if context.is_consumer_request:
            return Ok(AuthenticatedRequest(
                consumer=context.consumer,
                parameters=context.parameters,
                roles=self.consumer_request_roles,
                is_consumer_request=True,
            ))
        token = context.access_token
        return Ok(AuthenticatedRequest(
            consumer=context.consumer,
            parameters=context.parameters,
            access_token=token,
            user=token.authenticated_user,
            roles=token.roles,
        ))

    # Problem rendering

    def advise(self, report: ProblemReport) -> ProblemReport:
        return self.adviser.advise(report) if self.adviser else report

    def problem_response(self, report: ProblemReport) -> ProviderResponse:
        """400/401 response carrying the problem in WWW-Authenticate and in the body."""
        report = self.advise(report)
        return ProviderResponse.form(
            report.to_parameters(),
            status_code=report.status_code,
            headers={"WWW-Authenticate": report.to_header_format(self.realm)},
        )

    # Token lifecycle

    def add_new_token(self, build: Callable[[str, str], AnyToken]) -> AnyToken:
        """
        Build and store a token under a fresh token string, retrying on collision.

        Raises:
            TokenGenerationError: If every attempt collided with an existing token.
        """
        for attempt in range(1, self.max_token_generation_attempts + 1):
            token = build(self.token_generator.generate_token(), self.token_generator.generate_secret())
            if self.token_store.add(token):
                return token
            logger.warning(f"Token string collision on attempt {attempt}")
        logger.error(f"Token generation gave up after {self.max_token_generation_attempts} attempts")
        raise TokenGenerationError(
            f"No unique token string after {self.max_token_generation_attempts} attempts"
        )

    def additional_response_parameters(self, context: RequestContext) -> List[Tuple[str, str]]:
        pairs = parse_form(self.response_parameters(context))
        return [(name, value) for name, value in pairs if not name.startswith(Parameters.OAUTH_PREFIX)]

    def authorize_request_token(
        self, token: str, user: str, roles: Iterable[str] = ()
    ) -> Result[AuthorizationGrant]:
        """
        Record the end user's approval of a request token.

        Returns:
            The grant with its verifier and, unless the callback is out-of-band,
            the callback URL carrying ``oauth_token`` and ``oauth_verifier``.
        """
        if not user:
            raise ValueError("An authenticated user is required to authorize a request token")
        request_token = self.token_store.get_request_token(token)
        if request_token is None:
            return Err(problems.simple(ProblemType.TOKEN_REJECTED))
        if request_token.status != TokenStatus.UNAUTHORIZED:
            status_problem = stages.TOKEN_STATUS_PROBLEMS.get(request_token.status, ProblemType.TOKEN_REJECTED)
            return Err(problems.simple(status_problem))

        verifier = self.token_generator.generate_verifier()
        authorized = request_token.authorize(user, tuple(roles), verifier)
        if not self.token_store.compare_and_update(authorized, TokenStatus.UNAUTHORIZED):
            return Err(problems.simple(ProblemType.TOKEN_REJECTED))
        logger.info(f"Request token for consumer '{authorized.consumer_key}' authorized by user '{user}'")

        callback_url = None
        if authorized.callback and authorized.callback != OUT_OF_BAND_CALLBACK:
            callback_url = append_query(authorized.callback, [
                (Parameters.OAUTH_TOKEN, authorized.token),
                (Parameters.OAUTH_VERIFIER, verifier),
            ])
        return Ok(AuthorizationGrant(request_token=authorized, verifier=verifier, callback_url=callback_url))

    def revoke_token(self, token: str) -> bool:
        return self._terminate(token, TokenStatus.REVOKED)

    def expire_token(self, token: str) -> bool:
        return self._terminate(token, TokenStatus.EXPIRED)

    def _terminate(self, token: str, status: TokenStatus) -> bool:
        stored = self.token_store.get_access_token(token) or self.token_store.get_request_token(token)
        if stored is None or stored.is_terminal:
            return False
        if not self.token_store.compare_and_update(stored.with_status(status), stored.status):
            return False
        logger.info(f"Token for consumer '{stored.consumer_key}' marked {status.value}")
        return True


def append_query(url: str, pairs: List[Tuple[str, str]]) -> str:
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True) + list(pairs)
    return urlunsplit(parts._replace(query=urlencode(query)))
