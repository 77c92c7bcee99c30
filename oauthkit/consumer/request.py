# oauthkit/consumer/request.py
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

import httpx

from .. import problems
from ..constants import (
    FORM_CONTENT_TYPE,
    HttpHeaders,
    OUT_OF_BAND_CALLBACK,
    Parameters,
)
from ..nonces import NonceProvider
from ..parameters import OAuthParameters, PairSource, parse_form
from ..problems import OAuthProblemError, ProblemType
from ..signing import SigningProviderRegistry, build_base_string
from .authorization import AuthorizationAction, AuthorizationHandler, redirect_handler
from .errors import OAuthProtocolError
from .models import OAuthService, OAuthToken
from .state import AbstractRequestStateStore, RequestState, RequestStateKey

logger = logging.getLogger(__name__)

BeforeRequestHook = Callable[[OAuthParameters], None]
TokenReceivedHook = Callable[[OAuthToken, Dict[str, List[str]]], None]


class RequestStatus(str, Enum):
    NO_TOKEN = "no_token"
    REQUEST_TOKEN_OBTAINED = "request_token_obtained"
    AUTHORIZATION_PENDING = "authorization_pending"
    REQUEST_TOKEN_AUTHORIZED = "request_token_authorized"
    ACCESS_TOKEN_OBTAINED = "access_token_obtained"
    RESOURCE_ACCESSIBLE = "resource_accessible"


@dataclass
class OAuthResponse:
    """
    Outcome of driving the flow to a protected resource. When authorization is
    pending, ``resource`` is None and ``authorization_url`` is where the end
    user must go to authorize ``token``.
    """
    token: Optional[OAuthToken]
    resource: Optional[httpx.Response] = None
    authorization_url: Optional[str] = None

    @property
    def has_protected_resource(self) -> bool:
        return self.resource is not None


def split_url(url: str) -> Tuple[str, List[Tuple[str, str]]]:
    """The URL without its query string, and the decoded query parameters."""
    parts = urlsplit(url)
    return urlunsplit(parts._replace(query="", fragment="")), parse_form(parts.query)


class OAuthRequest:
    """
    Drives the consumer side of the three-legged flow against one protected
    resource: request token, user authorization, access token, signed call.

    Args:
        service: Endpoints, consumer credentials and signing options.
        resource_url: Protected resource to call once an access token is held.
        client: httpx client used for every call; the caller owns its timeouts.
        callback_url: Callback sent with the request-token request; ``"oob"`` when None.
        authorization_handler: Decides whether to halt for a browser redirect
            or continue with an out-of-band verifier.
        state_store: Optional store keeping tokens across the redirect.
        end_user_id: Identity the stored tokens belong to.
    """

    def __init__(
        self,
        service: OAuthService,
        resource_url: str,
        client: httpx.Client,
        method: str = "GET",
        callback_url: Optional[str] = None,
        request_token: Optional[OAuthToken] = None,
        access_token: Optional[OAuthToken] = None,
        authorization_handler: AuthorizationHandler = redirect_handler,
        signing_providers: Optional[SigningProviderRegistry] = None,
        nonce_provider: Optional[NonceProvider] = None,
        state_store: Optional[AbstractRequestStateStore] = None,
        end_user_id: Optional[str] = None,
        on_before_get_request_token: Optional[BeforeRequestHook] = None,
        on_received_request_token: Optional[TokenReceivedHook] = None,
        on_before_get_access_token: Optional[BeforeRequestHook] = None,
        on_received_access_token: Optional[TokenReceivedHook] = None,
        on_before_get_protected_resource: Optional[BeforeRequestHook] = None,
    ):
        self.service = service
        self.resource_url = resource_url
        self.client = client
        self.method = method.upper()
        self.callback_url = callback_url or OUT_OF_BAND_CALLBACK
        self.authorization_handler = authorization_handler
        self.signing_providers = signing_providers or SigningProviderRegistry.default()
        self.nonce_provider = nonce_provider or NonceProvider()
        self.state_store = state_store
        self.end_user_id = end_user_id
        self.on_before_get_request_token = on_before_get_request_token
        self.on_received_request_token = on_received_request_token
        self.on_before_get_access_token = on_before_get_access_token
        self.on_received_access_token = on_received_access_token
        self.on_before_get_protected_resource = on_before_get_protected_resource

        self.request_token = request_token
        self.access_token = access_token
        self.verifier: Optional[str] = None
        self.status = RequestStatus.NO_TOKEN
        self._load_state()
        if self.access_token is not None:
            self.status = RequestStatus.ACCESS_TOKEN_OBTAINED
        elif self.request_token is not None:
            self.status = RequestStatus.REQUEST_TOKEN_OBTAINED

    @classmethod
    def for_consumer(
        cls, service: OAuthService, resource_url: str, client: httpx.Client, method: str = "GET", **kwargs
    ) -> "OAuthRequest":
        """A request signed by the consumer alone, using the empty token."""
        return cls(
            service, resource_url, client, method=method,
            access_token=OAuthToken.empty(service.consumer_key), **kwargs
        )

    # State persistence

    @property
    def state_key(self) -> RequestStateKey:
        return RequestStateKey(
            service_realm=self.service.realm or self.service.authorization_url,
            consumer_key=self.service.consumer_key,
            end_user_id=self.end_user_id,
        )

    def _load_state(self) -> None:
        if self.state_store is None:
            return
        state = self.state_store.get(self.state_key)
        if state is None:
            return
        self.request_token = self.request_token or state.request_token
        self.access_token = self.access_token or state.access_token

    def _save_state(self) -> None:
        if self.state_store is None:
            return
        if self.access_token is not None and self.access_token.is_empty:
            return
        self.state_store.store(
            self.state_key,
            RequestState(request_token=self.request_token, access_token=self.access_token),
        )

    # Flow

    def get_resource(self, additional_parameters: PairSource = None) -> OAuthResponse:
        """
        Obtain whatever tokens are missing and call the protected resource.

        Returns an OAuthResponse without a resource when the authorization
        handler halted the flow for an interactive redirect.
        """
        if self.access_token is None:
            if self.request_token is None:
                self.get_request_token()
            authorization_url = self.service.build_authorization_url(self.request_token)
            if self.status != RequestStatus.REQUEST_TOKEN_AUTHORIZED and not self.authorize(authorization_url):
                return OAuthResponse(token=self.request_token, authorization_url=authorization_url)
            self.get_access_token(self.verifier)
        resource = self.get_protected_resource(additional_parameters)
        return OAuthResponse(token=self.access_token, resource=resource)

    def get_request_token(self, additional_parameters: PairSource = None) -> OAuthToken:
        parameters = self._create_parameters(token=None, callback=self.callback_url)
        parameters.add_additional_parameters(additional_parameters)
        if self.on_before_get_request_token:
            self.on_before_get_request_token(parameters)

        response = self._send(self.service.token_http_method, self.service.request_token_url, parameters, None)
        token, extras = self._read_token(response, "request")
        if extras.get(Parameters.OAUTH_CALLBACK_CONFIRMED, [None])[0] != "true":
            logger.warning("Service provider did not confirm the callback; it may not support OAuth 1.0a")

        self.request_token = token
        self.access_token = None
        self.status = RequestStatus.REQUEST_TOKEN_OBTAINED
        self._save_state()
        if self.on_received_request_token:
            self.on_received_request_token(token, self._non_protocol(extras))
        logger.info(f"Obtained request token from {self.service.request_token_url}")
        return token

    def authorize(self, authorization_url: Optional[str] = None) -> bool:
        """
        Hand the authorization URL to the authorization handler.

        Returns:
            True when the handler completed authorization and the flow may continue.
        """
        if self.request_token is None:
            raise ValueError("A request token is required before authorization")
        url = authorization_url or self.service.build_authorization_url(self.request_token)
        outcome = self.authorization_handler(url)
        if outcome.action == AuthorizationAction.CONTINUE:
            self.verifier = outcome.verifier
            self.status = RequestStatus.REQUEST_TOKEN_AUTHORIZED
            return True
        self.status = RequestStatus.AUTHORIZATION_PENDING
        return False

    def complete_authorization(self, verifier: Optional[str]) -> None:
        """Record the verifier delivered to the callback after a halted authorization."""
        if self.request_token is None:
            raise ValueError("No request token is awaiting authorization")
        self.verifier = verifier
        self.status = RequestStatus.REQUEST_TOKEN_AUTHORIZED

    def get_access_token(self, verifier: Optional[str] = None, additional_parameters: PairSource = None) -> OAuthToken:
        if self.request_token is None:
            raise ValueError("A request token is required to obtain an access token")
        parameters = self._create_parameters(token=self.request_token, verifier=verifier or self.verifier)
        parameters.add_additional_parameters(additional_parameters)
        if self.on_before_get_access_token:
            self.on_before_get_access_token(parameters)

        response = self._send(
            self.service.token_http_method, self.service.access_token_url, parameters, self.request_token
        )
        token, extras = self._read_token(response, "access")

        # the request token is consumed by the exchange
        self.request_token = None
        self.verifier = None
        self.access_token = token
        self.status = RequestStatus.ACCESS_TOKEN_OBTAINED
        self._save_state()
        if self.on_received_access_token:
            self.on_received_access_token(token, self._non_protocol(extras))
        logger.info(f"Obtained access token from {self.service.access_token_url}")
        return token

    def get_protected_resource(self, additional_parameters: PairSource = None) -> httpx.Response:
        if self.access_token is None:
            raise ValueError("An access token is required to call the protected resource")
        parameters = self._create_parameters(token=self.access_token)
        parameters.add_additional_parameters(additional_parameters)
        if self.on_before_get_protected_resource:
            self.on_before_get_protected_resource(parameters)

        response = self._send(self.method, self.resource_url, parameters, self.access_token)
        self.status = RequestStatus.RESOURCE_ACCESSIBLE
        return response

    # Signing and transport

    def _create_parameters(
        self, token: Optional[OAuthToken], callback: Optional[str] = None, verifier: Optional[str] = None
    ) -> OAuthParameters:
        return OAuthParameters(
            consumer_key=self.service.consumer_key,
            signature_method=self.service.signature_method,
            timestamp=self.nonce_provider.generate_timestamp(),
            nonce=self.nonce_provider.generate_nonce(),
            version=self.service.version,
            realm=self.service.realm,
            token=token.token if token is not None else None,
            token_secret=token.secret if token is not None else None,
            callback=callback,
            verifier=verifier,
        )

    def create_and_sign_request(
        self, method: str, url: str, parameters: OAuthParameters, token: Optional[OAuthToken]
    ) -> httpx.Request:
        """
        Sign ``parameters`` for ``method url`` and build the outbound request.

        Query parameters already on ``url`` are moved into the signed set and
        re-attached when the request is built.

        Raises:
            OAuthProblemError: signature_method_rejected when the configured
                signature method has no matching signing provider.
        """
        method = method.upper()
        base_url, query = split_url(url)
        for name, value in query:
            parameters.add_additional_parameter(name, value)

        signing_provider = self.signing_providers.get(parameters.signature_method)
        if signing_provider is None or signing_provider.signature_method != parameters.signature_method:
            raise OAuthProblemError(problems.simple(ProblemType.SIGNATURE_METHOD_REJECTED))

        base_string = build_base_string(method, base_url, parameters)
        logger.debug(f"Signature base string: {base_string}")
        parameters.signature = signing_provider.compute_signature(
            base_string, self.service.consumer_secret, token.secret if token is not None else None
        )

        extension_only = OAuthParameters(additional_parameters=parameters.additional_parameters)
        extension_string = extension_only.to_normalized_string()
        headers: Dict[str, str] = {}
        content: Optional[str] = None

        if self.service.use_authorization_header:
            headers[HttpHeaders.AUTHORIZATION] = parameters.to_header_format()
            carried = extension_string
        else:
            carried = parameters.to_query_string_format()

        if method == "POST":
            headers[HttpHeaders.CONTENT_TYPE] = FORM_CONTENT_TYPE
            content = carried
            target = base_url
        else:
            target = f"{base_url}?{carried}" if carried else base_url

        return self.client.build_request(method, target, headers=headers, content=content)

    def _send(
        self, method: str, url: str, parameters: OAuthParameters, token: Optional[OAuthToken]
    ) -> httpx.Response:
        request = self.create_and_sign_request(method, url, parameters, token)
        response = self.client.send(request)
        response.read()
        if response.is_success:
            return response

        # a structured problem report takes precedence over the raw failure
        reported = OAuthParameters.parse_response(
            response.text, response.headers.get(HttpHeaders.WWW_AUTHENTICATE)
        )
        report = problems.extract_problem(reported)
        if report is not None:
            logger.warning(f"{method} {url} failed with remote problem {report.problem.value}")
            raise OAuthProblemError(report)
        raise OAuthProtocolError(
            f"{method} {url} failed without a problem report",
            status_code=response.status_code,
            body=response.text,
            headers=response.headers,
            url=url,
        )

    def _read_token(self, response: httpx.Response, token_type: str) -> Tuple[OAuthToken, Dict[str, List[str]]]:
        parameters = OAuthParameters.parse_response(response.text)
        if not parameters.token:
            raise OAuthProtocolError(
                f"Response did not contain an {Parameters.OAUTH_TOKEN}",
                status_code=response.status_code,
                body=response.text,
                headers=response.headers,
                url=str(response.url),
            )
        token = OAuthToken(
            token_type=token_type,
            token=parameters.token,
            secret=parameters.token_secret or "",
            consumer_key=self.service.consumer_key,
        )
        return token, parameters.additional_parameters

    @staticmethod
    def _non_protocol(extras: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {name: values for name, values in extras.items() if not name.startswith(Parameters.OAUTH_PREFIX)}
