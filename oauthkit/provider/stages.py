# oauthkit/provider/stages.py
"""
Pipeline stages. Each stage reads and fills in the RequestContext and returns
a ProblemReport to stop the pipeline, or None to continue.
"""
import hmac
import logging
from typing import Optional, Sequence, Union

from .. import problems
from ..constants import HttpHeaders, OAUTH_VERSION_1_0, OUT_OF_BAND_CALLBACK, Parameters
from ..parameters import OAuthParameters
from ..problems import ProblemReport, ProblemType
from ..result import Err
from ..signing import build_base_string
from ..tokens import AccessToken, ConsumerStatus, RequestToken, TokenStatus
from .models import RequestContext, TokenGenerationError
from .pipeline import Stage

logger = logging.getLogger(__name__)

SIGNED_REQUEST_PARAMETERS = (
    Parameters.OAUTH_CONSUMER_KEY,
    Parameters.OAUTH_SIGNATURE_METHOD,
    Parameters.OAUTH_SIGNATURE,
    Parameters.OAUTH_TIMESTAMP,
    Parameters.OAUTH_NONCE,
)
OPTIONAL_PARAMETERS = (Parameters.REALM, Parameters.OAUTH_VERSION)

REQUEST_TOKEN_REQUIRED = SIGNED_REQUEST_PARAMETERS + (Parameters.OAUTH_CALLBACK,)
ACCESS_TOKEN_REQUIRED = SIGNED_REQUEST_PARAMETERS + (Parameters.OAUTH_TOKEN, Parameters.OAUTH_VERIFIER)
PROTECTED_RESOURCE_REQUIRED = SIGNED_REQUEST_PARAMETERS + (Parameters.OAUTH_TOKEN,)

TOKEN_STATUS_PROBLEMS = {
    TokenStatus.USED: ProblemType.TOKEN_USED,
    TokenStatus.EXPIRED: ProblemType.TOKEN_EXPIRED,
    TokenStatus.REVOKED: ProblemType.TOKEN_REVOKED,
}


def parse_parameters(required: Sequence[str], optional: Sequence[str] = OPTIONAL_PARAMETERS) -> Stage:
    """Collate and validate the inbound parameters, then require and restrict the reserved set."""
    allowed = tuple(required) + tuple(optional)

    def stage(context: RequestContext) -> Optional[ProblemReport]:
        request = context.request
        result = OAuthParameters.parse_validated(
            authorization_header=request.header(HttpHeaders.AUTHORIZATION),
            www_authenticate_header=request.header(HttpHeaders.WWW_AUTHENTICATE),
            post_body=request.form,
            query_string=request.query,
            sources=context.provider.parameter_sources,
        )
        if isinstance(result, Err):
            return result.problem
        parameters = result.value
        context.parameters = parameters
        return (
            parameters.require_all_of(*required)
            or parameters.allow_only(*allowed)
            or parameters.require_version(OAUTH_VERSION_1_0)
        )

    return stage


def check_callback(context: RequestContext) -> Optional[ProblemReport]:
    callback = context.parameters.callback
    if callback == OUT_OF_BAND_CALLBACK:
        if not context.provider.allow_out_of_band_callback:
            return problems.parameter_rejected([Parameters.OAUTH_CALLBACK])
        return None
    if not callback.strip():
        return problems.parameter_rejected([Parameters.OAUTH_CALLBACK])
    return None


def resolve_signing_provider(context: RequestContext) -> Optional[ProblemReport]:
    result = context.provider.signing_providers.resolve(context.parameters.signature_method)
    if isinstance(result, Err):
        return result.problem
    context.signing_provider = result.value
    return context.signing_provider.check_request(context.request)


def resolve_consumer(context: RequestContext) -> Optional[ProblemReport]:
    consumer = context.provider.consumer_store.get_consumer(context.parameters.consumer_key)
    if consumer is None or consumer.status == ConsumerStatus.UNKNOWN:
        return problems.simple(ProblemType.CONSUMER_KEY_UNKNOWN)
    if consumer.status == ConsumerStatus.TEMPORARILY_DISABLED:
        return problems.simple(ProblemType.CONSUMER_KEY_REFUSED)
    if consumer.status == ConsumerStatus.PERMANENTLY_DISABLED:
        return problems.simple(ProblemType.CONSUMER_KEY_REJECTED)
    context.consumer = consumer
    return None


def assign_request_id(context: RequestContext) -> Optional[ProblemReport]:
    parameters = context.parameters
    return context.provider.request_id_validator.check_and_record(
        parameters.consumer_key, parameters.nonce, parameters.timestamp
    )


def _check_token(context: RequestContext, token: Union[RequestToken, AccessToken, None]) -> Optional[ProblemReport]:
    if token is None or token.consumer_key != context.consumer.key:
        return problems.simple(ProblemType.TOKEN_REJECTED)
    if token.status in TOKEN_STATUS_PROBLEMS:
        return problems.simple(TOKEN_STATUS_PROBLEMS[token.status])
    if token.status == TokenStatus.AUTHORIZED:
        return None
    return problems.simple(ProblemType.TOKEN_REJECTED)


def resolve_request_token(context: RequestContext) -> Optional[ProblemReport]:
    token = context.provider.token_store.get_request_token(context.parameters.token)
    problem = _check_token(context, token)
    if problem is None:
        context.request_token = token
    return problem


def resolve_access_token(context: RequestContext) -> Optional[ProblemReport]:
    provider = context.provider
    if context.parameters.token == "":
        if not provider.allow_consumer_requests:
            return problems.simple(ProblemType.TOKEN_REJECTED)
        context.is_consumer_request = True
        return None
    token = provider.token_store.get_access_token(context.parameters.token)
    problem = _check_token(context, token)
    if problem is None:
        context.access_token = token
    return problem


def verify_signature(context: RequestContext) -> Optional[ProblemReport]:
    parameters = context.parameters
    base_string = build_base_string(context.request.method, context.request.url, parameters)
    logger.debug(f"Signature base string: {base_string}")
    context.is_signature_valid = context.signing_provider.verify_signature(
        base_string, parameters.signature, context.consumer.secret, context.token_secret
    )
    if not context.is_signature_valid:
        return problems.simple(ProblemType.SIGNATURE_INVALID)
    return None


def check_verifier(context: RequestContext) -> Optional[ProblemReport]:
    expected = context.request_token.verifier
    presented = context.parameters.verifier
    if not expected or not hmac.compare_digest(expected.encode("utf-8"), presented.encode("utf-8")):
        return problems.simple(ProblemType.TOKEN_REJECTED)
    return None


def application_hook(context: RequestContext) -> Optional[ProblemReport]:
    if not context.provider.allow_request(context):
        return problems.simple(ProblemType.PERMISSION_DENIED)
    return None


def issue_request_token(context: RequestContext) -> Optional[ProblemReport]:
    provider = context.provider
    parameters = context.parameters
    token = provider.add_new_token(lambda token, secret: RequestToken(
        token=token,
        secret=secret,
        consumer_key=context.consumer.key,
        status=TokenStatus.UNAUTHORIZED,
        parameter_pairs=parameters.to_pairs(Parameters.OAUTH_SIGNATURE),
        callback=parameters.callback,
    ))
    context.request_token = token
    context.response_parameters.extend([
        (Parameters.OAUTH_TOKEN, token.token),
        (Parameters.OAUTH_TOKEN_SECRET, token.secret),
        (Parameters.OAUTH_CALLBACK_CONFIRMED, "true"),
    ])
    context.response_parameters.extend(provider.additional_response_parameters(context))
    return None


def issue_access_token(context: RequestContext) -> Optional[ProblemReport]:
    provider = context.provider
    used_request_token = context.request_token.with_status(TokenStatus.USED)
    # the request token is consumed before any access token exists
    if not provider.token_store.compare_and_update(used_request_token, TokenStatus.AUTHORIZED):
        logger.warning(f"Request token for consumer '{context.consumer.key}' was consumed by a concurrent exchange")
        current = provider.token_store.get_request_token(used_request_token.token)
        if current is None:
            return problems.simple(ProblemType.TOKEN_REJECTED)
        return problems.simple(TOKEN_STATUS_PROBLEMS.get(current.status, ProblemType.TOKEN_REJECTED))
    try:
        token = provider.add_new_token(lambda token, secret: AccessToken(
            token=token,
            secret=secret,
            consumer_key=context.consumer.key,
            status=TokenStatus.AUTHORIZED,
            request_token=used_request_token,
        ))
    except TokenGenerationError:
        # hand the authorized request token back so the exchange can be retried
        provider.token_store.compare_and_update(context.request_token, TokenStatus.USED)
        raise
    context.request_token = used_request_token
    context.access_token = token
    context.response_parameters.extend([
        (Parameters.OAUTH_TOKEN, token.token),
        (Parameters.OAUTH_TOKEN_SECRET, token.secret),
    ])
    context.response_parameters.extend(provider.additional_response_parameters(context))
    return None
