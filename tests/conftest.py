import itertools
from urllib.parse import parse_qsl
from typing import Dict, Iterable, Optional, Tuple

import pytest

from oauthkit.constants import HttpHeaders, Parameters, SignatureMethods
from oauthkit.nonces import InMemoryRequestIdValidator
from oauthkit.parameters import OAuthParameters
from oauthkit.provider import InboundRequest, ServiceProvider
from oauthkit.signing import SigningProviderRegistry, build_base_string
from oauthkit.tokens import Consumer, InMemoryConsumerStore, InMemoryTokenStore

NOW = 1_700_000_000
CONSUMER_KEY = "dpf43f3p2l4k3l03"
CONSUMER_SECRET = "kd94hf93k423kf44"

_nonces = itertools.count(1)


def fixed_clock() -> float:
    return float(NOW)


def sign_request(
    method: str,
    url: str,
    consumer_key: str = CONSUMER_KEY,
    consumer_secret: str = CONSUMER_SECRET,
    token: Optional[str] = None,
    token_secret: Optional[str] = None,
    form: Iterable[Tuple[str, str]] = (),
    use_header: bool = True,
    omit: Iterable[str] = (),
    is_secure: Optional[bool] = None,
    signature_method: str = SignatureMethods.HMAC_SHA1,
    **reserved: str,
) -> InboundRequest:
    """Build an inbound request signed the way a well-behaved consumer would sign it."""
    parameters = OAuthParameters(
        consumer_key=consumer_key,
        signature_method=signature_method,
        timestamp=str(NOW),
        nonce=f"nonce-{next(_nonces)}",
        version="1.0",
        token=token,
        token_secret=token_secret,
    )
    for name, value in reserved.items():
        setattr(parameters, name, value)
    for name, value in form:
        parameters.additional_parameters.setdefault(name, []).append(value)
    for name, value in parse_qsl(url.partition("?")[2], keep_blank_values=True):
        parameters.additional_parameters.setdefault(name, []).append(value)

    for name in omit:
        parameters.set(name, None)

    registry = SigningProviderRegistry.default(plaintext_requires_secure_connection=False)
    signing_provider = registry.get(signature_method)
    if signing_provider is not None and Parameters.OAUTH_SIGNATURE not in omit:
        base_string = build_base_string(method, url, parameters)
        parameters.signature = signing_provider.compute_signature(base_string, consumer_secret, token_secret)
    elif Parameters.OAUTH_SIGNATURE not in omit:
        parameters.signature = "not-a-real-signature"

    headers: Dict[str, str] = {}
    form_pairs = list(form)
    if use_header:
        headers[HttpHeaders.AUTHORIZATION] = parameters.to_header_format()
    else:
        form_pairs = [
            (name, value) for name, value in parameters.reserved_items()
            if name not in (Parameters.REALM, Parameters.OAUTH_TOKEN_SECRET)
        ] + form_pairs
    return InboundRequest(method=method, url=url, headers=headers, form=form_pairs or None, is_secure=is_secure)


@pytest.fixture
def consumer() -> Consumer:
    return Consumer(key=CONSUMER_KEY, secret=CONSUMER_SECRET, name="Printer")


@pytest.fixture
def token_store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def consumer_store(consumer) -> InMemoryConsumerStore:
    return InMemoryConsumerStore([consumer])


@pytest.fixture
def request_id_validator() -> InMemoryRequestIdValidator:
    return InMemoryRequestIdValidator(window_seconds=600, clock=fixed_clock)


@pytest.fixture
def service_provider(token_store, consumer_store, request_id_validator) -> ServiceProvider:
    return ServiceProvider(token_store, consumer_store, request_id_validator, realm="Photos")
