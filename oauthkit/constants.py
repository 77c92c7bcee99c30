# oauthkit/constants.py
from enum import IntFlag


class Parameters:
    """Reserved OAuth 1.0a protocol parameter names."""
    OAUTH_PREFIX = "oauth_"

    OAUTH_CALLBACK = "oauth_callback"
    OAUTH_CALLBACK_CONFIRMED = "oauth_callback_confirmed"
    OAUTH_CONSUMER_KEY = "oauth_consumer_key"
    OAUTH_NONCE = "oauth_nonce"
    OAUTH_SIGNATURE = "oauth_signature"
    OAUTH_SIGNATURE_METHOD = "oauth_signature_method"
    OAUTH_TIMESTAMP = "oauth_timestamp"
    OAUTH_TOKEN = "oauth_token"
    OAUTH_TOKEN_SECRET = "oauth_token_secret"
    OAUTH_VERIFIER = "oauth_verifier"
    OAUTH_VERSION = "oauth_version"
    REALM = "realm"

    # Problem Reporting extension
    OAUTH_PROBLEM = "oauth_problem"
    OAUTH_PROBLEM_ADVICE = "oauth_problem_advice"
    OAUTH_ACCEPTABLE_VERSIONS = "oauth_acceptable_versions"
    OAUTH_ACCEPTABLE_TIMESTAMPS = "oauth_acceptable_timestamps"
    OAUTH_PARAMETERS_ABSENT = "oauth_parameters_absent"
    OAUTH_PARAMETERS_REJECTED = "oauth_parameters_rejected"

    RESERVED = frozenset({
        OAUTH_CALLBACK,
        OAUTH_CONSUMER_KEY,
        OAUTH_NONCE,
        OAUTH_SIGNATURE,
        OAUTH_SIGNATURE_METHOD,
        OAUTH_TIMESTAMP,
        OAUTH_TOKEN,
        OAUTH_TOKEN_SECRET,
        OAUTH_VERIFIER,
        OAUTH_VERSION,
        REALM,
    })


class SignatureMethods:
    HMAC_SHA1 = "HMAC-SHA1"
    RSA_SHA1 = "RSA-SHA1"
    PLAINTEXT = "PLAINTEXT"


class HttpHeaders:
    AUTHORIZATION = "Authorization"
    WWW_AUTHENTICATE = "WWW-Authenticate"
    CONTENT_TYPE = "Content-Type"


OAUTH_AUTH_SCHEME = "OAuth"
OAUTH_VERSION_1_0 = "1.0"
OUT_OF_BAND_CALLBACK = "oob"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class ParameterSources(IntFlag):
    """Wire locations OAuth parameters may be read from."""
    NONE = 0
    AUTHORIZATION_HEADER = 1
    POST_BODY = 2
    QUERY_STRING = 4
    WWW_AUTHENTICATE_HEADER = 8

    SERVICE_PROVIDER_DEFAULT = AUTHORIZATION_HEADER | POST_BODY | QUERY_STRING
    CONSUMER_DEFAULT = WWW_AUTHENTICATE_HEADER | POST_BODY

    @classmethod
    def from_names(cls, names: str) -> "ParameterSources":
        """Parse a comma separated list such as ``"authorization_header,query_string"``."""
        flags = cls.NONE
        for name in names.split(","):
            name = name.strip()
            if not name:
                continue
            try:
                flags |= cls[name.upper()]
            except KeyError:
                raise ValueError(f"Unknown parameter source: '{name}'") from None
        return flags
