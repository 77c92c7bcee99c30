# oauthkit/signing/signature_base.py
"""Signature base string construction (OAuth 1.0a section 9.1)."""
from urllib.parse import urlsplit

from .. import rfc3986
from ..constants import Parameters
from ..parameters import OAuthParameters

DEFAULT_PORTS = {"http": 80, "https": 443}

EXCLUDED_FROM_SIGNATURE = (Parameters.REALM, Parameters.OAUTH_SIGNATURE, Parameters.OAUTH_TOKEN_SECRET)


def normalize_url(url: str) -> str:
    """Scheme and authority lower-cased, default port dropped, query and fragment stripped."""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if not scheme or not parts.netloc:
        raise ValueError(f"An absolute URL is required to sign a request, got '{url}'")

    host = (parts.hostname or "").lower()
    if ":" in host:
        host = f"[{host}]"
    authority = host
    if parts.port is not None and parts.port != DEFAULT_PORTS.get(scheme):
        authority = f"{host}:{parts.port}"
    if parts.username is not None:
        userinfo = parts.username + (f":{parts.password}" if parts.password is not None else "")
        authority = f"{userinfo}@{authority}"

    return f"{scheme}://{authority}{parts.path or '/'}"


def build_base_string(method: str, url: str, parameters: OAuthParameters) -> str:
    """``METHOD&url&normalized-parameters``, each part percent-encoded."""
    return "&".join([
        rfc3986.encode(method.upper()),
        rfc3986.encode(normalize_url(url)),
        rfc3986.encode(parameters.to_normalized_string(*EXCLUDED_FROM_SIGNATURE)),
    ])
