# oauthkit/parameters.py
"""
Collation, validation and serialisation of the OAuth parameter set across
the four wire locations (Authorization header, WWW-Authenticate header,
POST body and query string).
"""
import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qsl

from pydantic import BaseModel, Field

from . import problems, rfc3986
from .constants import OAUTH_AUTH_SCHEME, ParameterSources, Parameters
from .problems import ProblemReport
from .result import Err, Ok, Result

logger = logging.getLogger(__name__)

# Reserved wire name -> OAuthParameters attribute
FIELD_NAMES: Dict[str, str] = {
    Parameters.OAUTH_CALLBACK: "callback",
    Parameters.OAUTH_CONSUMER_KEY: "consumer_key",
    Parameters.OAUTH_NONCE: "nonce",
    Parameters.REALM: "realm",
    Parameters.OAUTH_SIGNATURE: "signature",
    Parameters.OAUTH_SIGNATURE_METHOD: "signature_method",
    Parameters.OAUTH_TIMESTAMP: "timestamp",
    Parameters.OAUTH_TOKEN: "token",
    Parameters.OAUTH_TOKEN_SECRET: "token_secret",
    Parameters.OAUTH_VERIFIER: "verifier",
    Parameters.OAUTH_VERSION: "version",
}

# Header sources are consulted before body and query for every field
SOURCE_PRIORITY = (
    ParameterSources.AUTHORIZATION_HEADER,
    ParameterSources.WWW_AUTHENTICATE_HEADER,
    ParameterSources.POST_BODY,
    ParameterSources.QUERY_STRING,
)

HEADER_SOURCES = ParameterSources.AUTHORIZATION_HEADER | ParameterSources.WWW_AUTHENTICATE_HEADER

_AUTH_SCHEME_PATTERN = re.compile(rf"^{OAUTH_AUTH_SCHEME}\s+", re.IGNORECASE)
_ESCAPE_PATTERN = re.compile(r"\\(u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|x[0-9a-fA-F]{2}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {
    '"': '"', "'": "'", "\\": "\\", "0": "\0", "a": "\a", "b": "\b",
    "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v",
}

PairSource = Union[str, Mapping[str, Any], Iterable[Tuple[str, str]], None]


def unescape_quoted(value: str) -> str:
    """Resolve backslash escapes inside an RFC 2616 quoted-string."""
    def _replace(match: re.Match) -> str:
        escape = match.group(1)
        if escape[0] in "uUx" and len(escape) > 1:
            return chr(int(escape[1:], 16))
        return _SIMPLE_ESCAPES.get(escape, escape)

    return _ESCAPE_PATTERN.sub(_replace, value)


def parse_header(header_value: Optional[str]) -> List[Tuple[str, str]]:
    """
    Split an ``OAuth k="v", ...`` header into decoded name/value pairs.

    Returns an empty list when the header is absent or uses another scheme.
    Pairs whose escapes do not decode as UTF-8 are dropped.
    """
    return _decode_header(header_value, [])


def _decode_header(header_value: Optional[str], undecodable: List[str]) -> List[Tuple[str, str]]:
    if not header_value:
        return []
    match = _AUTH_SCHEME_PATTERN.match(header_value.strip())
    if not match:
        return []

    pairs = []
    for part in header_value.strip()[match.end():].split(","):
        part = part.strip()
        if not part:
            continue
        name, _, value = part.partition("=")
        name = name.strip()
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        try:
            pairs.append((rfc3986.decode(name), rfc3986.decode(unescape_quoted(value))))
        except UnicodeDecodeError:
            logger.warning(f"Dropping undecodable OAuth header parameter '{name}'")
            undecodable.append(name)
    return pairs


def parse_form(source: PairSource) -> List[Tuple[str, str]]:
    """Normalise a form/query source (raw encoded string, mapping, or pairs) to decoded pairs."""
    if source is None:
        return []
    if isinstance(source, str):
        return parse_qsl(source.lstrip("?"), keep_blank_values=True)
    if hasattr(source, "multi_items"):
        return list(source.multi_items())
    if isinstance(source, Mapping):
        pairs = []
        for name, value in source.items():
            if isinstance(value, (list, tuple)):
                pairs.extend((name, v) for v in value)
            else:
                pairs.append((name, value))
        return pairs
    return list(source)


class OAuthParameters(BaseModel):
    """
    The OAuth parameter bag: reserved protocol fields plus a multimap of
    extension parameters. ``None`` means absent; ``""`` means present but empty.
    """
    callback: Optional[str] = Field(default=None, description="oauth_callback")
    consumer_key: Optional[str] = Field(default=None, description="oauth_consumer_key")
    nonce: Optional[str] = Field(default=None, description="oauth_nonce")
    realm: Optional[str] = Field(default=None, description="realm (never signed)")
    signature: Optional[str] = Field(default=None, description="oauth_signature")
    signature_method: Optional[str] = Field(default=None, description="oauth_signature_method")
    timestamp: Optional[str] = Field(default=None, description="oauth_timestamp")
    token: Optional[str] = Field(default=None, description="oauth_token")
    token_secret: Optional[str] = Field(default=None, description="oauth_token_secret (never transmitted by a consumer)")
    verifier: Optional[str] = Field(default=None, description="oauth_verifier")
    version: Optional[str] = Field(default=None, description="oauth_version")
    additional_parameters: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Extension parameters keyed by name; a name may carry several values."
    )

    # Reserved field access by wire name

    def get(self, name: str) -> Optional[str]:
        if name not in FIELD_NAMES:
            raise KeyError(f"'{name}' is not a reserved OAuth parameter")
        return getattr(self, FIELD_NAMES[name])

    def set(self, name: str, value: Optional[str]) -> None:
        if name not in FIELD_NAMES:
            raise KeyError(f"'{name}' is not a reserved OAuth parameter")
        setattr(self, FIELD_NAMES[name], value)

    def reserved_items(self) -> List[Tuple[str, str]]:
        """Present reserved fields as (wire name, value) pairs."""
        return [(name, getattr(self, attr)) for name, attr in FIELD_NAMES.items() if getattr(self, attr) is not None]

    def add_additional_parameter(self, name: str, value: str) -> None:
        """Add an extension parameter. Reserved and ``oauth_``-prefixed names are refused."""
        if name in Parameters.RESERVED or name.startswith(Parameters.OAUTH_PREFIX):
            raise ValueError(f"'{name}' cannot be used as an extension parameter name")
        self.additional_parameters.setdefault(name, []).append(value)

    def add_additional_parameters(self, pairs: PairSource) -> None:
        for name, value in parse_form(pairs):
            self.add_additional_parameter(name, value)

    def to_pairs(self, *excluded: str) -> Tuple[Tuple[str, str], ...]:
        """Every reserved and extension parameter not excluded, as an immutable snapshot."""
        return tuple(self._all_pairs(excluded))

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, str]]) -> "OAuthParameters":
        parameters = cls()
        for name, value in pairs:
            if name in FIELD_NAMES:
                parameters.set(name, value)
            else:
                parameters.additional_parameters.setdefault(name, []).append(value)
        return parameters

    # Parsing

    @classmethod
    def parse(
        cls,
        authorization_header: Optional[str] = None,
        www_authenticate_header: Optional[str] = None,
        post_body: PairSource = None,
        query_string: PairSource = None,
        sources: ParameterSources = ParameterSources.SERVICE_PROVIDER_DEFAULT,
    ) -> "OAuthParameters":
        """Collate parameters from the selected sources without validation."""
        parameters, _ = cls._collate(authorization_header, www_authenticate_header, post_body, query_string, sources)
        return parameters

    @classmethod
    def parse_validated(
        cls,
        authorization_header: Optional[str] = None,
        www_authenticate_header: Optional[str] = None,
        post_body: PairSource = None,
        query_string: PairSource = None,
        sources: ParameterSources = ParameterSources.SERVICE_PROVIDER_DEFAULT,
    ) -> Result["OAuthParameters"]:
        """
        Collate and validate parameters from an inbound request.

        Duplicate reserved parameters (counted across all selected sources),
        unknown ``oauth_``-prefixed names and header values that do not decode
        as UTF-8 fail with parameter_rejected.
        """
        parameters, rejected = cls._collate(
            authorization_header, www_authenticate_header, post_body, query_string, sources, validate=True
        )
        if rejected:
            logger.warning(f"Rejected OAuth parameters: {rejected}")
            return Err(problems.parameter_rejected(rejected))
        return Ok(parameters)

    @classmethod
    def parse_response(cls, body: PairSource, www_authenticate_header: Optional[str] = None) -> "OAuthParameters":
        """Parse a provider response body (and optional WWW-Authenticate header)."""
        return cls.parse(
            www_authenticate_header=www_authenticate_header,
            post_body=body,
            sources=ParameterSources.CONSUMER_DEFAULT,
        )

    @classmethod
    def _collate(
        cls,
        authorization_header: Optional[str],
        www_authenticate_header: Optional[str],
        post_body: PairSource,
        query_string: PairSource,
        sources: ParameterSources,
        validate: bool = False,
    ) -> Tuple["OAuthParameters", List[str]]:
        selected = [source for source in SOURCE_PRIORITY if source & sources]
        undecodable: List[str] = []
        raw: Dict[ParameterSources, List[Tuple[str, str]]] = {
            ParameterSources.AUTHORIZATION_HEADER: _decode_header(
                authorization_header if ParameterSources.AUTHORIZATION_HEADER in selected else None, undecodable
            ),
            ParameterSources.WWW_AUTHENTICATE_HEADER: _decode_header(
                www_authenticate_header if ParameterSources.WWW_AUTHENTICATE_HEADER in selected else None, undecodable
            ),
            ParameterSources.POST_BODY: parse_form(post_body),
            ParameterSources.QUERY_STRING: parse_form(query_string),
        }

        parameters = cls()
        occurrences: Dict[str, int] = {}
        rejected: List[str] = []

        for source in selected:
            for name, value in raw[source]:
                is_header = bool(source & HEADER_SOURCES)
                if name == Parameters.REALM and not is_header:
                    continue
                if name in FIELD_NAMES:
                    occurrences[name] = occurrences.get(name, 0) + 1
                    if parameters.get(name) is None:
                        parameters.set(name, value)
                    continue
                if source == ParameterSources.AUTHORIZATION_HEADER:
                    # only protocol parameters travel in the Authorization header
                    continue
                if validate and name.startswith(Parameters.OAUTH_PREFIX):
                    if name not in rejected:
                        rejected.append(name)
                    continue
                parameters.additional_parameters.setdefault(name, []).append(value)

        if validate:
            duplicates = [name for name, count in occurrences.items() if count > 1]
            rejected = duplicates + [name for name in rejected if name not in duplicates]
            rejected += [name for name in undecodable if name not in rejected]
        return parameters, rejected

    # Assertions

    def require_all_of(self, *names: str) -> Optional[ProblemReport]:
        """parameter_absent naming every listed reserved parameter that is missing."""
        absent = [name for name in names if self.get(name) is None]
        if absent:
            return problems.parameter_absent(absent)
        return None

    def allow_only(self, *names: str) -> Optional[ProblemReport]:
        """parameter_rejected naming every present reserved parameter not listed."""
        allowed = set(names)
        extra = [name for name, _ in self.reserved_items() if name not in allowed]
        if extra:
            return problems.parameter_rejected(extra)
        return None

    def require_version(self, *allowed: str) -> Optional[ProblemReport]:
        """version_rejected when oauth_version is present and not one of ``allowed``."""
        if not allowed:
            raise ValueError("At least one acceptable version is required")
        if self.version is None or self.version in allowed:
            return None
        ordered = sorted(allowed)
        return problems.version_rejected(ordered[0], ordered[-1])

    # Serialisation

    def _all_pairs(self, excluded: Sequence[str]) -> List[Tuple[str, str]]:
        pairs = [(name, value) for name, value in self.reserved_items() if name not in excluded]
        for name, values in self.additional_parameters.items():
            if name in excluded:
                continue
            pairs.extend((name, value) for value in values if value is not None)
        return pairs

    def to_normalized_string(self, *excluded: str) -> str:
        """
        Encode every parameter not excluded, sort by encoded name then encoded
        value (ordinal) and join as ``k=v`` pairs with ``&``.
        """
        encoded = sorted((rfc3986.encode(name), rfc3986.encode(value)) for name, value in self._all_pairs(excluded))
        return "&".join(f"{name}={value}" for name, value in encoded)

    def to_header_format(self) -> str:
        """Authorization header value. Realm first; extension parameters and the token secret are omitted."""
        parts = []
        if self.realm is not None:
            parts.append(f'{Parameters.REALM}="{rfc3986.encode(self.realm)}"')
        for name, value in sorted(self.reserved_items()):
            if name in (Parameters.REALM, Parameters.OAUTH_TOKEN_SECRET):
                continue
            parts.append(f'{name}="{rfc3986.encode(value)}"')
        return f"{OAUTH_AUTH_SCHEME} " + ", ".join(parts)

    def to_query_string_format(self) -> str:
        """Query string or form body carrying all parameters except realm and the token secret."""
        return self.to_normalized_string(Parameters.REALM, Parameters.OAUTH_TOKEN_SECRET)
