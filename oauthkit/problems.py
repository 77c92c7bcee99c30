# oauthkit/problems.py
"""
Problem Reporting extension: a closed catalog of protocol problems, their
wire encoding, and rehydration of problems reported by a remote party.
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import rfc3986
from .constants import OAUTH_AUTH_SCHEME, Parameters

logger = logging.getLogger(__name__)


class ProblemType(str, Enum):
    VERSION_REJECTED = "version_rejected"
    PARAMETER_ABSENT = "parameter_absent"
    PARAMETER_REJECTED = "parameter_rejected"
    TIMESTAMP_REFUSED = "timestamp_refused"
    NONCE_USED = "nonce_used"
    SIGNATURE_METHOD_REJECTED = "signature_method_rejected"
    SIGNATURE_INVALID = "signature_invalid"
    CONSUMER_KEY_UNKNOWN = "consumer_key_unknown"
    CONSUMER_KEY_REJECTED = "consumer_key_rejected"
    CONSUMER_KEY_REFUSED = "consumer_key_refused"
    TOKEN_USED = "token_used"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_REVOKED = "token_revoked"
    TOKEN_REJECTED = "token_rejected"
    PERMISSION_UNKNOWN = "permission_unknown"
    PERMISSION_DENIED = "permission_denied"


class ProblemSource(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


# Problem type -> name of its structured additional parameter, where it has one
ADDITIONAL_PARAMETER_NAMES: Dict[ProblemType, str] = {
    ProblemType.VERSION_REJECTED: Parameters.OAUTH_ACCEPTABLE_VERSIONS,
    ProblemType.PARAMETER_ABSENT: Parameters.OAUTH_PARAMETERS_ABSENT,
    ProblemType.PARAMETER_REJECTED: Parameters.OAUTH_PARAMETERS_REJECTED,
    ProblemType.TIMESTAMP_REFUSED: Parameters.OAUTH_ACCEPTABLE_TIMESTAMPS,
}

BAD_REQUEST_PROBLEMS = frozenset({
    ProblemType.VERSION_REJECTED,
    ProblemType.PARAMETER_ABSENT,
    ProblemType.PARAMETER_REJECTED,
    ProblemType.SIGNATURE_METHOD_REJECTED,
})


@dataclass(frozen=True)
class ProblemReport:
    """A single protocol problem, raised locally or reconstructed from a remote response."""
    problem: ProblemType
    additional_parameter: Optional[Tuple[str, str]] = None
    advice: Optional[str] = None
    source: ProblemSource = ProblemSource.LOCAL

    @property
    def status_code(self) -> int:
        return 400 if self.problem in BAD_REQUEST_PROBLEMS else 401

    def with_advice(self, advice: Optional[str]) -> "ProblemReport":
        return replace(self, advice=advice)

    @property
    def parameter_names(self) -> List[str]:
        """Names carried by a parameter_absent / parameter_rejected report."""
        if self.additional_parameter is None:
            return []
        name, value = self.additional_parameter
        if name not in (Parameters.OAUTH_PARAMETERS_ABSENT, Parameters.OAUTH_PARAMETERS_REJECTED):
            return []
        return rfc3986.split_and_decode(value)

    def to_parameters(self) -> List[Tuple[str, str]]:
        """Problem Reporting fields in wire order: problem, additional parameter, advice."""
        pairs = [(Parameters.OAUTH_PROBLEM, self.problem.value)]
        if self.additional_parameter is not None:
            pairs.append(self.additional_parameter)
        if self.advice:
            pairs.append((Parameters.OAUTH_PROBLEM_ADVICE, self.advice))
        return pairs

    def to_header_format(self, realm: Optional[str] = None) -> str:
        """Render as a WWW-Authenticate header value."""
        parts = []
        if realm is not None:
            parts.append(f'{Parameters.REALM}="{rfc3986.encode(realm)}"')
        parts.extend(f'{name}="{rfc3986.encode(value)}"' for name, value in self.to_parameters())
        return f"{OAUTH_AUTH_SCHEME} " + ", ".join(parts)

    def to_body(self) -> str:
        """Render as an application/x-www-form-urlencoded response body."""
        return "&".join(
            f"{rfc3986.encode(name)}={rfc3986.encode(value)}" for name, value in self.to_parameters()
        )

    def __str__(self) -> str:
        text = self.problem.value
        if self.additional_parameter is not None:
            text += f" ({self.additional_parameter[0]}={self.additional_parameter[1]})"
        if self.advice:
            text += f": {self.advice}"
        return text


class OAuthProblemError(Exception):
    """Raised where an API boundary surfaces a protocol problem as an exception."""

    def __init__(self, report: ProblemReport):
        self.report = report
        super().__init__(str(report))

    @property
    def problem(self) -> ProblemType:
        return self.report.problem


# Factories


def version_rejected(min_version: str, max_version: str) -> ProblemReport:
    return ProblemReport(
        ProblemType.VERSION_REJECTED,
        (Parameters.OAUTH_ACCEPTABLE_VERSIONS, f"{min_version}-{max_version}"),
    )


def parameter_absent(names: Iterable[str]) -> ProblemReport:
    return ProblemReport(
        ProblemType.PARAMETER_ABSENT,
        (Parameters.OAUTH_PARAMETERS_ABSENT, rfc3986.encode_and_join(names)),
    )


def parameter_rejected(names: Iterable[str]) -> ProblemReport:
    return ProblemReport(
        ProblemType.PARAMETER_REJECTED,
        (Parameters.OAUTH_PARAMETERS_REJECTED, rfc3986.encode_and_join(names)),
    )


def timestamp_refused(min_timestamp: int, max_timestamp: int) -> ProblemReport:
    return ProblemReport(
        ProblemType.TIMESTAMP_REFUSED,
        (Parameters.OAUTH_ACCEPTABLE_TIMESTAMPS, f"{min_timestamp}-{max_timestamp}"),
    )


def simple(problem: ProblemType) -> ProblemReport:
    """A problem that carries no structured additional parameter."""
    if problem in ADDITIONAL_PARAMETER_NAMES:
        raise ValueError(f"Problem '{problem.value}' requires an additional parameter")
    return ProblemReport(problem)


# Remote problems


def _first(values: Any) -> Optional[str]:
    if values is None:
        return None
    if isinstance(values, str):
        return values
    return values[0] if values else None


def extract_problem(parameters: Any) -> Optional[ProblemReport]:
    """
    Reconstruct a ProblemReport from parsed response parameters.

    Args:
        parameters: Either an ``OAuthParameters`` (its extension parameters are
            inspected) or a mapping of name to a value or list of values.

    Returns:
        The remote ProblemReport, or None when no recognised ``oauth_problem`` is present.
    """
    extras: Mapping[str, Sequence[str]] = getattr(parameters, "additional_parameters", parameters)
    problem_value = _first(extras.get(Parameters.OAUTH_PROBLEM))
    if not problem_value:
        return None
    try:
        problem = ProblemType(problem_value)
    except ValueError:
        logger.warning(f"Remote party reported an unknown problem type: '{problem_value}'")
        return None

    additional = None
    parameter_name = ADDITIONAL_PARAMETER_NAMES.get(problem)
    if parameter_name:
        parameter_value = _first(extras.get(parameter_name))
        if parameter_value is not None:
            additional = (parameter_name, parameter_value)

    return ProblemReport(
        problem,
        additional_parameter=additional,
        advice=_first(extras.get(Parameters.OAUTH_PROBLEM_ADVICE)) or None,
        source=ProblemSource.REMOTE,
    )


def try_rethrow(parameters: Any) -> None:
    """Raise OAuthProblemError if the parsed parameters carry a Problem Reporting problem."""
    report = extract_problem(parameters)
    if report is not None:
        logger.info(f"Rethrowing remote problem: {report}")
        raise OAuthProblemError(report)
