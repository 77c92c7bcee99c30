# oauthkit/__init__.py
"""OAuth 1.0a consumer and service provider engine."""

# Wire parameters and problems
from .constants import ParameterSources, SignatureMethods
from .parameters import OAuthParameters
from .problems import OAuthProblemError, ProblemReport, ProblemSource, ProblemType
from .result import Err, Ok

# Signing
from .signing import SigningProviderRegistry, build_base_string

__version__ = "0.1.0"

__all__ = [
    "ParameterSources",
    "SignatureMethods",
    "OAuthParameters",
    "OAuthProblemError",
    "ProblemReport",
    "ProblemSource",
    "ProblemType",
    "Err",
    "Ok",
    "SigningProviderRegistry",
    "build_base_string",
]
