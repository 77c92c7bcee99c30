# oauthkit/consumer/authorization.py
"""Authorization handlers decide how the end user authorizes a request token."""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class AuthorizationAction(str, Enum):
    HALT = "halt"
    CONTINUE = "continue"


@dataclass(frozen=True)
class AuthorizationOutcome:
    action: AuthorizationAction
    verifier: Optional[str] = None
    redirect_url: Optional[str] = None


# Called with the authorization URL the end user must visit
AuthorizationHandler = Callable[[str], AuthorizationOutcome]


def redirect_handler(authorization_url: str) -> AuthorizationOutcome:
    """Stop the flow so the caller can redirect the end user's browser."""
    return AuthorizationOutcome(AuthorizationAction.HALT, redirect_url=authorization_url)


class OutOfBandAuthorizationHandler:
    """
    Completes authorization without a browser redirect, e.g. by showing the
    URL and asking the end user to paste the verifier back.
    """

    def __init__(self, obtain_verifier: Callable[[str], Optional[str]]):
        self.obtain_verifier = obtain_verifier

    def __call__(self, authorization_url: str) -> AuthorizationOutcome:
        verifier = self.obtain_verifier(authorization_url)
        if not verifier:
            return AuthorizationOutcome(AuthorizationAction.HALT, redirect_url=authorization_url)
        return AuthorizationOutcome(AuthorizationAction.CONTINUE, verifier=verifier)
