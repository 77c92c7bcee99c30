# oauthkit/provider/errors.py
from typing import Optional

from fastapi import HTTPException, status

from ..problems import ProblemReport


class OAuthProblemHTTPException(HTTPException):
    """A Problem Reporting problem rendered as an HTTP error with its WWW-Authenticate header."""

    def __init__(self, report: ProblemReport, realm: Optional[str] = None):
        self.report = report

        detail = {key: value for key, value in report.to_parameters()}
        headers = {"WWW-Authenticate": report.to_header_format(realm)}

        super().__init__(status_code=report.status_code, detail=detail, headers=headers)


class ServerError(HTTPException):
    """The provider could not complete the request, e.g. token generation gave up."""

    def __init__(self, error_description: Optional[str] = "The service provider encountered an internal error."):
        self.error_description = error_description
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "server_error", "error_description": error_description},
        )
