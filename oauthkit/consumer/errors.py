# oauthkit/consumer/errors.py
from typing import Mapping, Optional


class OAuthProtocolError(Exception):
    """
    A non-success response that carried no Problem Reporting problem.
    The response body has already been read and is kept for diagnostics.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str = "",
        headers: Optional[Mapping[str, str]] = None,
        url: Optional[str] = None,
    ):
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers or {})
        self.url = url
        super().__init__(f"{message} (HTTP {status_code})")
