"""HTTP Basic authentication gate for the single configured credential."""

import hmac
from typing import Optional

from fileshare.bootstrap.config import Credential
from fileshare.domain.http_types import HttpRequest

BASIC_PREFIX = "Basic "


def presented_token(request: HttpRequest) -> Optional[str]:
    """Return the base64 token of a Basic Authorization header, if any."""
    header = request.headers.get("authorization", "")
    if not header.startswith(BASIC_PREFIX):
        return None
    return header[len(BASIC_PREFIX) :].strip()


def is_authorized(request: HttpRequest, credential: Optional[Credential]) -> bool:
    """True when no credential is configured or the request presents it."""
    if credential is None:
        return True
    token = presented_token(request)
    if token is None:
        return False
    return hmac.compare_digest(
        token.encode("ascii", errors="replace"),
        credential.header_token().encode("ascii"),
    )
