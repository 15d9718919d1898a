"""Request validation applied before routing."""

from typing import Optional

from fileshare.domain.http_types import HttpRequest, HttpResponse
from fileshare.domain.response_builders import (
    bad_request_response,
    method_not_allowed_response,
)


class RequestEntityTooLarge(Exception):
    """Raised when a declared or buffered body exceeds the upload ceiling."""


def enforce_allowed_method(
    request: HttpRequest, allowed_methods: set[str], security_headers: dict[str, str]
) -> Optional[HttpResponse]:
    if request.method in allowed_methods:
        return None
    return method_not_allowed_response(request, security_headers, allowed_methods)


def enforce_well_formed_path(
    request: HttpRequest, security_headers: dict[str, str]
) -> Optional[HttpResponse]:
    """Reject targets that are not absolute or carry raw control bytes."""
    if not request.path.startswith("/"):
        return bad_request_response(request, security_headers, "Invalid path")
    if any(ord(char) < 0x20 for char in request.path):
        return bad_request_response(request, security_headers, "Invalid path")
    return None


def validate_request(
    request: HttpRequest, allowed_methods: set[str], security_headers: dict[str, str]
) -> Optional[HttpResponse]:
    """Return an error response when the request fails validation checks."""
    method_error = enforce_allowed_method(request, allowed_methods, security_headers)
    if method_error is not None:
        return method_error
    return enforce_well_formed_path(request, security_headers)
