"""Pure HTTP response builders."""

from typing import Iterable, Optional

from fileshare.domain.http_types import HttpRequest, HttpResponse, should_close

STATUS_REASONS = {
    200: "OK",
    400: "Bad Request",
    401: "Unauthorized",
    404: "Not Found",
    405: "Method Not Allowed",
    413: "Payload Too Large",
    500: "Internal Server Error",
    503: "Service Unavailable",
}

TEXT_PLAIN = "text/plain; charset=utf-8"


def status_line(code: int) -> str:
    return f"HTTP/1.1 {code} {STATUS_REASONS[code]}"


def _wants_close(request: Optional[HttpRequest]) -> bool:
    return should_close(request.headers) if request is not None else True


def text_response(
    code: int,
    message: str,
    request: Optional[HttpRequest],
    security_headers: dict[str, str],
    extra_headers: Optional[dict[str, str]] = None,
) -> HttpResponse:
    """Return a short text/plain response honoring the caller's keep-alive choice."""
    headers = {"Content-Type": TEXT_PLAIN, **security_headers, **(extra_headers or {})}
    return HttpResponse(
        status_line(code),
        headers,
        message.encode("utf-8"),
        _wants_close(request),
        omit_body=request is not None and request.method == "HEAD",
    )


def content_response(
    request: HttpRequest,
    content_type: str,
    payload: bytes,
    security_headers: dict[str, str],
    extra_headers: Optional[dict[str, str]] = None,
) -> HttpResponse:
    """Return a 200 response with an in-memory payload."""
    headers = {"Content-Type": content_type, **security_headers, **(extra_headers or {})}
    return HttpResponse(
        status_line(200),
        headers,
        payload,
        should_close(request.headers),
        omit_body=request.method == "HEAD",
    )


def streaming_response(
    request: HttpRequest,
    content_type: str,
    body_iter: Iterable[bytes],
    content_length: int,
    security_headers: dict[str, str],
    extra_headers: Optional[dict[str, str]] = None,
) -> HttpResponse:
    """Return a 200 response whose body is produced lazily in chunks."""
    headers = {"Content-Type": content_type, **security_headers, **(extra_headers or {})}
    return HttpResponse(
        status_line(200),
        headers,
        b"",
        should_close(request.headers),
        body_iter=body_iter,
        content_length=content_length,
        omit_body=request.method == "HEAD",
    )


def not_found_response(
    request: HttpRequest, security_headers: dict[str, str]
) -> HttpResponse:
    """Return a 404 that echoes the path the client asked for."""
    return text_response(
        404, f"404 Not Found: {request.path}", request, security_headers
    )


def bad_request_response(
    request: Optional[HttpRequest],
    security_headers: dict[str, str],
    message: str = "Bad Request",
) -> HttpResponse:
    return text_response(400, message, request, security_headers)


def unauthorized_response(
    request: HttpRequest, security_headers: dict[str, str], realm: str
) -> HttpResponse:
    """Return the Basic authentication challenge."""
    return text_response(
        401,
        "Authentication required",
        request,
        security_headers,
        {"WWW-Authenticate": f'Basic realm="{realm}"'},
    )


def entity_too_large_response(
    security_headers: dict[str, str], limit_bytes: int
) -> HttpResponse:
    """Produce a 413 response that always closes the connection."""
    message = f"{limit_bytes // (1024 * 1024)}MB max"
    return text_response(413, message, None, security_headers)


def method_not_allowed_response(
    request: HttpRequest, security_headers: dict[str, str], allowed_methods
) -> HttpResponse:
    """Produce a 405 response enumerating the supported HTTP methods."""
    return text_response(
        405,
        "Method Not Allowed",
        request,
        security_headers,
        {"Allow": ", ".join(sorted(allowed_methods))},
    )


def internal_error_response(
    request: HttpRequest, security_headers: dict[str, str], message: str
) -> HttpResponse:
    return text_response(500, message, request, security_headers)


def draining_response(security_headers: dict[str, str]) -> HttpResponse:
    """Produce a 503 response indicating the server is draining."""
    return HttpResponse(
        status_line(503),
        {"Content-Type": TEXT_PLAIN, "Connection": "close", **security_headers},
        b"draining",
        True,
    )
