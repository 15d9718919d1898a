"""Request routing: auth gate first, then dispatch by method and path suffix."""

import logging

from fileshare.bootstrap.config import (
    ALLOWED_METHODS,
    AUTH_REALM,
    DOWNLOAD_SUFFIX,
    SECURITY_HEADERS,
    UPLOAD_SUFFIX,
    ServerConfig,
)
from fileshare.domain.correlation_id import component_logger
from fileshare.domain.http_types import HttpRequest, HttpResponse
from fileshare.domain.response_builders import (
    method_not_allowed_response,
    unauthorized_response,
)
from fileshare.handlers.download_handler import download_response
from fileshare.handlers.static_handler import static_response
from fileshare.handlers.upload_handler import upload_response
from fileshare.pipeline.validation import validate_request
from fileshare.security.auth import is_authorized

ROUTER_LOGGER = component_logger("pipeline.router")


def _log_route(route: str) -> None:
    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug("Route matched", extra={"event": "route_matched", "route": route})


def route_request(request: HttpRequest, config: ServerConfig) -> HttpResponse:
    """Route the request to the appropriate handler and return a response."""
    if not is_authorized(request, config.credential):
        ROUTER_LOGGER.warning(
            "Request rejected by auth gate",
            extra={"event": "auth_rejected", "method": request.method},
        )
        return unauthorized_response(request, SECURITY_HEADERS, AUTH_REALM)

    validation_error = validate_request(request, ALLOWED_METHODS, SECURITY_HEADERS)
    if validation_error is not None:
        return validation_error

    if request.method == "POST" and request.path.endswith(UPLOAD_SUFFIX):
        _log_route("upload")
        return upload_response(request, config.root)

    if request.method == "POST" and request.path.endswith(DOWNLOAD_SUFFIX):
        _log_route("download")
        return download_response(request, config.root)

    if request.method in {"GET", "HEAD"}:
        _log_route("static")
        return static_response(request, config.root)

    ROUTER_LOGGER.info(
        "No matching route found",
        extra={"event": "route_not_found", "route": request.path, "method": request.method},
    )
    return method_not_allowed_response(request, SECURITY_HEADERS, ALLOWED_METHODS)
