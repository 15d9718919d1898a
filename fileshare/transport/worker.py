"""Per-connection worker: optional TLS handshake, then a keep-alive request loop."""

import logging
import socket
import ssl
import threading
import time
from dataclasses import dataclass
from typing import Optional

from fileshare.bootstrap.config import MAX_UPLOAD_BYTES, SECURITY_HEADERS
from fileshare.domain.correlation_id import component_logger, request_scope
from fileshare.domain.http_types import HttpRequest
from fileshare.domain.response_builders import (
    bad_request_response,
    draining_response,
    entity_too_large_response,
)
from fileshare.pipeline.io import receive_request, send_response
from fileshare.pipeline.router import route_request
from fileshare.pipeline.validation import RequestEntityTooLarge
from fileshare.transport.context import WorkerContext

WORKER_LOGGER = component_logger("transport.worker")


@dataclass
class _WorkerResources:
    thread: threading.Thread
    client_socket: socket.socket
    client_addr_str: str


def _negotiate_tls(
    client_socket: socket.socket, context: WorkerContext, client_addr_str: str
) -> Optional[socket.socket]:
    """Wrap the socket when TLS is configured; None means the handshake failed."""
    tls_context = context.config.tls_context
    if tls_context is None:
        return client_socket
    try:
        return tls_context.wrap_socket(client_socket, server_side=True)
    except (ssl.SSLError, OSError) as error:
        WORKER_LOGGER.debug(
            "TLS handshake failed",
            extra={
                "event": "tls_handshake_failed",
                "client": client_addr_str,
                "error_type": type(error).__name__,
            },
        )
        return None


def _read_request(
    client_socket: socket.socket, buffer: bytes, client_addr_str: str
) -> tuple[Optional[HttpRequest], bytes, bool]:
    """Read one request; the flag tells the caller to end the connection."""
    try:
        request, buffer = receive_request(client_socket, buffer)
    except RequestEntityTooLarge:
        WORKER_LOGGER.warning(
            "Request body size exceeded limit",
            extra={
                "event": "body_size_exceeded",
                "client": client_addr_str,
                "limit": MAX_UPLOAD_BYTES,
            },
        )
        send_response(
            client_socket, entity_too_large_response(SECURITY_HEADERS, MAX_UPLOAD_BYTES)
        )
        return None, b"", True
    except (ValueError, UnicodeDecodeError):
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={"event": "malformed_request", "client": client_addr_str},
        )
        send_response(client_socket, bad_request_response(None, SECURITY_HEADERS))
        return None, b"", True

    if request is None:
        if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            WORKER_LOGGER.debug(
                "Client disconnected",
                extra={"event": "client_disconnected", "client": client_addr_str},
            )
        return None, b"", True
    return request, buffer, False


def _drain_if_requested(context: WorkerContext, client_socket: socket.socket) -> bool:
    lifecycle = context.lifecycle
    if lifecycle is None or not lifecycle.is_draining():
        return False
    send_response(client_socket, draining_response(SECURITY_HEADERS))
    return True


def _serve_one(
    client_socket: socket.socket,
    buffer: bytes,
    context: WorkerContext,
    client_addr_str: str,
) -> tuple[bytes, bool]:
    """Handle a single request; return leftover bytes and whether to close."""
    if _drain_if_requested(context, client_socket):
        return b"", True

    request, buffer, should_terminate = _read_request(
        client_socket, buffer, client_addr_str
    )
    if should_terminate or request is None:
        return b"", True
    # Draining may have started while this connection sat idle in recv.
    if _drain_if_requested(context, client_socket):
        return b"", True

    started = time.monotonic()
    response = route_request(request, context.config)
    send_response(client_socket, response)
    WORKER_LOGGER.info(
        "Request handled",
        extra={
            "event": "request_complete",
            "client": client_addr_str,
            "method": request.method,
            "route": request.path,
            "status_code": response.status_code,
            "duration_ms": int((time.monotonic() - started) * 1000),
        },
    )
    return buffer, response.close_connection


def _cleanup_worker(context: WorkerContext, resources: _WorkerResources) -> None:
    if context.lifecycle is not None:
        context.lifecycle.cleanup_worker(resources.thread)
    try:
        resources.client_socket.shutdown(socket.SHUT_WR)
    except OSError:
        pass
    resources.client_socket.close()
    WORKER_LOGGER.debug(
        "Socket closed",
        extra={"event": "socket_closed", "client": resources.client_addr_str},
    )


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Run one connection from accept to close: Accepted, TLS, Serving, Closed."""
    current_thread = threading.current_thread()
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    if context.lifecycle is not None:
        context.lifecycle.register_worker(current_thread)
    client_socket.settimeout(context.config.socket_timeout)
    resources = _WorkerResources(current_thread, client_socket, client_addr_str)

    try:
        connection = _negotiate_tls(client_socket, context, client_addr_str)
        if connection is None:
            return
        resources.client_socket = connection

        buffer = b""
        should_close = False
        while not should_close:
            with request_scope():
                buffer, should_close = _serve_one(
                    connection, buffer, context, client_addr_str
                )
    except (ConnectionError, TimeoutError, OSError) as error:
        WORKER_LOGGER.info(
            "Connection ended with transport error",
            extra={
                "event": "connection_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
            },
            exc_info=True,
        )
    finally:
        _cleanup_worker(context, resources)
